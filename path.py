import math
import random
from typing import List, Optional, Tuple

from settings import Settings, SettingsError

SPEED_S = "speed"
DEFAULT_SPEED = (0.5, 1.5)

Coord = Tuple[float, float]


class Path:
    """Waypoints an agent walks through at a constant speed."""

    def __init__(self, speed: float):
        self.speed = speed
        self.waypoints: List[Coord] = []

    def add_waypoint(self, coord: Coord):
        self.waypoints.append(coord)

    def length(self) -> float:
        return sum(
            math.hypot(b[0] - a[0], b[1] - a[1])
            for a, b in zip(self.waypoints[:-1], self.waypoints[1:])
        )

    def duration(self) -> float:
        """Seconds needed to walk the whole path."""
        if self.speed <= 0:
            return math.inf
        return self.length() / self.speed

    def __len__(self):
        return len(self.waypoints)

    def __repr__(self):
        return f"Path(speed={self.speed:.2f}, waypoints={len(self.waypoints)})"


class SpeedSampler:
    """Uniform speed between a minimum and a maximum (m/s)."""

    def __init__(self, min_speed: float, max_speed: float, rng: Optional[random.Random] = None):
        if min_speed < 0 or max_speed < min_speed:
            raise SettingsError(f"Invalid speed range {min_speed}, {max_speed}")
        self.min_speed = min_speed
        self.max_speed = max_speed
        self.rng = rng or random.Random()

    @classmethod
    def from_settings(cls, settings: Settings, rng: Optional[random.Random] = None) -> "SpeedSampler":
        if settings.contains(SPEED_S):
            lo, hi = settings.get_csv_floats(SPEED_S, expected=2)
        else:
            lo, hi = DEFAULT_SPEED
        return cls(lo, hi, rng)

    def generate_speed(self) -> float:
        return self.rng.uniform(self.min_speed, self.max_speed)
