from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Phase(Enum):
    STATIC = "static"
    MORNING_COMMUTE = "morning_commute"
    LUNCH = "lunch"
    EVENING_COMMUTE = "evening_commute"
    EXIT = "exit"


@dataclass(frozen=True)
class TimeWindows:
    """
    Behavioural time boundaries in simulated seconds.

    Without gate boundaries only the lunch window exists. All windows are
    open intervals, so a time equal to any boundary is STATIC.
    """
    lunch_begin: int
    lunch_end: int
    gate_begin: Optional[int] = None
    gate_end: Optional[int] = None

    @property
    def extended(self) -> bool:
        return self.gate_begin is not None and self.gate_end is not None

    def classify(self, t: int) -> Phase:
        if self.extended:
            if self.gate_begin < t < self.lunch_begin:
                return Phase.MORNING_COMMUTE
            if self.lunch_begin < t < self.lunch_end:
                return Phase.LUNCH
            if self.lunch_end < t < self.gate_end:
                return Phase.EVENING_COMMUTE
            if t > self.gate_end:
                return Phase.EXIT
            return Phase.STATIC

        if self.lunch_begin < t < self.lunch_end:
            return Phase.LUNCH
        return Phase.STATIC
