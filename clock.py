class SimClock:
    """Simulated time in seconds, advanced by the scheduler."""

    def __init__(self, start: float = 0.0):
        self.time = float(start)

    def advance(self, dt: float):
        if dt < 0:
            raise ValueError("Simulated time can't go backwards")
        self.time += dt

    def set_time(self, t: float):
        self.time = float(t)

    def get_time(self) -> float:
        return self.time

    def get_int_time(self) -> int:
        return int(self.time)
