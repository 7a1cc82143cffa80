"""
Simulation clock for the DSC Protocol model.

Stands in for the block timestamp. Every time-dependent component (fee
accrual, oracle freshness, liquidation incentives) reads the same clock.
"""


class SimulationClock:
    """Monotonic clock measured in whole seconds."""

    def __init__(self, start_time=0):
        self.current_time = int(start_time)

    def now(self):
        """Returns the current timestamp."""
        return self.current_time

    def advance(self, seconds):
        """Moves the clock forward by the given number of seconds."""
        if seconds < 0:
            raise ValueError("Cannot move the clock backwards")
        self.current_time += int(seconds)
        return self.current_time

    def set_time(self, timestamp):
        """Jumps to an absolute timestamp, which must not be in the past."""
        if timestamp < self.current_time:
            raise ValueError(f"Cannot move the clock backwards to {timestamp}")
        self.current_time = int(timestamp)
        return self.current_time
