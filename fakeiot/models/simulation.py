"""
Simulation parameters for the fake IoT simulator.
"""

from dataclasses import dataclass

from fakeiot.core.errors import InvalidConfiguration


@dataclass(frozen=True)
class Simulation:
    """Parameters of one simulation run."""
    period: float      # seconds to run the simulation for
    freq: float        # seconds between two emitted metrics
    account_id: str    # account ID to emit
    # Total amount of distinct users to simulate. The simulation generates
    # distinct user IDs and emits them in a rotating loop.
    users: int

    def check(self) -> None:
        if self.users < 1:
            raise InvalidConfiguration(f"simulation needs at least one user, got {self.users}")
        if self.period <= 0:
            raise InvalidConfiguration(f"simulation period must be positive, got {self.period}s")
        if self.freq <= 0:
            raise InvalidConfiguration(f"simulation frequency must be positive, got {self.freq}s")
