"""
Smart logging for the simulation driver.
Keeps per-send logging readable on long runs while still showing that
metrics are flowing.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class SmartLoggerConfig:
    """Configuration for smart logging behavior."""
    # Initial sends to log, to verify everything works
    initial_log_count: int = 10

    # Periodic logging interval in sends (calculated from expected sends if not set)
    periodic_interval: Optional[int] = None

    # Number of sends the run is expected to emit
    expected_sends: Optional[int] = None

    # Default periodic interval divisor (expected_sends / 50)
    periodic_divisor: int = 50

    # When disabled every send is logged
    enabled: bool = True


class SmartLogger:
    """
    Logger that reduces per-send verbosity.

    Logging Strategy:
    1. Log the first N sends to verify the endpoint accepts metrics
    2. Afterwards log every K-th send (default: expected sends / 50)
    """

    def __init__(self, config: SmartLoggerConfig, logger_name: str = __name__):
        self.config = config
        self.logger = logging.getLogger(logger_name)
        self.iteration_count = 0

        if self.config.periodic_interval is None:
            if self.config.expected_sends:
                self.config.periodic_interval = max(1, self.config.expected_sends // self.config.periodic_divisor)
            else:
                self.config.periodic_interval = 100

    def should_log(self) -> bool:
        """Count one send and tell whether it should be logged."""
        self.iteration_count += 1
        if not self.config.enabled:
            return True
        if self.iteration_count <= self.config.initial_log_count:
            if self.iteration_count == self.config.initial_log_count:
                self.logger.debug(
                    f"SmartLogger: initial phase complete, logging every "
                    f"{self.config.periodic_interval} sends from now on."
                )
            return True
        return self.iteration_count % self.config.periodic_interval == 0

    def log_message(self, level: int, message: str, **kwargs: Any) -> None:
        """Log a message if smart logging rules allow it."""
        if self.should_log():
            extra_info = f" [{', '.join(f'{k}={v}' for k, v in kwargs.items())}]" if kwargs else ""
            self.logger.log(level, f"{message}{extra_info}")

    def get_stats(self) -> Dict[str, Any]:
        return {
            'total_iterations': self.iteration_count,
            'periodic_interval': self.config.periodic_interval,
        }


def create_smart_logger(expected_sends: Optional[int] = None,
                        initial_log_count: int = 10,
                        periodic_divisor: int = 50,
                        enabled: bool = True,
                        logger_name: str = __name__) -> SmartLogger:
    """
    Factory function to create a configured SmartLogger.

    Args:
        expected_sends: Number of sends the run is expected to emit
        initial_log_count: Number of initial sends to log
        periodic_divisor: Divisor for the periodic interval (expected_sends / divisor)
        enabled: Whether smart logging is enabled
        logger_name: Logger the messages go to
    """
    config = SmartLoggerConfig(
        initial_log_count=initial_log_count,
        expected_sends=expected_sends,
        periodic_divisor=periodic_divisor,
        enabled=enabled,
    )
    return SmartLogger(config, logger_name)
