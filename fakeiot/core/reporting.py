"""
Reporting module for the fake IoT simulator.
Collects send statistics for simulation runs and outcomes of compliance runs.
"""

import time
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

import numpy as np

DEFAULT_PERCENTILES = [50, 90, 95, 99]


class SimulationReport:
    """Send statistics of one simulation run."""

    def __init__(self, users: int):
        self.users = users
        self.logger = logging.getLogger(__name__)
        self.messages_sent = 0
        self.response_times_ms: List[float] = []
        self.start_time = time.monotonic()
        self.end_time: Optional[float] = None

    def record_send(self, response_time_ms: float) -> None:
        self.messages_sent += 1
        self.response_times_ms.append(response_time_ms)

    def finish(self) -> None:
        self.end_time = time.monotonic()

    @property
    def duration_s(self) -> float:
        end = self.end_time if self.end_time is not None else time.monotonic()
        return end - self.start_time

    def calculate_percentiles(self, percentiles_to_calc: Optional[List[float]] = None) -> Dict[str, float]:
        """Calculate latency percentiles in milliseconds."""
        if not self.response_times_ms:
            return {}
        if percentiles_to_calc is None:
            percentiles_to_calc = DEFAULT_PERCENTILES
        values = np.percentile(np.array(self.response_times_ms), percentiles_to_calc)
        return {f'p{p}': float(v) for p, v in zip(percentiles_to_calc, values)}

    def summary(self) -> Dict[str, object]:
        duration = self.duration_s
        result: Dict[str, object] = {
            'messages_sent': self.messages_sent,
            'users': self.users,
            'duration_s': round(duration, 3),
            'rate_per_s': round(self.messages_sent / duration, 3) if duration > 0 else 0.0,
        }
        if self.response_times_ms:
            latencies = np.array(self.response_times_ms)
            result.update({
                'latency_avg_ms': float(np.mean(latencies)),
                'latency_min_ms': float(np.min(latencies)),
                'latency_max_ms': float(np.max(latencies)),
                'percentiles': self.calculate_percentiles(),
            })
        return result

    def log_summary(self) -> None:
        s = self.summary()
        self.logger.info(
            f"Simulation finished: {s['messages_sent']} metrics for {s['users']} users "
            f"in {s['duration_s']:.1f}s ({s['rate_per_s']:.2f}/s)."
        )
        if 'percentiles' in s:
            p = s['percentiles']
            self.logger.info(
                f"Latency avg={s['latency_avg_ms']:.1f}ms p50={p['p50']:.1f}ms "
                f"p95={p['p95']:.1f}ms p99={p['p99']:.1f}ms max={s['latency_max_ms']:.1f}ms"
            )


class OutcomeStatus(Enum):
    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"


@dataclass
class ScenarioOutcome:
    """Result of one compliance scenario."""
    name: str
    status: OutcomeStatus
    reason: str = ""

    @property
    def failed(self) -> bool:
        return self.status is OutcomeStatus.FAIL

    def describe(self) -> str:
        return f"{self.name}: {self.reason}" if self.reason else self.name


@dataclass
class ComplianceReport:
    """Outcomes of a compliance run, in execution order."""
    outcomes: List[ScenarioOutcome] = field(default_factory=list)

    def add(self, outcome: ScenarioOutcome) -> None:
        self.outcomes.append(outcome)

    @property
    def failures(self) -> List[ScenarioOutcome]:
        return [o for o in self.outcomes if o.failed]

    @property
    def warnings(self) -> List[ScenarioOutcome]:
        return [o for o in self.outcomes if o.status is OutcomeStatus.WARN]

    @property
    def passed(self) -> bool:
        return not self.failures

    def summary(self) -> str:
        return (
            f"{len(self.outcomes)} scenarios: "
            f"{len(self.outcomes) - len(self.failures)} passed "
            f"({len(self.warnings)} with warnings), {len(self.failures)} failed"
        )
