"""
Runner for the fake IoT simulator.
Owns the configured ingestion client and dispatches to the simulation
driver or the compliance harness.
"""

import asyncio
import logging
from typing import Optional

from fakeiot.core.client import IngestionClient
from fakeiot.core.compliance import ComplianceHarness
from fakeiot.core.reporting import ComplianceReport, SimulationReport
from fakeiot.core.simulator import SimulationDriver
from fakeiot.models.simulation import Simulation


class Runner:
    """Fake IoT device runner."""

    def __init__(self, client: IngestionClient, smart_logging: bool = True):
        self.client = client
        self.smart_logging = smart_logging
        self.logger = logging.getLogger(__name__)

    async def run_simulation(self, sim: Simulation, stop_event: Optional[asyncio.Event] = None) -> SimulationReport:
        """Run a simulation until its period elapses or stop_event is set."""
        sim.check()
        async with self.client:
            return await SimulationDriver(self.client, smart_logging=self.smart_logging).run(sim, stop_event)

    async def run_tests(self, stop_event: Optional[asyncio.Event] = None) -> ComplianceReport:
        """Run the compliance tests, raising AggregateFailure if any failed."""
        async with self.client:
            return await ComplianceHarness(self.client).run(stop_event)
