"""
Simulation driver for the fake IoT simulator.
Emits metrics at a fixed cadence for a rotating pool of synthetic users.
"""

import time
import uuid
import asyncio
import logging
from typing import Optional, Tuple

from fakeiot.core.errors import TransportFailure
from fakeiot.core.reporting import SimulationReport
from fakeiot.core.smart_logger import create_smart_logger
from fakeiot.models.metric import Metric, utc_now
from fakeiot.models.simulation import Simulation
from fakeiot.utils.helpers import format_duration


def generate_users(count: int) -> Tuple[str, ...]:
    """Generate distinct synthetic user IDs."""
    return tuple(str(uuid.uuid4()) for _ in range(count))


def next_tick_after(previous_tick: float, freq: float, now: float) -> float:
    """
    Schedule the tick following previous_tick.

    Ticks missed while a send was in flight are dropped, except the last one
    which fires right away.
    """
    tick = previous_tick + freq
    if tick < now:
        tick += ((now - tick) // freq) * freq
    return tick


async def wait_for_tick(next_tick: float, period_end: float, stop_event: asyncio.Event) -> bool:
    """
    Wait for whichever comes first: the next tick, the end of the period or
    the stop event. Returns True only if the tick won.
    """
    loop = asyncio.get_running_loop()
    tick = asyncio.ensure_future(asyncio.sleep(max(0.0, next_tick - loop.time())))
    period = asyncio.ensure_future(asyncio.sleep(max(0.0, period_end - loop.time())))
    stopped = asyncio.ensure_future(stop_event.wait())
    waiters = (tick, period, stopped)
    try:
        done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
    finally:
        pending = [w for w in waiters if not w.done()]
        for w in pending:
            w.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    if period in done or stopped in done:
        return False
    return not stop_event.is_set() and loop.time() < period_end


class SimulationDriver:
    """Runs one simulation against an ingestion client."""

    def __init__(self, client, smart_logging: bool = True):
        self.client = client
        self.smart_logging = smart_logging
        self.logger = logging.getLogger(__name__)

    async def run(self, sim: Simulation, stop_event: Optional[asyncio.Event] = None) -> SimulationReport:
        """
        Emit metrics until the simulation period elapses or stop_event is set.

        The first send error aborts the run and is raised unchanged.
        """
        sim.check()
        if stop_event is None:
            stop_event = asyncio.Event()

        self.logger.info(
            f"Starting simulation with {sim.users} users over {format_duration(sim.period)} "
            f"period with {format_duration(sim.freq)} frequency."
        )
        loop = asyncio.get_running_loop()
        start = loop.time()
        period_end = start + sim.period
        # One tick of slack lets the send of the final tick complete
        deadline = period_end + sim.freq

        users = generate_users(sim.users)
        report = SimulationReport(users=len(users))
        sent_log = create_smart_logger(
            expected_sends=int(sim.period / sim.freq) + 1,
            enabled=self.smart_logging,
            logger_name=__name__,
        )

        cursor = 0
        next_tick = start
        try:
            while not stop_event.is_set():
                user = users[cursor]
                cursor = (cursor + 1) % len(users)
                metric = Metric(account_id=sim.account_id, user_id=user, timestamp=utc_now())
                await self._send(metric, deadline - loop.time(), report)
                sent_log.log_message(logging.INFO, f"Sent {metric}.")

                next_tick = next_tick_after(next_tick, sim.freq, loop.time())
                if not await wait_for_tick(next_tick, period_end, stop_event):
                    break
        finally:
            report.finish()
            self.logger.debug(f"Send logging stats: {sent_log.get_stats()}")

        if stop_event.is_set():
            self.logger.info("Simulation cancelled.")
        report.log_summary()
        return report

    async def _send(self, metric: Metric, timeout: float, report: SimulationReport) -> None:
        if timeout <= 0:
            raise TransportFailure(f"simulation deadline exceeded before sending {metric}")
        started = time.monotonic()
        try:
            await asyncio.wait_for(self.client.send(metric), timeout=timeout)
        except asyncio.TimeoutError as e:
            self.logger.error(f"Sending {metric} did not complete before the simulation deadline.")
            raise TransportFailure(f"sending {metric} exceeded the simulation deadline") from e
        except Exception as e:
            self.logger.error(f"Failed to send {metric}: {e}")
            raise
        report.record_send((time.monotonic() - started) * 1000)
