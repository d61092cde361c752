"""
Compliance test harness for the fake IoT simulator.
Runs a fixed series of scenarios to make sure the server performs as expected.
"""

import uuid
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Tuple

from fakeiot.core.errors import AggregateFailure, FakeIOTError, is_access_denied, is_bad_parameter
from fakeiot.core.reporting import ComplianceReport, OutcomeStatus, ScenarioOutcome
from fakeiot.models.metric import Metric, utc_now

# Valid test account that should be recognized by the server
VALID_TEST_ACCOUNT_ID = "testacct-0000-0000-0000-000000000000"

# Valid test user ID that should be recognized by the server
VALID_TEST_USER_ID = "testuser-0000-0000-0000-000000000000"

# Status and reason of one scenario run
Verdict = Tuple[OutcomeStatus, str]
Scenario = Callable[[], Awaitable[Verdict]]


def valid_test_metric() -> Metric:
    return Metric(account_id=VALID_TEST_ACCOUNT_ID, user_id=VALID_TEST_USER_ID, timestamp=utc_now())


class ComplianceHarness:
    """Fixed battery of independent protocol conformance scenarios."""

    def __init__(self, client):
        self.client = client
        self.logger = logging.getLogger(__name__)

    def scenarios(self) -> List[Tuple[str, Scenario]]:
        return [
            ("Sending OK request", self.send_ok),
            ("Sending empty request", self.send_empty_metric),
            ("Sending corrupted request", self.send_corrupted_metric),
            ("Sending bogus request with empty token", lambda: self.send_bogus_auth("")),
            ("Sending bogus request with random token", lambda: self.send_bogus_auth(str(uuid.uuid4()))),
        ]

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> ComplianceReport:
        """
        Run every scenario in order and aggregate the failures.

        Returns:
            The compliance report when no scenario failed

        Raises:
            AggregateFailure: carrying the description of every failed scenario
        """
        self.logger.info("Starting compliance tests.")
        report = ComplianceReport()
        for name, scenario in self.scenarios():
            if stop_event is not None and stop_event.is_set():
                outcome = ScenarioOutcome(name, OutcomeStatus.FAIL, "not run: cancelled")
            else:
                self.logger.debug(f"[TEST] {name}...")
                status, reason = await scenario()
                outcome = ScenarioOutcome(name, status, reason)
            self._log_outcome(outcome)
            report.add(outcome)

        self.logger.info(f"Compliance tests finished: {report.summary()}.")
        if not report.passed:
            raise AggregateFailure([o.describe() for o in report.failures], report=report)
        return report

    def _log_outcome(self, outcome: ScenarioOutcome) -> None:
        if outcome.status is OutcomeStatus.FAIL:
            self.logger.error(f"[FAIL] {outcome.name}: {outcome.reason}")
        elif outcome.status is OutcomeStatus.WARN:
            self.logger.warning(f"[WARN] {outcome.name}: {outcome.reason}")
            self.logger.info(f"[PASS] {outcome.name}.")
        else:
            self.logger.info(f"[PASS] {outcome.name}.")

    async def send_ok(self) -> Verdict:
        """Send a valid metric and expect it to succeed."""
        try:
            await self.client.send(valid_test_metric())
        except FakeIOTError as e:
            return _fail(f"expected success, have received {str(e)!r} error from server")
        return _pass()

    async def send_empty_metric(self) -> Verdict:
        """Send an empty metric and expect an error."""
        try:
            await self.client.send(Metric())
        except FakeIOTError as e:
            if not is_bad_parameter(e):
                return _warn(
                    f"sent an empty metric and received an error {str(e)!r}, "
                    f"however bad request response would have been better",
                )
            return _pass()
        return _fail("sent an empty metric and received OK response, we expected HTTP Bad request error")

    async def send_corrupted_metric(self) -> Verdict:
        """Send a non-JSON metric and expect an error."""
        try:
            await self.client.send_corrupted()
        except FakeIOTError as e:
            if not is_bad_parameter(e):
                return _warn(
                    f"sent non-JSON metric and received an error {str(e)!r}, "
                    f"however bad request response would have been better",
                )
            return _pass()
        return _fail("sent non-JSON metric and received OK response, we expected HTTP Bad request error")

    async def send_bogus_auth(self, bearer_token: str) -> Verdict:
        """Send a metric with bogus authentication and expect access to be denied."""
        self.logger.debug(f"[TEST] Sending invalid authentication with bearer auth token {bearer_token!r}.")
        bogus_client = self.client.with_bearer_token(bearer_token)
        try:
            async with bogus_client:
                await bogus_client.send(valid_test_metric())
        except FakeIOTError as e:
            if not is_access_denied(e):
                return _fail(
                    f"expected access denied HTTP error, have received {str(e)!r} error from server"
                )
            return _pass()
        return _fail("expected access denied HTTP error, have received OK from server")


def _pass() -> Verdict:
    return OutcomeStatus.PASS, ""


def _warn(reason: str) -> Verdict:
    return OutcomeStatus.WARN, reason


def _fail(reason: str) -> Verdict:
    return OutcomeStatus.FAIL, reason
