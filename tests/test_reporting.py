import pytest

from fakeiot.core.reporting import ComplianceReport, OutcomeStatus, ScenarioOutcome, SimulationReport
from fakeiot.core.smart_logger import SmartLogger, SmartLoggerConfig, create_smart_logger


def test_simulation_report_percentiles():
    report = SimulationReport(users=2)
    for ms in range(1, 101):
        report.record_send(float(ms))
    report.finish()

    percentiles = report.calculate_percentiles()
    assert set(percentiles) == {"p50", "p90", "p95", "p99"}
    assert percentiles["p50"] == pytest.approx(50.5)

    summary = report.summary()
    assert summary["messages_sent"] == 100
    assert summary["latency_min_ms"] == 1.0
    assert summary["latency_max_ms"] == 100.0
    assert summary["latency_avg_ms"] == pytest.approx(50.5)


def test_empty_simulation_report():
    report = SimulationReport(users=1)
    report.finish()
    assert report.calculate_percentiles() == {}
    summary = report.summary()
    assert summary["messages_sent"] == 0
    assert "percentiles" not in summary
    report.log_summary()


def test_compliance_report_counts_warnings_as_passes():
    report = ComplianceReport()
    report.add(ScenarioOutcome("a", OutcomeStatus.PASS))
    report.add(ScenarioOutcome("b", OutcomeStatus.WARN, "could be better"))
    assert report.passed
    assert [o.name for o in report.warnings] == ["b"]

    report.add(ScenarioOutcome("c", OutcomeStatus.FAIL, "broken"))
    assert not report.passed
    assert [o.describe() for o in report.failures] == ["c: broken"]
    assert report.summary() == "3 scenarios: 2 passed (1 with warnings), 1 failed"


def test_smart_logger_logs_initial_then_periodic():
    logger = create_smart_logger(expected_sends=1000, initial_log_count=3)
    assert logger.config.periodic_interval == 20

    logged = [i for i in range(1, 101) if logger.should_log()]
    assert logged[:3] == [1, 2, 3]
    assert logged[3:] == [20, 40, 60, 80, 100]
    assert logger.get_stats()["total_iterations"] == 100


def test_disabled_smart_logger_logs_everything():
    logger = SmartLogger(SmartLoggerConfig(initial_log_count=1, periodic_interval=50, enabled=False))
    assert all(logger.should_log() for _ in range(10))
