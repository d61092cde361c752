import pytest

from fakeiot import cli
from fakeiot.core.errors import AggregateFailure, InvalidConfiguration

PEM_BLOCK = "-----BEGIN CERTIFICATE-----\nTUlJQg==\n-----END CERTIFICATE-----"


class FakeRunner:
    instances = []

    def __init__(self, client, smart_logging=True):
        self.client = client
        self.calls = []
        FakeRunner.instances.append(self)

    async def run_tests(self, stop_event=None):
        self.calls.append(("test", None))
        raise AggregateFailure(["Sending OK request: broken"])

    async def run_simulation(self, sim, stop_event=None):
        self.calls.append(("run", sim))


@pytest.fixture
def cli_env(monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "setup_logging", lambda level, log_file=None: None)
    monkeypatch.setattr(cli, "Runner", FakeRunner)
    for name in ("FAKEIOT_URL", "FAKEIOT_TOKEN", "FAKEIOT_CA_CERT"):
        monkeypatch.delenv(name, raising=False)
    FakeRunner.instances = []
    return ["--env-file", str(tmp_path / "missing.env")]


def test_parser_reads_go_style_durations():
    args = cli.build_parser().parse_args(["--url", "https://x", "run", "--period", "1m30s", "--freq", "250ms"])
    assert args.command == "run"
    assert args.period == 90.0
    assert args.freq == 0.25
    assert args.users is None
    assert args.profile == "default"


def test_parser_rejects_bad_duration():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["run", "--period", "soon"])


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["--url", "https://x"])


def test_run_command_builds_simulation(cli_env):
    cli.main(cli_env + [
        "--url", "https://iot.example.com", "--token", "secret",
        "run", "--period", "2s", "--freq", "500ms", "--users", "3", "--account-id", "acct",
    ])

    runner = FakeRunner.instances[0]
    assert runner.client.endpoint == "https://iot.example.com/metrics"
    assert runner.client.config.bearer_token == "secret"
    kind, sim = runner.calls[0]
    assert kind == "run"
    assert (sim.period, sim.freq, sim.users, sim.account_id) == (2.0, 0.5, 3, "acct")


def test_run_command_generates_account_id(cli_env):
    cli.main(cli_env + ["--url", "https://iot.example.com", "--token", "secret", "run", "--profile", "smoke"])

    _, sim = FakeRunner.instances[0].calls[0]
    assert sim.users == 5
    assert len(sim.account_id) == 36


def test_failed_compliance_exits_with_255(cli_env):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(cli_env + ["--url", "https://iot.example.com", "--token", "secret", "test"])
    assert exc_info.value.code == cli.EXIT_FAILURE == 255


def test_plain_http_url_exits_with_255(cli_env):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(cli_env + ["--url", "http://iot.example.com", "--token", "secret", "test"])
    assert exc_info.value.code == 255
    assert FakeRunner.instances == []


def test_missing_url_exits_with_255(cli_env):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(cli_env + ["--token", "secret", "test"])
    assert exc_info.value.code == 255


def test_zero_users_exits_with_255(cli_env):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(cli_env + ["--url", "https://iot.example.com", "--token", "t", "run", "--users", "0"])
    assert exc_info.value.code == 255
    assert FakeRunner.instances[0].calls == []


@pytest.mark.asyncio
async def test_load_ca_certificate(tmp_path):
    path = tmp_path / "ca.pem"
    path.write_text(PEM_BLOCK + "\n")
    assert await cli.load_ca_certificate(str(path)) == PEM_BLOCK + "\n"


@pytest.mark.asyncio
async def test_load_ca_certificate_missing_file(tmp_path):
    with pytest.raises(InvalidConfiguration, match="failed to read CA certificate"):
        await cli.load_ca_certificate(str(tmp_path / "missing.pem"))


@pytest.mark.asyncio
async def test_load_ca_certificate_without_pem_block(tmp_path):
    path = tmp_path / "ca.pem"
    path.write_text("not a certificate")
    with pytest.raises(InvalidConfiguration, match="expected PEM-encoded block"):
        await cli.load_ca_certificate(str(path))


def test_malformed_env_setting_exits_with_255(cli_env, monkeypatch):
    monkeypatch.setenv("FAKEIOT_HTTP_TIMEOUT", "soon")
    with pytest.raises(SystemExit) as exc_info:
        cli.main(cli_env + ["--url", "https://iot.example.com", "--token", "secret", "test"])
    assert exc_info.value.code == 255
    assert FakeRunner.instances == []
