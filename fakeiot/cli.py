#!/usr/bin/env python3
"""
Fake IoT device simulator - command line entry point.

Usage:
  fakeiot --url https://localhost:8443 --token secret test
  fakeiot --url https://localhost:8443 --token secret --ca-cert ca.pem run --period 1m --freq 500ms --users 50
"""

import sys
import uuid
import signal
import asyncio
import argparse
import logging
from pathlib import Path
from typing import List, Optional

import aiofiles

from fakeiot.config.config_loader import DEFAULT_PROFILE, ConfigLoader
from fakeiot.config.iot_config import DEFAULT_ENV_FILE, FakeIOTConfig, load_config_from_env
from fakeiot.core.client import ClientConfig, IngestionClient
from fakeiot.core.errors import FakeIOTError, InvalidConfiguration
from fakeiot.core.runner import Runner
from fakeiot.utils.helpers import parse_certificate_pem, parse_duration

EXIT_FAILURE = 255

main_logger = logging.getLogger("fakeiot")


def setup_logging(level: str, log_file: Optional[str] = None) -> None:
    """Configures console and optional file logging."""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
    console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(levelname)-8s - %(name)-30s - %(filename)s:%(lineno)d - %(message)s'
        ))
        root_logger.addHandler(file_handler)
        main_logger.debug(f"File logging initialized. Log file: {Path(log_file).resolve()}")


def _duration(value: str) -> float:
    try:
        return parse_duration(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fakeiot", description="Fake IOT device simulator.")
    parser.add_argument("--token", help="Bearer token (env: FAKEIOT_TOKEN).")
    parser.add_argument("--url", help="URL to emit metrics to (env: FAKEIOT_URL).")
    parser.add_argument("--ca-cert", dest="ca_cert",
                        help="Path to PEM-encoded file with trusted root CA certificate.")
    parser.add_argument("--debug", action="store_true", help="Turn on debug logging.")
    parser.add_argument("--log-file", help="Also write debug logs to this file.")
    parser.add_argument("--env-file", default=DEFAULT_ENV_FILE, help="Environment file with FAKEIOT_* settings.")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("test", help="Run compliance tests")

    run = commands.add_parser("run", help="Run simulation")
    run.add_argument("--period", type=_duration, help="Sim duration, e.g. 30s (default 30s).")
    run.add_argument("--freq", type=_duration, help="Sim frequency, e.g. 1s (default 1s).")
    run.add_argument("--account-id", dest="account_id", help="Account ID (default: random UUID).")
    run.add_argument("--users", type=int, help="Number of distinct users (default 100).")
    run.add_argument("--profile", default=DEFAULT_PROFILE, help="Simulation profile from the config file.")
    run.add_argument("--config", help="YAML file with simulation profiles.")
    return parser


async def load_ca_certificate(path: str) -> str:
    """Read and parse a PEM-encoded CA certificate file."""
    try:
        async with aiofiles.open(path, 'rb') as f:
            data = await f.read()
    except OSError as e:
        raise InvalidConfiguration(f"failed to read CA certificate {path}: {e}") from e
    return parse_certificate_pem(data)


def install_signal_handlers(stop_event: asyncio.Event) -> None:
    """Set stop_event on SIGINT or SIGTERM."""
    loop = asyncio.get_running_loop()

    def handle(signum: int) -> None:
        main_logger.debug(f"Got signal: {signal.Signals(signum).name}")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, handle, sig)
        except NotImplementedError:
            # Windows event loops do not support add_signal_handler
            signal.signal(sig, lambda signum, frame: loop.call_soon_threadsafe(handle, signum))


async def run(args: argparse.Namespace, config: FakeIOTConfig) -> None:
    url = args.url or config.url
    token = args.token if args.token is not None else config.token
    if not url:
        raise InvalidConfiguration("missing required --url")
    if token is None:
        raise InvalidConfiguration("missing required --token")

    ca_path = args.ca_cert or config.ca_file_path
    ca_cert = await load_ca_certificate(ca_path) if ca_path else None

    client = IngestionClient(ClientConfig(
        url=url,
        bearer_token=token,
        ca_cert=ca_cert,
        timeout=config.http_timeout,
        connection_limit=config.connection_limit,
    ))
    runner = Runner(client)

    stop_event = asyncio.Event()
    install_signal_handlers(stop_event)

    if args.command == "test":
        await runner.run_tests(stop_event)
    elif args.command == "run":
        sim = ConfigLoader(args.config).get_simulation(
            args.profile,
            period=args.period,
            freq=args.freq,
            users=args.users,
            account_id=args.account_id or str(uuid.uuid4()),
        )
        await runner.run_simulation(sim, stop_event)
    else:
        raise InvalidConfiguration(f"command {args.command!r} is not supported yet")


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    try:
        config = load_config_from_env(FakeIOTConfig(), args.env_file)
        setup_logging("DEBUG" if args.debug else config.log_level, args.log_file)
        asyncio.run(run(args, config))
    except FakeIOTError as e:
        main_logger.error(f"Fake IOT program has exited with error: {e}")
        sys.exit(EXIT_FAILURE)
    main_logger.info("Fake IOT program run successfully.")


if __name__ == "__main__":
    main()
