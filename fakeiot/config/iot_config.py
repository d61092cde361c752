"""
Configuration module for the fake IoT simulator.
Contains the configuration dataclass and environment loading utilities.
"""

import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fakeiot.core.errors import InvalidConfiguration

DEFAULT_ENV_FILE = "fakeiot.env"


@dataclass
class FakeIOTConfig:
    """Connection settings and credentials for the ingestion endpoint."""
    url: Optional[str] = None          # base URL metrics are emitted to
    token: Optional[str] = None        # bearer token
    ca_file_path: Optional[str] = None  # PEM file with the trusted root CA

    http_timeout: float = 30.0
    connection_limit: int = 10
    log_level: str = "INFO"


def read_env_file(env_file: str) -> None:
    """Export KEY=value lines of an env file into os.environ, keeping variables already set."""
    env_path = Path(env_file)
    if not env_path.exists():
        return
    with open(env_path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if line.startswith('export '):
                line = line[7:]
            if '=' in line and not line.startswith('#'):
                key, value = line.split('=', 1)
                os.environ.setdefault(key.strip(), value.strip().strip('"\''))


def load_config_from_env(config: FakeIOTConfig, env_file: str = DEFAULT_ENV_FILE) -> FakeIOTConfig:
    """Load configuration from an env file and the environment, updating the config object."""
    logger = logging.getLogger(__name__)

    read_env_file(env_file)

    config.url = os.getenv('FAKEIOT_URL', config.url)
    config.token = os.getenv('FAKEIOT_TOKEN', config.token)
    config.ca_file_path = os.getenv('FAKEIOT_CA_CERT', config.ca_file_path)
    config.http_timeout = _env_number('FAKEIOT_HTTP_TIMEOUT', float, config.http_timeout)
    config.connection_limit = _env_number('FAKEIOT_CONNECTION_LIMIT', int, config.connection_limit)
    config.log_level = os.getenv('FAKEIOT_LOG_LEVEL', config.log_level)

    logger.debug(f"Loaded configuration: URL={config.url}, timeout={config.http_timeout}s")
    if config.ca_file_path:
        logger.debug(f"CA File Path: {config.ca_file_path} (Exists: {Path(config.ca_file_path).exists()})")
    return config


def _env_number(name: str, convert, default):
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return convert(value)
    except ValueError as e:
        raise InvalidConfiguration(f"invalid value for {name}: {value!r}") from e
