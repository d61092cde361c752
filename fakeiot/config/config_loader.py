"""
Configuration loader for the fake IoT simulator.
Loads YAML configuration files and provides access to simulation profiles.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from fakeiot.core.errors import InvalidConfiguration
from fakeiot.models.simulation import Simulation
from fakeiot.utils.helpers import parse_duration

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path(__file__).with_name("fakeiot.yaml")
DEFAULT_PROFILE = "default"


class ConfigLoader:
    """Load and manage simulation profiles from YAML files."""

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize the config loader.

        Args:
            config_file: Path to the YAML configuration file, the packaged
                defaults are used when omitted
        """
        self.config_file = Path(config_file) if config_file else DEFAULT_CONFIG_FILE
        self.config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        if not self.config_file.exists():
            raise InvalidConfiguration(f"config file not found: {self.config_file}")
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                self.config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise InvalidConfiguration(f"invalid YAML in config file {self.config_file}: {e}") from e
        logger.debug(f"Loaded configuration from {self.config_file}")

    def list_profiles(self) -> List[str]:
        return list(self.config.get('profiles', {}).keys())

    def get_profile(self, profile_name: str) -> Dict[str, Any]:
        """
        Get a simulation profile merged over the simulation defaults.

        Raises:
            InvalidConfiguration: If the profile is not defined
        """
        profiles = self.config.get('profiles', {})
        if profile_name not in profiles:
            available = ', '.join(self.list_profiles()) or 'none'
            raise InvalidConfiguration(
                f"profile {profile_name!r} not found, available profiles: {available}"
            )

        defaults = self.config.get('simulation', {})
        profile = profiles[profile_name] or {}
        merged = {**defaults, **profile}

        logger.debug(f"Loaded profile: {profile_name}")
        if 'description' in profile:
            logger.debug(f"  Description: {profile['description']}")
        return merged

    def apply_overrides(self, profile: Dict[str, Any], **overrides) -> Dict[str, Any]:
        """Apply CLI overrides to a profile. Only non-None values are applied."""
        result = profile.copy()
        for key, value in overrides.items():
            if value is not None:
                result[key] = value
                logger.debug(f"Override: {key} = {value}")
        return result

    def get_simulation(self, profile_name: str = DEFAULT_PROFILE, **overrides) -> Simulation:
        """
        Build simulation parameters from a profile and CLI overrides.

        Durations may be given as numbers of seconds or as strings like "30s".
        """
        settings = self.apply_overrides(self.get_profile(profile_name), **overrides)
        try:
            sim = Simulation(
                period=_as_seconds(settings['period']),
                freq=_as_seconds(settings['freq']),
                account_id=str(settings.get('account_id') or ''),
                users=int(settings['users']),
            )
        except KeyError as e:
            raise InvalidConfiguration(f"profile {profile_name!r} is missing setting {e}") from e
        except ValueError as e:
            raise InvalidConfiguration(f"profile {profile_name!r}: {e}") from e
        sim.check()
        return sim


def _as_seconds(value: Any) -> float:
    if isinstance(value, (int, float)):
        return float(value)
    return parse_duration(str(value))
