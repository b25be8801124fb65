"""Configuration loading for polycov."""

from polycov.config.loader import ConfigError, load_config
from polycov.config.models import PolycovConfig

__all__ = ["ConfigError", "PolycovConfig", "load_config"]
