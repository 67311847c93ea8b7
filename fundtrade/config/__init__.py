"""
Configuration package.

This package contains configuration loading and validation.
"""

from fundtrade.config.config import Settings, parse_adapters
from fundtrade.config.config_validator import ConfigValidator, validate_and_log

__all__ = [
    "Settings",
    "parse_adapters",
    "ConfigValidator",
    "validate_and_log",
]
