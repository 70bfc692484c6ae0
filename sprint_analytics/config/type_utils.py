"""Type utilities for configuration processing.

This module provides utilities for type conversion and validation in
configuration files.
"""

from .exceptions import ConfigError


def force_list(val) -> list:
    """
    Ensure the value is a list.
    """
    if val is None:
        return []
    return list(val) if isinstance(val, (list, tuple)) else [val]


def force_int(key, value) -> int:
    """
    Convert value to int, raise ConfigError on failure.
    """
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(
            f"Could not convert value `{value}` for key `{expand_key(key)}` to integer"
        ) from None


def force_positive_int(key, value) -> int:
    """
    Convert value to an int greater than zero, raise ConfigError otherwise.
    """
    result = force_int(key, value)
    if result <= 0:
        raise ConfigError(
            f"Value `{value}` for key `{expand_key(key)}` must be greater than zero"
        )
    return result


def force_float(key, value) -> float:
    """
    Convert value to float, raise ConfigError on failure.
    """
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(
            f"Could not convert value `{value}` for key `{expand_key(key)}` to decimal"
        ) from None


def force_fraction(key, value) -> float:
    """
    Convert value to a float between 0 and 1 inclusive.
    """
    result = force_float(key, value)
    if not 0 <= result <= 1:
        raise ConfigError(
            f"Value `{value}` for key `{expand_key(key)}` must be between 0 and 1"
        )
    return result


def expand_key(key) -> str:
    """
    Expand config key for display.
    """
    return str(key).replace("_", " ").lower()
