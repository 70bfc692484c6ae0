"""Configuration exceptions for Sprint Analytics."""


class ConfigError(Exception):
    """
    Exception raised for errors in the configuration.
    """
