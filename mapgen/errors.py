"""Exception types raised by the map generators."""


class MapGenError(Exception):
    """Base class for map generation errors."""


class ConfigurationError(MapGenError, ValueError):
    """Invalid generator configuration or builder misuse."""


class InvalidMap(MapGenError, ValueError):
    """A lattice function was handed a map it cannot work on."""


__all__ = ["MapGenError", "ConfigurationError", "InvalidMap"]
