"""Deterministic cave and forest map generation."""

from mapgen.errors import ConfigurationError, InvalidMap, MapGenError

__all__ = ["ConfigurationError", "InvalidMap", "MapGenError"]
