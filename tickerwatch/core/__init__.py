"""Core primitives shared across all subsystems.

Enums, type aliases, time helpers and the error hierarchy live here so that the
feed, market and runtime packages can import them without circular imports.
"""

from . import enums, errors, time_utils, types

__all__ = ["enums", "errors", "time_utils", "types"]
