"""External user interfaces package."""

from .console import ConsoleRenderer

__all__ = ["ConsoleRenderer"]
