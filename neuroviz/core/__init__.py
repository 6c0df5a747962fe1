"""Core contracts for neuroviz."""

from . import ports, types

__all__ = ["ports", "types"]
