"""Realtime delivery to connected web clients."""

from .manager import ConnectionManager

__all__ = ["ConnectionManager"]
