"""QuickPe digital wallet service."""

__version__ = "1.0.0"
