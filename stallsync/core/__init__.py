"""Core: config, exception handlers, rate limiting and application bootstrap."""

from stallsync.core.config import get_settings

__all__ = ["get_settings"]
