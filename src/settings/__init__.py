"""Environment settings for the ranking engine."""

from .app import AppSettings, get_settings


__all__ = ["AppSettings", "get_settings"]
