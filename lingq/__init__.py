"""LingQ private API helper module."""

from .client import (
    ConfigError,
    InvalidResponseError,
    LessonCreationError,
    LessonNotFoundError,
    LingQClient,
    LingQError,
    LingQHTTPError,
)
from .config import Settings
from .runner import CheckRunner, RunSummary

__all__ = [
    "CheckRunner",
    "ConfigError",
    "InvalidResponseError",
    "LessonCreationError",
    "LessonNotFoundError",
    "LingQClient",
    "LingQError",
    "LingQHTTPError",
    "RunSummary",
    "Settings",
]
