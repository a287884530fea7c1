"""Exceptions raised by the rotation engine."""

from __future__ import annotations


class RotationError(Exception):
    """Base class for rotation failures."""


class ValidationError(RotationError, ValueError):
    """Rejected input. Raised before any backend call."""


class BackendUnavailable(RotationError, RuntimeError):
    """The shortening backend or performance data source failed.

    The whole batch is discarded; nothing partial is returned.
    """
