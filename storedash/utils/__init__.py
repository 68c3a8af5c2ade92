"""Utility functions and helpers."""

from .exceptions import (
    raise_bad_request,
    raise_forbidden,
    raise_not_found,
    raise_service_unavailable,
    raise_unauthorized,
)

__all__ = [
    "raise_bad_request",
    "raise_forbidden",
    "raise_not_found",
    "raise_service_unavailable",
    "raise_unauthorized",
]
