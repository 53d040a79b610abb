"""Failure types raised while talking to the users backend."""

from __future__ import annotations

from typing import Optional


class DashboardError(RuntimeError):
    """Base class for failures surfaced on the dashboard."""

    kind = "error"


class NetworkFailure(DashboardError):
    """Raised when the backend could not be reached at all."""

    kind = "network"


class HttpFailure(DashboardError):
    """Raised when the backend answers with a non-success status code."""

    kind = "http"

    def __init__(self, message: str, *, status_code: int, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class ParseFailure(DashboardError):
    """Raised when a response body does not have the expected shape."""

    kind = "parse"


__all__ = ["DashboardError", "HttpFailure", "NetworkFailure", "ParseFailure"]
