"""
Error kinds raised by the content gateway and the HTTP layer.

Every error carries the HTTP status it maps to and a plain-text detail. The
application registers a single exception handler for ``GatewayError`` that
turns them into responses.
"""

from __future__ import annotations

from typing import List, Optional

from maven_proxy.domain.models import DirectoryEntry


class GatewayError(Exception):
    """Base class for every failure surfaced to a caller."""

    status_code: int = 500

    def __init__(self, detail: str, status_code: Optional[int] = None):
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class Unauthorized(GatewayError):
    """Missing or incorrect upload secret. Raised before any remote call."""

    status_code = 401

    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(detail)


class GatewayMisconfigured(GatewayError):
    """The process lacks configuration required for the operation."""

    status_code = 500


class MethodNotSupported(GatewayError):
    """Verb outside GET, PUT and OPTIONS."""

    status_code = 405

    def __init__(self, detail: str = "Method Not Allowed"):
        super().__init__(detail)


class UpstreamUnavailable(GatewayError):
    """Network-level failure talking to the remote API."""

    status_code = 502


class UpstreamRejected(GatewayError):
    """
    The remote API answered with a non-success status.

    ``body`` is the upstream response body, forwarded unmodified.
    """

    def __init__(self, status_code: int, body: str, content_type: Optional[str] = None):
        super().__init__(body, status_code=status_code)
        self.body = body
        self.content_type = content_type


class MalformedUpstreamResponse(GatewayError):
    """Success status, but the payload matches neither the file nor directory shape."""

    status_code = 502


class PathIsDirectory(GatewayError):
    """
    A file was requested but the path denotes a directory.

    Carries the parsed listing so callers can fall back to it without a
    second remote call.
    """

    status_code = 400

    def __init__(self, repo_path: str, entries: List[DirectoryEntry]):
        super().__init__(f"{repo_path} is a directory")
        self.repo_path = repo_path
        self.entries = entries
