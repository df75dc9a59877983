"""Buildkite API exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


class BuildkiteError(Exception):
    """Base exception for Buildkite operations."""


class BuildkiteApiError(BuildkiteError):
    """Raised when a Buildkite endpoint answers outside the 2xx range.

    The response is kept so callers can still inspect its status and headers.
    """

    def __init__(
        self,
        method: str,
        url: str,
        status_code: int,
        message: str = "",
        body: bytes = b"",
        response: httpx.Response | None = None,
    ) -> None:
        self.method = method
        self.url = url
        self.status_code = status_code
        self.message = message
        self.body = body
        self.response = response
        super().__init__(f"{method} {url}: {status_code} {message}")


class BuildkiteNotFoundError(BuildkiteError):
    """Raised when a GraphQL lookup does not resolve to the expected object."""

    def __init__(self, kind: str, identifier: str) -> None:
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class BuildkiteGraphQLError(BuildkiteError):
    """Raised when a GraphQL response carries an errors payload."""

    def __init__(self, messages: list[str]) -> None:
        self.messages = messages
        super().__init__(f"GraphQL errors: {'; '.join(messages)}")


class BuildkiteWriteDisabledError(BuildkiteError):
    """Raised when a write operation is attempted in read-only mode."""

    def __init__(self) -> None:
        super().__init__("Write operations are disabled (BUILDKITE_READ_ONLY=true)")
