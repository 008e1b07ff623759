"""Errors surfaced to callers of the analysis engine."""

from typing import Any


class UpstreamError(Exception):
    """The GitHub API call failed or returned unusable data."""

    code = "GITHUB_ERROR"

    def __init__(
        self,
        message: str,
        status: int = 500,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Return the error in the tool-response shape."""
        return {
            "status": self.status,
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            },
        }
