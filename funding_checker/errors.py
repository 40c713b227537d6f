"""Custom exceptions and error handling for the Funding Manifest Checker."""

from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)


class GitHubError(Exception):
    """Base exception for GitHub-related errors."""
    status_code = 502
    message = "GitHub API error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class RepoNotFoundError(GitHubError):
    """Repository not found."""
    status_code = 404
    message = "Repository not found"


class RepoAccessDeniedError(GitHubError):
    """Repository is private or access denied."""
    status_code = 403
    message = "Repository is private or access denied"


class RateLimitError(GitHubError):
    """GitHub API rate limit exceeded."""
    status_code = 429
    message = "GitHub API rate limit exceeded. Please try again later."


class CheckError(Exception):
    """A request that cannot be answered, reported to the caller with its kind."""

    def __init__(self, message: str, kind: str, status_code: int = 400):
        self.message = message
        self.kind = kind
        self.status_code = status_code
        super().__init__(message)


def create_error_response(message: str, kind: Optional[str] = None) -> Dict[str, Any]:
    """
    Creates the error body shared by every endpoint.

    Args:
        message: Human-readable description
        kind: Outcome or failure kind, such as ``unsupported_host`` or ``rate_limited``

    Returns:
        Dict with status="error", the message and, when known, the kind
    """
    body: Dict[str, Any] = {"status": "error", "message": message}
    if kind is not None:
        body["kind"] = kind
    logger.info(f"Error response ({kind or 'unspecified'}): {message}")
    return body
