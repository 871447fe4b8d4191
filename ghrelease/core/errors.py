"""Exception hierarchy for ghrelease."""
from typing import Any


class ReleaseError(Exception):
    """Base class for release publishing errors."""


class GitHubAPIError(ReleaseError):
    """GitHub API returned a non-success status."""

    def __init__(self, status: int, message: str, errors: list[Any] | None = None):
        self.status = status
        self.message = message
        self.errors = errors or []
        super().__init__(f"GitHub API error {status}: {message}")

    @classmethod
    def from_response(cls, response) -> 'GitHubAPIError':
        message, errors = decode_error_body(response)
        return cls(response.status_code, message, errors)


class NotFoundError(GitHubAPIError):
    """Requested resource does not exist (404)."""


class RetryExhausted(ReleaseError):
    """Release creation kept failing until no retries were left."""


class UploadFailed(ReleaseError):
    """Asset upload was not acknowledged with 201 Created."""

    def __init__(self, name: str, status: int, message: str, errors: list[Any] | None = None):
        self.name = name
        self.status = status
        self.message = message
        self.errors = errors or []
        super().__init__(
            f"Failed to upload release asset {name}. "
            f"received status code {status}\n{message}\n{self.errors}",
        )


class UnmatchedFilesError(ReleaseError):
    """File patterns matched nothing and unmatched files are fatal."""

    def __init__(self, patterns: list[str]):
        self.patterns = patterns
        super().__init__(
            'Patterns do not match any files: ' + ', '.join(patterns),
        )


def decode_error_body(response) -> tuple[str, list[Any]]:
    """Extract (message, errors) from a GitHub error response body."""
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason or '', []
    if not isinstance(payload, dict):
        return str(payload), []
    return payload.get('message', ''), payload.get('errors') or []
