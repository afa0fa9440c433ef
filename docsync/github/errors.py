"""Exceptions raised by the GitHub content layer."""

from __future__ import annotations


class DocSyncError(Exception):
    """Base class for docsync errors."""


class GitHubError(DocSyncError):
    """A GitHub API call failed."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class NotFoundError(GitHubError):
    """The requested file, branch or commit does not exist."""

    def __init__(self, message: str):
        super().__init__(message, status=404)


class RateLimitError(GitHubError):
    """The API rate limit was exceeded.

    Attributes:
        reset_seconds: Seconds until the server says the limit resets.
    """

    def __init__(self, message: str, reset_seconds: float = 0.0, status: int = 403):
        super().__init__(message, status=status)
        self.reset_seconds = reset_seconds


class PayloadTooLargeError(GitHubError):
    """The contents API refused to return a file because it is too large."""


class MissingMetadataError(DocSyncError):
    """A remote object is present but lacks a required field."""


class ManifestError(DocSyncError):
    """The tracking manifest could not be decoded."""
