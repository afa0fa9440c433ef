"""Resilient single-file reads from a GitHub repository."""

from __future__ import annotations

import asyncio
import base64
import logging
import posixpath
from dataclasses import dataclass

from .client import GhClient
from .errors import GitHubError, NotFoundError, PayloadTooLargeError, RateLimitError

logger = logging.getLogger(__name__)

# Added to the reset interval reported by the server
RATE_LIMIT_GRACE_SECONDS = 5.0


@dataclass
class RemoteFile:
    """A file read from the remote.

    An instance with empty content and an empty sha means the file could not
    be retrieved. A genuinely empty file still carries its sha.
    """

    path: str
    content: bytes = b""
    sha: str = ""
    link: str = ""

    @classmethod
    def empty(cls, path: str) -> RemoteFile:
        return cls(path=path)

    @property
    def is_empty(self) -> bool:
        return not self.content and not self.sha


def normalize_path(path: str) -> str:
    """Return the path with a leading separator."""
    if path.startswith("/"):
        return path
    return "/" + path


def trim_bytes(data: bytes) -> bytes:
    """Strip leading and trailing tabs and spaces, keeping newlines."""
    return data.strip(b" \t")


class ContentFetcher:
    """Read files through the contents API with large-file and rate-limit fallbacks."""

    def __init__(
        self,
        client: GhClient,
        rate_limit_grace: float = RATE_LIMIT_GRACE_SECONDS,
        retry_after_rate_limit: bool = False,
    ):
        """Initialize fetcher.

        Args:
            client: Shared GitHub client
            rate_limit_grace: Seconds added to the server's reset interval
            retry_after_rate_limit: Read the file again once after waiting out
                a rate limit instead of returning the empty result
        """
        self._client = client
        self._rate_limit_grace = rate_limit_grace
        self._retry_after_rate_limit = retry_after_rate_limit

    async def get(self, owner: str, repo: str, path: str, branch: str) -> RemoteFile:
        """Read a file, raising on failure.

        Rate limits are waited out and produce the empty result (or one retry
        when configured). Files too large for the contents API are read
        through the Git Data API.

        Raises:
            NotFoundError: if the file does not exist on the branch.
            GitHubError: for any other API failure.
        """
        file_path = normalize_path(path)
        try:
            return await self._read(owner, repo, file_path, branch)
        except RateLimitError as e:
            await self._wait_for_reset(e, file_path, branch)

        if not self._retry_after_rate_limit:
            return RemoteFile.empty(file_path)

        try:
            return await self._read(owner, repo, file_path, branch)
        except RateLimitError:
            logger.warning(f"Still rate limited reading {file_path} on branch {branch}")
            return RemoteFile.empty(file_path)

    async def fetch(self, owner: str, repo: str, path: str, branch: str) -> RemoteFile:
        """Read a file, returning the empty result on any failure."""
        file_path = normalize_path(path)
        try:
            return await self.get(owner, repo, file_path, branch)
        except NotFoundError:
            logger.info(f"No file at {file_path} on branch {branch}")
        except GitHubError as e:
            logger.warning(f"Getting the file at {file_path} on branch {branch} failed: {e}")
        return RemoteFile.empty(file_path)

    async def _wait_for_reset(self, error: RateLimitError, path: str, branch: str) -> None:
        delay = error.reset_seconds + self._rate_limit_grace
        logger.warning(
            f"Rate limited reading {path} on branch {branch}, sleeping for {delay:.0f}s"
        )
        await asyncio.sleep(delay)

    async def _read(self, owner: str, repo: str, path: str, branch: str) -> RemoteFile:
        try:
            file = await self._client.get_content_file(owner, repo, path, branch)
        except PayloadTooLargeError:
            logger.info(f"{path} is too large for the contents API, reading its blob")
            return await self._read_blob(owner, repo, path, branch)

        # Files between 1 and 100 MB come back without content
        if file.encoding == "none":
            logger.info(f"{path} came back without content, reading its blob")
            return await self._read_blob(owner, repo, path, branch)

        return RemoteFile(
            path=path,
            content=file.decoded(),
            sha=file.sha,
            link=file.html_url,
        )

    async def _read_blob(self, owner: str, repo: str, path: str, branch: str) -> RemoteFile:
        """Find the file's sha in its parent listing and read the blob."""
        parent = posixpath.dirname(path)
        target = path.lstrip("/")

        for entry in await self._client.list_directory(owner, repo, parent, branch):
            if entry.path != target:
                continue

            blob = await self._client.get_blob(owner, repo, entry.sha)
            if blob.encoding == "base64":
                content = base64.b64decode(blob.content.replace("\n", ""))
            else:
                content = blob.content.encode("utf-8")
            return RemoteFile(
                path=path,
                content=trim_bytes(content),
                sha=entry.sha,
                link=entry.html_url,
            )

        raise NotFoundError(f"{path} not found in listing of {parent} on branch {branch}")
