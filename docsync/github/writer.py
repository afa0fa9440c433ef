"""Idempotent create-or-update of single files in a GitHub repository."""

from __future__ import annotations

import logging
from enum import Enum

from .client import GhClient
from .diff import is_timestamp_only_change
from .errors import GitHubError
from .fetcher import ContentFetcher, normalize_path, trim_bytes

logger = logging.getLogger(__name__)

CREATE_MESSAGE = (
    "Creating file content {path} programatically\n\n"
    "This is done from the docsync ContentWriter.upsert function."
)
UPDATE_MESSAGE = (
    "Updating file content {path} programatically\n\n"
    "This is done from the docsync ContentWriter.upsert function."
)


class UpsertOutcome(Enum):
    """What an upsert did."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"  # Same bytes, or only PDF timestamps changed
    FAILED = "failed"  # The write call was rejected


class ContentWriter:
    """Create or update a file, writing only when the content really changed."""

    def __init__(
        self,
        client: GhClient,
        fetcher: ContentFetcher | None = None,
        create_message: str = CREATE_MESSAGE,
        update_message: str = UPDATE_MESSAGE,
        require_creation_date_replacement: bool = False,
    ):
        self._client = client
        self._fetcher = fetcher or ContentFetcher(client)
        self._create_message = create_message
        self._update_message = update_message
        self._require_creation_date_replacement = require_creation_date_replacement

    @property
    def fetcher(self) -> ContentFetcher:
        return self._fetcher

    async def upsert(
        self,
        owner: str,
        repo: str,
        branch: str,
        path: str,
        content: bytes,
    ) -> UpsertOutcome:
        """Create the file if missing, update it if its content changed.

        Issues at most one write call. Write failures are logged, not raised.

        Args:
            owner: Repository owner
            repo: Repository name
            branch: Branch to write to
            path: File path within repository
            content: New file content

        Returns:
            The outcome of the call.
        """
        new_content = trim_bytes(content)
        file_path = normalize_path(path)

        existing = await self._fetcher.fetch(owner, repo, file_path, branch)

        if existing.is_empty:
            return await self._create(owner, repo, branch, file_path, new_content)

        if trim_bytes(existing.content) == new_content:
            logger.info(f"File contents at {file_path} are the same, no update needed")
            return UpsertOutcome.UNCHANGED

        if is_timestamp_only_change(
            existing.content,
            new_content,
            require_creation_date_replacement=self._require_creation_date_replacement,
        ):
            logger.info(
                f"File contents at {file_path} only differ in PDF timestamps, no update needed"
            )
            return UpsertOutcome.UNCHANGED

        try:
            await self._client.update_file(
                owner,
                repo,
                file_path,
                new_content,
                self._update_message.format(path=file_path),
                existing.sha,
                branch,
            )
        except GitHubError as e:
            logger.error(f"Updating file at {file_path} on branch {branch} failed: {e}")
            return UpsertOutcome.FAILED

        logger.info(f"Updated file at {file_path} on branch {branch}")
        return UpsertOutcome.UPDATED

    async def _create(
        self, owner: str, repo: str, branch: str, path: str, content: bytes
    ) -> UpsertOutcome:
        try:
            await self._client.create_file(
                owner,
                repo,
                path,
                content,
                self._create_message.format(path=path),
                branch,
            )
        except GitHubError as e:
            logger.error(f"Creating file at {path} on branch {branch} failed: {e}")
            return UpsertOutcome.FAILED

        logger.info(f"Created file at {path} on branch {branch}")
        return UpsertOutcome.CREATED
