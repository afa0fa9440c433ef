"""Drive branch operations for every document listed in the manifest."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

from ..models import DocumentFormat, DocumentNumber
from .client import PullRequestRef
from .errors import DocSyncError, GitHubError, NotFoundError
from .repository import RepositoryHandle, SyncRecord
from .writer import UpsertOutcome

logger = logging.getLogger(__name__)


class DocumentSyncState(Enum):
    """Outcome of syncing one document."""

    SYNCED = "synced"
    BRANCH_MISSING = "branch_missing"  # Manifest points at a branch that does not exist
    README_MISSING = "readme_missing"  # Neither README.adoc nor README.md
    FAILED = "failed"


@dataclass
class DocumentSyncResult:
    """Result of syncing one document."""

    number: DocumentNumber
    branch: str
    state: DocumentSyncState
    format: DocumentFormat | None = None
    readme_path: str | None = None
    images: list[tuple[str, UpsertOutcome]] = field(default_factory=list)
    pull_requests: list[PullRequestRef] = field(default_factory=list)
    latest_commit: datetime | None = None
    message: str = ""

    @property
    def success(self) -> bool:
        return self.state == DocumentSyncState.SYNCED


class SyncManager:
    """Sync documents one after another; one failure never stops the rest."""

    def __init__(self, repository: RepositoryHandle, copy_images: bool = True):
        """Initialize sync manager.

        Args:
            repository: Handle of the documents repository
            copy_images: Copy document images to the default branch
        """
        self._repository = repository
        self._copy_images = copy_images

    @property
    def repository(self) -> RepositoryHandle:
        return self._repository

    async def sync_all(
        self,
        records: list[SyncRecord] | None = None,
        on_progress: Callable[[str], None] | None = None,
    ) -> list[DocumentSyncResult]:
        """Sync every record, reading the manifest when none are given."""
        if records is None:
            records = await self._repository.parse_manifest()

        results = []
        for record in records:
            if on_progress:
                on_progress(f"Syncing document {record.number} ({record.branch.branch})")
            results.append(await self.sync_record(record))
        return results

    async def sync_record(self, record: SyncRecord) -> DocumentSyncResult:
        """Sync one document.

        Args:
            record: Manifest record to sync

        Returns:
            DocumentSyncResult describing what happened.
        """
        view = record.branch
        result = DocumentSyncResult(
            number=record.number,
            branch=view.branch,
            state=DocumentSyncState.SYNCED,
        )

        if not await view.exists_in_remote():
            result.state = DocumentSyncState.BRANCH_MISSING
            result.message = f"Branch {view.branch} does not exist"
            logger.warning(f"Document {record.number}: {result.message}")
            return result

        try:
            readme = await view.resolve_readme(record.number)
        except NotFoundError as e:
            result.state = DocumentSyncState.README_MISSING
            result.message = str(e)
            logger.warning(f"Document {record.number}: no README on {view.branch}")
            return result
        except GitHubError as e:
            result.state = DocumentSyncState.FAILED
            result.message = str(e)
            logger.error(f"Document {record.number}: reading README failed: {e}")
            return result

        result.format = readme.content.format
        result.readme_path = readme.path

        if self._copy_images:
            result.images = await view.copy_images_to_default_branch(record.number)

        try:
            result.latest_commit = await view.get_latest_commit_date(record.number)
        except DocSyncError as e:
            logger.warning(f"Document {record.number}: no latest commit date: {e}")

        result.pull_requests = await view.find_pull_requests()

        failed = [path for path, outcome in result.images if outcome is UpsertOutcome.FAILED]
        if failed:
            result.message = f"{len(failed)} image(s) failed to copy"
        else:
            result.message = "Up to date"
        logger.info(
            f"Document {record.number} ({view.branch}): {result.format.value}, "
            f"{len(result.images)} image(s), {len(result.pull_requests)} pull request(s)"
        )
        return result
