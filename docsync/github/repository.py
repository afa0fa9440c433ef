"""Repository handle and tracking manifest parsing."""

from __future__ import annotations

import csv
import io
import logging
import re
from dataclasses import dataclass
from typing import Any

from ..models import DocumentNumber
from ..models.document import DOCUMENTS_ROOT
from .branch import STATIC_IMAGES_ROOT, BranchView
from .client import GhClient
from .errors import ManifestError
from .fetcher import ContentFetcher
from .storage import PDFS_ROOT, GitHubPdfStorage
from .writer import ContentWriter

logger = logging.getLogger(__name__)

MANIFEST_PATH = "/.helpers/rfd.csv"

# Document numbers are signed 32-bit integers without padding whitespace
NUMBER_PATTERN = re.compile(r"-?[0-9]+")
NUMBER_MIN = -(2**31)
NUMBER_MAX = 2**31 - 1


@dataclass
class SyncRecord:
    """One manifest row: a document and the branch it should be read from."""

    number: DocumentNumber
    branch: BranchView


class RepositoryHandle:
    """A documents repository with its default branch resolved."""

    def __init__(
        self,
        client: GhClient,
        owner: str,
        repo: str,
        default_branch: str,
        fetcher: ContentFetcher | None = None,
        writer: ContentWriter | None = None,
        documents_root: str = DOCUMENTS_ROOT,
        static_images_root: str = STATIC_IMAGES_ROOT,
        manifest_path: str = MANIFEST_PATH,
        pdfs_root: str = PDFS_ROOT,
    ):
        self._client = client
        self._fetcher = fetcher or ContentFetcher(client)
        self._writer = writer or ContentWriter(client, self._fetcher)
        self._documents_root = documents_root
        self._static_images_root = static_images_root
        self._manifest_path = manifest_path
        self._pdfs_root = pdfs_root
        self.owner = owner
        self.repo = repo
        self.default_branch = default_branch

    @classmethod
    async def open(
        cls, client: GhClient, owner: str, repo: str, **kwargs: Any
    ) -> RepositoryHandle:
        """Look up the repository's default branch and return a handle.

        Raises:
            GitHubError: if the repository cannot be read.
        """
        default_branch = await client.get_default_branch(owner, repo)
        logger.info(f"Opened {owner}/{repo} (default branch {default_branch})")
        return cls(client, owner, repo, default_branch, **kwargs)

    def __repr__(self) -> str:
        return (
            f"RepositoryHandle(owner={self.owner!r}, repo={self.repo!r}, "
            f"default_branch={self.default_branch!r})"
        )

    @property
    def client(self) -> GhClient:
        return self._client

    def branch(self, name: str) -> BranchView:
        """Get an accessor for documents on a specific branch."""
        return BranchView(
            client=self._client,
            fetcher=self._fetcher,
            writer=self._writer,
            owner=self.owner,
            repo=self.repo,
            default_branch=self.default_branch,
            branch=name,
            documents_root=self._documents_root,
            static_images_root=self._static_images_root,
        )

    def default(self) -> BranchView:
        return self.branch(self.default_branch)

    def pdf_storage(self, branch: str | None = None) -> GitHubPdfStorage:
        """PDF storage under the configured PDFs directory, on the default branch by default."""
        return GitHubPdfStorage(self.branch(branch or self.default_branch), self._pdfs_root)

    async def parse_manifest(self) -> list[SyncRecord]:
        """Read the manifest on the default branch into sync records.

        Returns:
            One SyncRecord per valid row, in file order. Empty if the manifest
            could not be retrieved.

        Raises:
            ManifestError: if the manifest is not valid UTF-8.
        """
        remote = await self._fetcher.fetch(
            self.owner, self.repo, self._manifest_path, self.default_branch
        )
        if remote.is_empty:
            logger.warning(
                f"Could not retrieve manifest {self._manifest_path} "
                f"from {self.owner}/{self.repo}@{self.default_branch}"
            )
            return []

        try:
            text = remote.content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ManifestError(f"Manifest {self._manifest_path} is not valid UTF-8") from e

        return self.parse_manifest_text(text)

    def parse_manifest_text(self, text: str) -> list[SyncRecord]:
        """Parse manifest CSV text. Rows that do not parse are skipped."""
        reader = csv.DictReader(io.StringIO(text))
        records: list[SyncRecord] = []
        branch_marker = f"/{self.default_branch}/"

        while True:
            try:
                row = next(reader)
            except StopIteration:
                break
            except csv.Error as e:
                logger.debug(f"Skipping malformed manifest line {reader.line_num}: {e}")
                continue

            parsed = _parse_row(row)
            if parsed is None:
                logger.debug(f"Skipping manifest row {reader.line_num}: {row}")
                continue

            value, link = parsed
            number = DocumentNumber.of(value)
            if branch_marker in link:
                branch_name = self.default_branch
            else:
                branch_name = str(value)

            records.append(SyncRecord(number=number, branch=self.branch(branch_name)))

        return records


def _parse_row(row: dict[str | None, Any]) -> tuple[int, str] | None:
    # DictReader keeps extra fields under None and fills short rows with None
    if None in row or any(value is None for value in row.values()):
        return None

    num = row.get("num")
    link = row.get("link")
    if not isinstance(num, str) or not isinstance(link, str):
        return None
    if not NUMBER_PATTERN.fullmatch(num):
        return None

    value = int(num)
    if not NUMBER_MIN <= value <= NUMBER_MAX:
        return None
    return value, link
