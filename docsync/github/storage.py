"""Storage backends for rendered document PDFs."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from ..models import PdfArtifact
from .branch import BranchView
from .errors import GitHubError
from .writer import UpsertOutcome

logger = logging.getLogger(__name__)

PDFS_ROOT = "pdfs"


class PdfStorage(ABC):
    """Somewhere a rendered PDF can be kept."""

    @abstractmethod
    async def store(self, pdf: PdfArtifact) -> str:
        """Store the PDF and return where it was stored."""


class GitHubPdfStorage(PdfStorage):
    """Store PDFs in a directory of a repository branch."""

    def __init__(self, branch: BranchView, root: str = PDFS_ROOT):
        self._branch = branch
        self._root = root.strip("/")

    async def store(self, pdf: PdfArtifact) -> str:
        """Upsert the PDF under ``/<root>/<filename>``.

        Raises:
            GitHubError: if the write was rejected.
        """
        path = f"/{self._root}/{pdf.filename}"
        view = self._branch
        outcome = await view.writer.upsert(
            view.owner, view.repo, view.branch, path, pdf.contents
        )
        if outcome is UpsertOutcome.FAILED:
            raise GitHubError(f"Failed to store {path} on branch {view.branch}")
        return path


class LocalPdfStorage(PdfStorage):
    """Store PDFs in a local directory."""

    def __init__(self, root: Path):
        self._root = root

    async def store(self, pdf: PdfArtifact) -> str:
        path = self._root / pdf.filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(pdf.contents)
        logger.info(f"Wrote {pdf.filename} to {path}")
        return str(path)
