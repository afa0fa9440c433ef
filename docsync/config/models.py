"""Configuration models for docsync."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ..github.branch import STATIC_IMAGES_ROOT
from ..github.fetcher import RATE_LIMIT_GRACE_SECONDS
from ..github.repository import MANIFEST_PATH
from ..github.storage import PDFS_ROOT
from ..github.writer import CREATE_MESSAGE, UPDATE_MESSAGE
from ..models.document import DOCUMENTS_ROOT


class RepositorySettings(BaseModel):
    """The GitHub repository holding the documents."""

    owner: str = Field(..., description="GitHub repository owner/organization")
    repo: str = Field(default="rfd", description="GitHub repository name")


class LayoutSettings(BaseModel):
    """Where things live inside the repository."""

    documents_root: str = Field(
        default=DOCUMENTS_ROOT, description="Directory holding one directory per document"
    )
    static_images_root: str = Field(
        default=STATIC_IMAGES_ROOT,
        description="Directory on the default branch images are copied to",
    )
    pdfs_root: str = Field(default=PDFS_ROOT, description="Directory PDFs are stored in")
    manifest_path: str = Field(default=MANIFEST_PATH, description="Tracking manifest CSV")


class RateLimitSettings(BaseModel):
    """Behavior when the API rate limit is hit."""

    grace_seconds: float = Field(
        default=RATE_LIMIT_GRACE_SECONDS,
        description="Seconds added to the server's reset interval",
    )
    retry_after_wait: bool = Field(
        default=False, description="Read the file again once after waiting"
    )


class WriterSettings(BaseModel):
    """Commit messages and change detection for writes."""

    create_message: str = Field(default=CREATE_MESSAGE)
    update_message: str = Field(default=UPDATE_MESSAGE)
    require_creation_date_replacement: bool = Field(
        default=False,
        description="Only skip PDF updates that also replace /CreationDate",
    )


class DocSyncSettings(BaseModel):
    """Global settings."""

    gh_timeout: float = Field(default=30, description="Timeout for one gh api call, in seconds")
    gh_path: str = Field(default="gh", description="gh CLI executable")
    log_level: str = Field(default="INFO")
    copy_images: bool = Field(default=True, description="Copy images to the default branch")


class DocSyncConfig(BaseModel):
    """Root configuration model."""

    version: int = Field(default=1)
    repository: RepositorySettings | None = None
    layout: LayoutSettings = Field(default_factory=LayoutSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    writer: WriterSettings = Field(default_factory=WriterSettings)
    settings: DocSyncSettings = Field(default_factory=DocSyncSettings)
