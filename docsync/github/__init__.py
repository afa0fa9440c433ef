"""GitHub-backed document synchronization."""

from .assets import AssetWalker, ImageAsset, is_image
from .branch import BranchView, Readme
from .client import GhClient, PullRequestRef
from .errors import (
    DocSyncError,
    GitHubError,
    ManifestError,
    MissingMetadataError,
    NotFoundError,
    PayloadTooLargeError,
    RateLimitError,
)
from .fetcher import ContentFetcher, RemoteFile
from .repository import RepositoryHandle, SyncRecord
from .storage import GitHubPdfStorage, LocalPdfStorage, PdfStorage
from .sync_manager import DocumentSyncResult, DocumentSyncState, SyncManager
from .writer import ContentWriter, UpsertOutcome

__all__ = [
    "AssetWalker",
    "BranchView",
    "ContentFetcher",
    "ContentWriter",
    "DocSyncError",
    "DocumentSyncResult",
    "DocumentSyncState",
    "GhClient",
    "GitHubError",
    "GitHubPdfStorage",
    "ImageAsset",
    "LocalPdfStorage",
    "ManifestError",
    "MissingMetadataError",
    "NotFoundError",
    "PayloadTooLargeError",
    "PdfStorage",
    "PullRequestRef",
    "RateLimitError",
    "Readme",
    "RemoteFile",
    "RepositoryHandle",
    "SyncManager",
    "SyncRecord",
    "UpsertOutcome",
    "is_image",
]
