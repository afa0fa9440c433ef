"""Collect image assets stored next to a document."""

from __future__ import annotations

import io
import logging
import mimetypes
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from .client import DirectoryEntry, GhClient
from .errors import GitHubError
from .fetcher import ContentFetcher

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".svg", ".png", ".jpg", ".jpeg")

# The document directory is level 1, its subdirectories level 2.
# Anything deeper is not walked.
MAX_DEPTH = 2


def is_image(filename: str) -> bool:
    """Check the file name against the image extension allow-list."""
    return filename.lower().endswith(IMAGE_EXTENSIONS)


@dataclass
class ImageAsset:
    """An image file read from a branch."""

    path: str
    name: str
    content: bytes
    sha: str = ""
    link: str = ""
    size: int = 0
    mime_type: str | None = None
    width: int | None = None
    height: int | None = None


def _dimensions(name: str, content: bytes) -> tuple[int | None, int | None]:
    if name.lower().endswith(".svg"):
        return None, None
    try:
        with Image.open(io.BytesIO(content)) as img:
            return img.width, img.height
    except (UnidentifiedImageError, OSError) as e:
        logger.debug(f"Could not read dimensions of {name}: {e}")
        return None, None


class AssetWalker:
    """Walk a document directory, at most two levels deep, collecting images."""

    def __init__(self, client: GhClient, fetcher: ContentFetcher):
        self._client = client
        self._fetcher = fetcher

    async def collect_images(
        self, owner: str, repo: str, branch: str, directory: str
    ) -> list[ImageAsset]:
        """Fetch every image in the directory and its direct subdirectories.

        Images come back in listing order; a subdirectory's images are placed
        where the subdirectory appears in the parent listing. Failed listings
        and reads are logged and skipped.

        Args:
            owner: Repository owner
            repo: Repository name
            branch: Branch to read from
            directory: Document directory, e.g. ``/rfd/0042``

        Returns:
            List of ImageAsset in traversal order.
        """
        images: list[ImageAsset] = []

        entries = await self._list(owner, repo, branch, directory)
        for entry in entries:
            logger.debug(f"Processing {entry.path} ({entry.type}) {repo} / {branch}")

            if entry.is_dir:
                inner_entries = await self._list(
                    owner, repo, branch, entry.path.rstrip("/")
                )
                for inner in inner_entries:
                    logger.debug(
                        f"Processing inner {inner.path} ({inner.type}) {repo} / {branch}"
                    )
                    if inner.is_dir:
                        logger.warning(
                            f"Skipping directory deeper than {MAX_DEPTH} levels "
                            f"while collecting images: {inner.path.rstrip('/')}"
                        )
                        continue
                    if is_image(inner.name):
                        await self._append(images, owner, repo, branch, inner)

            if is_image(entry.name):
                await self._append(images, owner, repo, branch, entry)

        return images

    async def _list(
        self, owner: str, repo: str, branch: str, path: str
    ) -> list[DirectoryEntry]:
        try:
            return await self._client.list_directory(owner, repo, path, branch)
        except GitHubError as e:
            logger.warning(f"Listing {path} on branch {branch} failed: {e}")
            return []

    async def _append(
        self,
        images: list[ImageAsset],
        owner: str,
        repo: str,
        branch: str,
        entry: DirectoryEntry,
    ) -> None:
        remote = await self._fetcher.fetch(owner, repo, entry.path, branch)
        if remote.is_empty:
            logger.warning(f"Could not read image {entry.path} on branch {branch}, skipping")
            return

        width, height = _dimensions(entry.name, remote.content)
        images.append(
            ImageAsset(
                path=entry.path,
                name=entry.name,
                content=remote.content,
                sha=remote.sha,
                link=remote.link or entry.html_url,
                size=entry.size or len(remote.content),
                mime_type=mimetypes.guess_type(entry.name)[0],
                width=width,
                height=height,
            )
        )
