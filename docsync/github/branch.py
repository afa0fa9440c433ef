"""Operations scoped to one branch of the documents repository."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from ..models import DocumentContent, DocumentNumber
from ..models.document import DOCUMENTS_ROOT
from .assets import AssetWalker, ImageAsset
from .client import GhClient, PullRequestRef
from .errors import GitHubError, MissingMetadataError, NotFoundError
from .fetcher import ContentFetcher, RemoteFile
from .writer import ContentWriter, UpsertOutcome

logger = logging.getLogger(__name__)

STATIC_IMAGES_ROOT = "src/public/static/images"
HEAD_REF_PREFIX = "refs/heads/"


@dataclass
class Readme:
    """A document README resolved on a branch."""

    content: DocumentContent
    sha: str
    link: str
    path: str
    branch: BranchView


@dataclass(frozen=True)
class BranchView:
    """Accessor for documents on a specific branch.

    Views are cheap values; they share the client, fetcher and writer of the
    repository handle that created them.
    """

    client: GhClient = field(repr=False, compare=False)
    fetcher: ContentFetcher = field(repr=False, compare=False)
    writer: ContentWriter = field(repr=False, compare=False)
    owner: str
    repo: str
    default_branch: str
    branch: str
    documents_root: str = DOCUMENTS_ROOT
    static_images_root: str = STATIC_IMAGES_ROOT

    @property
    def is_default(self) -> bool:
        return self.branch == self.default_branch

    def directory(self, number: DocumentNumber) -> str:
        return number.repo_directory(self.documents_root)

    async def exists_in_remote(self) -> bool:
        """Check whether this branch exists on GitHub."""
        try:
            await self.client.get_branch(self.owner, self.repo, self.branch)
            return True
        except GitHubError as e:
            logger.debug(f"Branch {self.branch} not found in {self.owner}/{self.repo}: {e}")
            return False

    async def resolve_readme(self, number: DocumentNumber) -> Readme:
        """Read the document README, preferring AsciiDoc over Markdown.

        Args:
            number: Document to read

        Returns:
            Readme tagged with the format of the file that was found.

        Raises:
            NotFoundError: if neither README exists on this branch.
            GitHubError: if the Markdown fallback failed for another reason.
        """
        directory = self.directory(number)
        adoc_path = f"{directory}/README.adoc"

        try:
            remote = await self._get_readme_file(adoc_path)
        except GitHubError as e:
            logger.info(
                f"Getting file contents for {adoc_path} failed: {e}, trying markdown instead..."
            )
            md_path = f"{directory}/README.md"
            remote = await self._get_readme_file(md_path)
            return self._readme(DocumentContent.markdown(_decode(remote.content)), remote)

        logger.info(f"Decoded asciidoc README {self.repo} / {self.branch}")
        return self._readme(DocumentContent.asciidoc(_decode(remote.content)), remote)

    async def _get_readme_file(self, path: str) -> RemoteFile:
        remote = await self.fetcher.get(self.owner, self.repo, path, self.branch)
        if remote.is_empty:
            raise NotFoundError(f"Could not retrieve {path} on branch {self.branch}")
        return remote

    def _readme(self, content: DocumentContent, remote: RemoteFile) -> Readme:
        return Readme(
            content=content,
            sha=remote.sha,
            link=remote.link,
            path=remote.path,
            branch=self,
        )

    async def get_images(self, number: DocumentNumber) -> list[ImageAsset]:
        """Get the images stored with a document on this branch."""
        walker = AssetWalker(self.client, self.fetcher)
        return await walker.collect_images(
            self.owner, self.repo, self.branch, self.directory(number)
        )

    def static_image_path(self, image_path: str) -> str:
        """Map a document image path to its static assets path."""
        path = image_path.lstrip("/")
        prefix = f"{self.documents_root.strip('/')}/"
        if not path.startswith(prefix):
            logger.warning(f"Image {image_path} is outside {prefix}, keeping its path")
            return path
        return f"{self.static_images_root.strip('/')}/{path[len(prefix):]}"

    async def copy_images_to_default_branch(
        self, number: DocumentNumber
    ) -> list[tuple[str, UpsertOutcome]]:
        """Copy a document's images into the static assets of the default branch.

        Each image is written on its own; a failure part way leaves the
        earlier images in place and a rerun picks up from there.

        Returns:
            (destination path, outcome) for each image, in walk order.
        """
        logger.info(f"Getting images from branch {self.repo} / {self.branch}")
        images = await self.get_images(number)

        logger.info(f"Updating {len(images)} image(s) from branch {self.repo} / {self.branch}")
        results: list[tuple[str, UpsertOutcome]] = []
        for image in images:
            new_path = self.static_image_path(image.path)
            logger.info(f"Copy {image.path} to {new_path} {self.repo} / {self.default_branch}")
            outcome = await self.writer.upsert(
                self.owner,
                self.repo,
                self.default_branch,
                new_path,
                image.content,
            )
            results.append((new_path, outcome))

        return results

    async def find_pull_requests(self) -> list[PullRequestRef]:
        """Find pull requests, in any state, whose head is this branch."""
        try:
            pulls = await self.client.list_pull_requests(self.owner, self.repo, state="all")
        except GitHubError as e:
            logger.warning(f"Listing pull requests for {self.owner}/{self.repo} failed: {e}")
            return []

        return [
            pull
            for pull in pulls
            if pull.head_ref.removeprefix(HEAD_REF_PREFIX) == self.branch
        ]

    async def get_latest_commit_date(self, number: DocumentNumber) -> datetime:
        """Committer date of the most recent commit touching the document.

        Raises:
            NotFoundError: if no commit touches the document on this branch.
            MissingMetadataError: if the latest commit has no usable committer date.
            GitHubError: if listing commits failed.
        """
        commits = await self.client.list_commits(
            self.owner, self.repo, self.branch, self.directory(number)
        )
        if not commits:
            raise NotFoundError(f"No commits found for branch {self.branch}")

        date = commits[0].committer_date
        if not date:
            raise MissingMetadataError(
                f"Failed to find committer on latest commit to branch {self.branch}"
            )

        try:
            parsed = datetime.fromisoformat(date.replace("Z", "+00:00"))
        except ValueError as e:
            raise MissingMetadataError(
                f"Invalid committer date {date!r} on latest commit to branch {self.branch}"
            ) from e

        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)


def _decode(content: bytes) -> str:
    return content.decode("utf-8", errors="replace")
