"""Entry point for docsync."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

from .config import ConfigLoader, DocSyncConfig, RepositorySettings, load_config
from .github import (
    ContentFetcher,
    ContentWriter,
    DocSyncError,
    GhClient,
    RepositoryHandle,
    SyncManager,
)

logger = logging.getLogger(__name__)


async def open_repository(config: DocSyncConfig) -> RepositoryHandle:
    """Build the shared client, fetcher and writer and open the repository."""
    if config.repository is None:
        raise DocSyncError("No repository configured (set repository.owner in docsync.yaml)")

    client = GhClient(timeout=config.settings.gh_timeout, gh_path=config.settings.gh_path)
    fetcher = ContentFetcher(
        client,
        rate_limit_grace=config.rate_limit.grace_seconds,
        retry_after_rate_limit=config.rate_limit.retry_after_wait,
    )
    writer = ContentWriter(
        client,
        fetcher,
        create_message=config.writer.create_message,
        update_message=config.writer.update_message,
        require_creation_date_replacement=config.writer.require_creation_date_replacement,
    )
    return await RepositoryHandle.open(
        client,
        config.repository.owner,
        config.repository.repo,
        fetcher=fetcher,
        writer=writer,
        documents_root=config.layout.documents_root,
        static_images_root=config.layout.static_images_root,
        manifest_path=config.layout.manifest_path,
        pdfs_root=config.layout.pdfs_root,
    )


async def run(config: DocSyncConfig) -> int:
    """Sync every document in the manifest. Returns the process exit code."""
    repository = await open_repository(config)
    manager = SyncManager(repository, copy_images=config.settings.copy_images)
    results = await manager.sync_all(on_progress=logger.info)

    failed = [r for r in results if not r.success]
    logger.info(f"Synced {len(results) - len(failed)}/{len(results)} document(s)")
    for result in failed:
        logger.warning(f"Document {result.number} ({result.branch}): {result.message}")
    return 1 if failed else 0


def init_config(project_path: Path, owner: str) -> Path:
    """Write a docsync.yaml for ``owner`` into the project directory."""
    config = load_config(project_path)
    config.repository = RepositorySettings(owner=owner)
    return ConfigLoader(project_path).save(config)


def main():
    """Run docsync.

    ``docsync [project_path]`` syncs every document in the manifest.
    ``docsync init OWNER [project_path]`` writes a starter config.
    """
    args = sys.argv[1:]
    if args[:1] == ["init"]:
        if len(args) < 2:
            print("usage: docsync init OWNER [project_path]", file=sys.stderr)
            sys.exit(2)
        project_path = Path(args[2]).resolve() if len(args) > 2 else Path.cwd()
        print(f"Wrote {init_config(project_path, args[1])}")
        return

    # Project path from command line or current directory
    project_path = Path(args[0]).resolve() if args else Path.cwd()

    config = load_config(project_path)
    logging.basicConfig(
        level=config.settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        sys.exit(asyncio.run(run(config)))
    except DocSyncError as e:
        logger.error(str(e))
        sys.exit(2)


if __name__ == "__main__":
    main()
