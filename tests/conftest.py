from __future__ import annotations

import pytest

from docsync.github.fetcher import ContentFetcher
from docsync.github.repository import RepositoryHandle
from docsync.github.writer import ContentWriter
from tests._fixtures.fake_github import FakeGitHub


@pytest.fixture
def github() -> FakeGitHub:
    """Provide an empty in-memory repository."""
    return FakeGitHub()


@pytest.fixture
def fetcher(github: FakeGitHub) -> ContentFetcher:
    return ContentFetcher(github)


@pytest.fixture
def writer(github: FakeGitHub, fetcher: ContentFetcher) -> ContentWriter:
    return ContentWriter(github, fetcher)


@pytest.fixture
def repository(github: FakeGitHub, fetcher: ContentFetcher, writer: ContentWriter) -> RepositoryHandle:
    return RepositoryHandle(
        github,
        github.owner,
        github.repo,
        github.default_branch,
        fetcher=fetcher,
        writer=writer,
    )


@pytest.fixture
def no_sleep(monkeypatch) -> list[float]:
    """Record rate-limit waits instead of sleeping."""
    delays: list[float] = []

    async def fake_sleep(delay: float) -> None:
        delays.append(delay)

    monkeypatch.setattr("docsync.github.fetcher.asyncio.sleep", fake_sleep)
    return delays
