"""Tests for the bounded image walk."""

from __future__ import annotations

import asyncio
import io

from PIL import Image

from docsync.github.assets import AssetWalker, is_image
from docsync.github.fetcher import ContentFetcher
from tests._fixtures.fake_github import FakeGitHub


def png_bytes(width: int, height: int) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), (255, 0, 0)).save(buffer, format="PNG")
    return buffer.getvalue()


def collect(github: FakeGitHub, fetcher: ContentFetcher, directory: str = "/rfd/0001", branch: str = "master"):
    walker = AssetWalker(github, fetcher)
    return asyncio.run(walker.collect_images("acme", "rfd", branch, directory))


def test_is_image_allow_list() -> None:
    assert is_image("diagram.svg")
    assert is_image("photo.JPG")
    assert is_image("photo.jpeg")
    assert is_image("shot.png")
    assert not is_image("README.adoc")
    assert not is_image("notes.gif")
    assert not is_image("png")


def test_walk_stops_at_two_levels(github: FakeGitHub, fetcher: ContentFetcher) -> None:
    github.add_file("master", "rfd/0001/README.adoc", b"= Doc")
    github.add_file("master", "rfd/0001/img.png", b"one")
    github.add_file("master", "rfd/0001/sub/img2.png", b"two")
    github.add_file("master", "rfd/0001/sub/deeper/img3.png", b"three")

    images = collect(github, fetcher)

    assert [image.path for image in images] == ["rfd/0001/img.png", "rfd/0001/sub/img2.png"]


def test_subdirectory_images_keep_listing_position(github: FakeGitHub, fetcher: ContentFetcher) -> None:
    github.add_file("master", "rfd/0001/a-figures/x.svg", b"<svg/>")
    github.add_file("master", "rfd/0001/b.png", b"b")
    github.add_file("master", "rfd/0001/a-figures/notes.txt", b"not an image")

    images = collect(github, fetcher)

    assert [image.path for image in images] == ["rfd/0001/a-figures/x.svg", "rfd/0001/b.png"]


def test_images_carry_metadata(github: FakeGitHub, fetcher: ContentFetcher) -> None:
    content = png_bytes(4, 3)
    github.add_file("master", "rfd/0001/chart.png", content)
    github.add_file("master", "rfd/0001/logo.svg", b"<svg/>")

    chart, logo = collect(github, fetcher)

    assert chart.name == "chart.png"
    assert chart.content == content
    assert chart.mime_type == "image/png"
    assert (chart.width, chart.height) == (4, 3)
    assert chart.size == len(content)
    assert logo.mime_type == "image/svg+xml"
    assert logo.width is None and logo.height is None


def test_undecodable_raster_has_no_dimensions(github: FakeGitHub, fetcher: ContentFetcher) -> None:
    github.add_file("master", "rfd/0001/broken.png", b"not really a png")

    (image,) = collect(github, fetcher)

    assert image.content == b"not really a png"
    assert image.width is None


def test_missing_directory_yields_nothing(github: FakeGitHub, fetcher: ContentFetcher) -> None:
    assert collect(github, fetcher, directory="/rfd/9999") == []


def test_unreadable_image_is_skipped(github: FakeGitHub, fetcher: ContentFetcher) -> None:
    github.add_file("master", "rfd/0001/a.png", b"a")
    github.add_file("master", "rfd/0001/b.png", b"b")
    github.failing_paths.add("rfd/0001/a.png")

    images = collect(github, fetcher)

    assert [image.path for image in images] == ["rfd/0001/b.png"]


def test_walk_reads_requested_branch(github: FakeGitHub, fetcher: ContentFetcher) -> None:
    github.add_file("master", "rfd/0001/main.png", b"m")
    github.add_file("1", "rfd/0001/branch.png", b"b")

    images = collect(github, fetcher, branch="1")

    assert [image.path for image in images] == ["rfd/0001/branch.png"]
