"""Tests for the gh CLI client."""

from __future__ import annotations

import asyncio
import base64
import json
import time

import pytest

from docsync.github.client import GhClient, parse_response
from docsync.github.errors import (
    GitHubError,
    NotFoundError,
    PayloadTooLargeError,
    RateLimitError,
)


def http(status: str, body: object, headers: dict[str, str] | None = None) -> bytes:
    lines = [f"HTTP/2.0 {status}", "Content-Type: application/json; charset=utf-8"]
    for key, value in (headers or {}).items():
        lines.append(f"{key}: {value}")
    head = "\r\n".join(lines) + "\r\n\r\n"
    return head.encode() + json.dumps(body).encode()


class ScriptedRunner:
    """Returns queued responses and records every gh invocation."""

    def __init__(self, *responses: tuple[int, bytes, bytes]):
        self.responses = list(responses)
        self.calls: list[tuple[list[str], bytes | None, float]] = []

    async def __call__(self, args, stdin, timeout):
        self.calls.append((list(args), stdin, timeout))
        return self.responses.pop(0)


def ok(body: object, headers: dict[str, str] | None = None) -> tuple[int, bytes, bytes]:
    return 0, http("200 OK", body, headers), b""


def test_parse_response_splits_headers_and_body() -> None:
    response = parse_response(http("404 Not Found", {"message": "Not Found"}, {"X-RateLimit-Remaining": "42"}))

    assert response.status == 404
    assert response.headers["x-ratelimit-remaining"] == "42"
    assert response.json() == {"message": "Not Found"}


def test_parse_response_without_http_preamble() -> None:
    response = parse_response(b"something went wrong")

    assert response.status == 0
    assert response.body == b"something went wrong"


def test_get_content_file_builds_request() -> None:
    content = base64.encodebytes(b"= Title\n").decode()
    runner = ScriptedRunner(
        ok(
            {
                "type": "file",
                "name": "README.adoc",
                "path": "rfd/0001/README.adoc",
                "sha": "abc",
                "content": content,
                "encoding": "base64",
                "html_url": "https://github.com/acme/rfd/blob/1/rfd/0001/README.adoc",
                "size": 8,
            }
        )
    )
    client = GhClient(timeout=12, runner=runner)

    file = asyncio.run(client.get_content_file("acme", "rfd", "/rfd/0001/README.adoc", "1"))

    args, stdin, timeout = runner.calls[0]
    assert args[:2] == ["gh", "api"]
    assert "--include" in args
    assert args[-1] == "repos/acme/rfd/contents/rfd/0001/README.adoc?ref=1"
    assert stdin is None
    assert timeout == 12
    assert file.decoded() == b"= Title\n"
    assert file.sha == "abc"


def test_get_content_file_rejects_directories() -> None:
    runner = ScriptedRunner(ok([{"type": "file", "name": "a"}]))
    client = GhClient(runner=runner)

    with pytest.raises(GitHubError):
        asyncio.run(client.get_content_file("acme", "rfd", "/rfd", "master"))


def test_not_found_maps_to_error() -> None:
    runner = ScriptedRunner((1, http("404 Not Found", {"message": "Not Found"}), b"gh: Not Found (HTTP 404)"))
    client = GhClient(runner=runner)

    with pytest.raises(NotFoundError):
        asyncio.run(client.get_branch("acme", "rfd", "nope"))


def test_rate_limit_maps_to_error_with_reset() -> None:
    reset = int(time.time()) + 60
    runner = ScriptedRunner(
        (
            1,
            http(
                "403 Forbidden",
                {"message": "API rate limit exceeded for user ID 1."},
                {"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": str(reset)},
            ),
            b"",
        )
    )
    client = GhClient(runner=runner)

    with pytest.raises(RateLimitError) as excinfo:
        asyncio.run(client.get_repository("acme", "rfd"))

    assert 50 < excinfo.value.reset_seconds <= 60


def test_secondary_rate_limit_uses_retry_after() -> None:
    runner = ScriptedRunner(
        (
            1,
            http(
                "429 Too Many Requests",
                {"message": "You have exceeded a secondary rate limit."},
                {"Retry-After": "30"},
            ),
            b"",
        )
    )
    client = GhClient(runner=runner)

    with pytest.raises(RateLimitError) as excinfo:
        asyncio.run(client.get_repository("acme", "rfd"))

    assert excinfo.value.reset_seconds == 30


def test_too_large_maps_to_error() -> None:
    body = {
        "message": "This API returns blobs up to 1 MB in size. The requested blob is too large to fetch via the API.",
        "errors": [{"resource": "Blob", "field": "data", "code": "too_large"}],
    }
    runner = ScriptedRunner((1, http("403 Forbidden", body), b""))
    client = GhClient(runner=runner)

    with pytest.raises(PayloadTooLargeError):
        asyncio.run(client.get_content_file("acme", "rfd", "/pdfs/big.pdf", "master"))


def test_other_failures_map_to_github_error() -> None:
    runner = ScriptedRunner((1, b"", b"gh: could not resolve host"))
    client = GhClient(runner=runner)

    with pytest.raises(GitHubError) as excinfo:
        asyncio.run(client.get_repository("acme", "rfd"))

    assert "could not resolve host" in str(excinfo.value)


def test_missing_gh_binary_is_github_error() -> None:
    async def runner(args, stdin, timeout):
        raise FileNotFoundError("gh")

    client = GhClient(runner=runner)

    with pytest.raises(GitHubError):
        asyncio.run(client.get_repository("acme", "rfd"))


def test_timeout_is_github_error() -> None:
    async def runner(args, stdin, timeout):
        raise asyncio.TimeoutError()

    client = GhClient(runner=runner)

    with pytest.raises(GitHubError):
        asyncio.run(client.get_repository("acme", "rfd"))


def test_update_file_sends_payload_on_stdin() -> None:
    runner = ScriptedRunner(ok({"content": {"path": "pdfs/a.pdf"}}))
    client = GhClient(runner=runner)

    asyncio.run(client.update_file("acme", "rfd", "/pdfs/a.pdf", b"pdf", "Update", "abc", "master"))

    args, stdin, _ = runner.calls[0]
    assert args[args.index("--method") + 1] == "PUT"
    assert args[-3:] == ["repos/acme/rfd/contents/pdfs/a.pdf", "--input", "-"]
    payload = json.loads(stdin)
    assert payload == {
        "message": "Update",
        "content": base64.b64encode(b"pdf").decode(),
        "sha": "abc",
        "branch": "master",
    }


def test_create_file_has_no_sha() -> None:
    runner = ScriptedRunner(ok({"content": {"path": "a.txt"}}))
    client = GhClient(runner=runner)

    asyncio.run(client.create_file("acme", "rfd", "a.txt", b"x", "Create", "7"))

    payload = json.loads(runner.calls[0][1])
    assert "sha" not in payload
    assert payload["branch"] == "7"


def test_list_pull_requests_follows_pages() -> None:
    first_page = [{"number": n, "head": {"ref": str(n)}, "base": {"ref": "master"}} for n in range(100)]
    second_page = [{"number": 100, "head": {"ref": "refs/heads/100"}, "base": {"ref": "master"}}]
    runner = ScriptedRunner(ok(first_page), ok(second_page))
    client = GhClient(runner=runner)

    pulls = asyncio.run(client.list_pull_requests("acme", "rfd"))

    assert len(pulls) == 101
    assert pulls[-1].head_ref == "refs/heads/100"
    assert "state=all" in runner.calls[0][0][-1]
    assert "page=2" in runner.calls[1][0][-1]


def test_list_commits_projects_committer_date() -> None:
    runner = ScriptedRunner(
        ok(
            [
                {"sha": "b", "commit": {"committer": {"date": "2021-01-02T03:04:05Z"}}},
                {"sha": "a", "commit": {"committer": None}},
            ]
        )
    )
    client = GhClient(runner=runner)

    commits = asyncio.run(client.list_commits("acme", "rfd", "7", "/rfd/0007"))

    assert [(c.sha, c.committer_date) for c in commits] == [("b", "2021-01-02T03:04:05Z"), ("a", None)]
    assert runner.calls[0][0][-1] == "repos/acme/rfd/commits?sha=7&path=rfd%2F0007"


def test_list_directory_wraps_single_file() -> None:
    runner = ScriptedRunner(ok({"type": "file", "name": "a.png", "path": "rfd/0001/a.png", "sha": "s"}))
    client = GhClient(runner=runner)

    entries = asyncio.run(client.list_directory("acme", "rfd", "/rfd/0001/a.png", "master"))

    assert [(e.name, e.is_dir) for e in entries] == [("a.png", False)]
