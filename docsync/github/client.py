"""Async GitHub REST client built on the gh CLI."""

from __future__ import annotations

import asyncio
import base64
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable
from urllib.parse import quote, urlencode

from .errors import GitHubError, NotFoundError, PayloadTooLargeError, RateLimitError

logger = logging.getLogger(__name__)

# (args, stdin, timeout) -> (returncode, stdout, stderr)
Runner = Callable[[list[str], bytes | None, float], Awaitable[tuple[int, bytes, bytes]]]


@dataclass
class GhResponse:
    """HTTP response captured from `gh api --include`."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def json(self) -> Any:
        if not self.body.strip():
            return None
        return json.loads(self.body)


@dataclass
class ContentFile:
    """A file returned by the contents API."""

    path: str
    name: str
    sha: str
    content: str
    encoding: str
    html_url: str = ""
    size: int = 0

    def decoded(self) -> bytes:
        """Decode the content according to its encoding."""
        if self.encoding == "base64":
            return base64.b64decode(self.content.replace("\n", ""))
        return self.content.encode("utf-8")


@dataclass
class DirectoryEntry:
    """An entry of a directory listing."""

    name: str
    path: str
    sha: str
    type: str
    size: int = 0
    html_url: str = ""

    @property
    def is_dir(self) -> bool:
        return self.type == "dir"


@dataclass
class Blob:
    """A git blob from the Git Data API."""

    sha: str
    content: str
    encoding: str
    size: int = 0


@dataclass
class CommitRef:
    """Projected commit: only what the sync needs."""

    sha: str
    committer_date: str | None = None


@dataclass
class PullRequestRef:
    """Projected pull request."""

    number: int
    title: str
    state: str
    head_ref: str
    base_ref: str
    url: str = ""


def parse_response(raw: bytes) -> GhResponse:
    """Split `gh api --include` output into status, headers and body."""
    if not raw.startswith(b"HTTP/"):
        return GhResponse(status=0, body=raw)

    crlf = raw.find(b"\r\n\r\n")
    lf = raw.find(b"\n\n")
    if crlf != -1 and (lf == -1 or crlf < lf):
        head, body = raw[:crlf], raw[crlf + 4 :]
    elif lf != -1:
        head, body = raw[:lf], raw[lf + 2 :]
    else:
        head, body = raw, b""

    lines = head.decode("iso-8859-1").splitlines()
    status_parts = lines[0].split()
    try:
        status = int(status_parts[1])
    except (IndexError, ValueError):
        status = 0

    headers: dict[str, str] = {}
    for line in lines[1:]:
        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        headers[key.strip().lower()] = value.strip()

    return GhResponse(status=status, headers=headers, body=body)


async def _subprocess_runner(
    args: list[str], stdin: bytes | None, timeout: float
) -> tuple[int, bytes, bytes]:
    proc = await asyncio.create_subprocess_exec(
        *args,
        stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(stdin), timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise
    return proc.returncode or 0, stdout, stderr


class GhClient:
    """GitHub REST API client using `gh api`.

    The client holds no per-repository state, so one instance is shared by
    every repository handle and branch view.
    """

    ACCEPT_HEADER = "Accept: application/vnd.github+json"
    PER_PAGE = 100

    def __init__(
        self,
        timeout: float = 30,
        runner: Runner | None = None,
        gh_path: str = "gh",
    ):
        self._timeout = timeout
        self._runner = runner or _subprocess_runner
        self._gh_path = gh_path

    async def request(
        self,
        method: str,
        endpoint: str,
        payload: dict[str, Any] | None = None,
    ) -> GhResponse:
        """Issue one API call.

        Args:
            method: HTTP method
            endpoint: API path relative to the API root (e.g. ``repos/o/r``)
            payload: JSON body, sent on stdin

        Returns:
            The parsed response.

        Raises:
            GitHubError: or one of its subclasses for non-2xx responses.
        """
        args = [
            self._gh_path,
            "api",
            "--include",
            "--method",
            method,
            "-H",
            self.ACCEPT_HEADER,
            endpoint,
        ]
        stdin = None
        if payload is not None:
            args.extend(["--input", "-"])
            stdin = json.dumps(payload).encode("utf-8")

        try:
            returncode, stdout, stderr = await self._runner(args, stdin, self._timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f"Timeout calling {method} {endpoint}")
            raise GitHubError(f"Timeout calling {method} {endpoint}") from e
        except FileNotFoundError as e:
            logger.error("gh CLI not found. Please install GitHub CLI.")
            raise GitHubError("gh CLI not found") from e

        response = parse_response(stdout)
        if returncode != 0 or response.status >= 400 or response.status == 0:
            raise self._error_for(method, endpoint, response, stderr)
        return response

    def _error_for(
        self, method: str, endpoint: str, response: GhResponse, stderr: bytes
    ) -> GitHubError:
        message = ""
        code = ""
        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            data = None
        if isinstance(data, dict):
            message = str(data.get("message", ""))
            for error in data.get("errors") or []:
                if isinstance(error, dict) and error.get("code"):
                    code = str(error["code"])
        if not message:
            message = stderr.decode("utf-8", errors="replace").strip()

        status = response.status
        detail = f"{method} {endpoint} failed ({status or 'no response'}): {message}"
        lowered = message.lower()

        if status == 404:
            return NotFoundError(detail)
        if status in (403, 429) and (
            response.headers.get("x-ratelimit-remaining") == "0"
            or "rate limit" in lowered
        ):
            return RateLimitError(detail, self._reset_seconds(response), status=status)
        if status == 413 or code == "too_large" or "too large" in lowered:
            return PayloadTooLargeError(detail, status=status)
        return GitHubError(detail, status=status or None)

    @staticmethod
    def _reset_seconds(response: GhResponse) -> float:
        retry_after = response.headers.get("retry-after")
        if retry_after:
            try:
                return max(float(retry_after), 0.0)
            except ValueError:
                pass
        reset = response.headers.get("x-ratelimit-reset")
        if reset:
            try:
                return max(float(reset) - time.time(), 0.0)
            except ValueError:
                pass
        return 0.0

    # ========== Repository ==========

    async def get_repository(self, owner: str, repo: str) -> dict[str, Any]:
        response = await self.request("GET", f"repos/{owner}/{repo}")
        return response.json()

    async def get_default_branch(self, owner: str, repo: str) -> str:
        data = await self.get_repository(owner, repo)
        return data["default_branch"]

    async def get_branch(self, owner: str, repo: str, branch: str) -> dict[str, Any]:
        response = await self.request(
            "GET", f"repos/{owner}/{repo}/branches/{quote(branch, safe='')}"
        )
        return response.json()

    # ========== Contents ==========

    @staticmethod
    def _contents_endpoint(owner: str, repo: str, path: str) -> str:
        clean = path.strip("/")
        if not clean:
            return f"repos/{owner}/{repo}/contents"
        return f"repos/{owner}/{repo}/contents/{quote(clean)}"

    async def get_content_file(
        self, owner: str, repo: str, path: str, ref: str
    ) -> ContentFile:
        """Get a single file from the contents API.

        Raises:
            NotFoundError: if the path does not exist on the ref.
            PayloadTooLargeError: if the file is too large for this API.
            GitHubError: if the path is not a file or the call failed.
        """
        endpoint = self._contents_endpoint(owner, repo, path)
        response = await self.request("GET", f"{endpoint}?{urlencode({'ref': ref})}")
        data = response.json()
        if not isinstance(data, dict) or data.get("type") != "file":
            raise GitHubError(f"Path {path} is not a file in {owner}/{repo}@{ref}")

        return ContentFile(
            path=data.get("path", path.lstrip("/")),
            name=data.get("name", ""),
            sha=data.get("sha", ""),
            content=data.get("content") or "",
            encoding=data.get("encoding") or "",
            html_url=data.get("html_url") or "",
            size=data.get("size") or 0,
        )

    async def list_directory(
        self, owner: str, repo: str, path: str, ref: str
    ) -> list[DirectoryEntry]:
        endpoint = self._contents_endpoint(owner, repo, path)
        response = await self.request("GET", f"{endpoint}?{urlencode({'ref': ref})}")
        data = response.json() or []

        # A file path returns a single object
        if isinstance(data, dict):
            data = [data]

        return [
            DirectoryEntry(
                name=item.get("name", ""),
                path=item.get("path", ""),
                sha=item.get("sha", ""),
                type=item.get("type", ""),
                size=item.get("size") or 0,
                html_url=item.get("html_url") or "",
            )
            for item in data
        ]

    async def get_blob(self, owner: str, repo: str, sha: str) -> Blob:
        response = await self.request("GET", f"repos/{owner}/{repo}/git/blobs/{sha}")
        data = response.json()
        return Blob(
            sha=data.get("sha", sha),
            content=data.get("content") or "",
            encoding=data.get("encoding") or "",
            size=data.get("size") or 0,
        )

    async def create_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: bytes,
        message: str,
        branch: str,
    ) -> dict[str, Any]:
        payload = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": branch,
        }
        response = await self.request(
            "PUT", self._contents_endpoint(owner, repo, path), payload
        )
        return response.json()

    async def update_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: bytes,
        message: str,
        sha: str,
        branch: str,
    ) -> dict[str, Any]:
        payload = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "sha": sha,
            "branch": branch,
        }
        response = await self.request(
            "PUT", self._contents_endpoint(owner, repo, path), payload
        )
        return response.json()

    # ========== Commits & pull requests ==========

    async def list_commits(
        self, owner: str, repo: str, ref: str, path: str
    ) -> list[CommitRef]:
        """List commits touching a path, most recent first (first page only)."""
        query = urlencode({"sha": ref, "path": path.strip("/")})
        response = await self.request("GET", f"repos/{owner}/{repo}/commits?{query}")
        commits = []
        for item in response.json() or []:
            committer = (item.get("commit") or {}).get("committer") or {}
            commits.append(
                CommitRef(sha=item.get("sha", ""), committer_date=committer.get("date"))
            )
        return commits

    async def list_pull_requests(
        self, owner: str, repo: str, state: str = "all"
    ) -> list[PullRequestRef]:
        """List every pull request of a repository, following pagination."""
        pulls: list[PullRequestRef] = []
        page = 1
        while True:
            query = urlencode({"state": state, "per_page": self.PER_PAGE, "page": page})
            response = await self.request("GET", f"repos/{owner}/{repo}/pulls?{query}")
            items = response.json() or []
            for item in items:
                pulls.append(
                    PullRequestRef(
                        number=item.get("number", 0),
                        title=item.get("title", ""),
                        state=item.get("state", ""),
                        head_ref=(item.get("head") or {}).get("ref", ""),
                        base_ref=(item.get("base") or {}).get("ref", ""),
                        url=item.get("html_url") or "",
                    )
                )
            if len(items) < self.PER_PAGE:
                break
            page += 1
        return pulls
