"""
GitHub Contents Client
======================

Reads repository files and directory listings at a fixed ref through the gh
CLI (``gh api repos/{owner}/{repo}/contents/{path}?ref={ref}``). This is the
client behind GitHubFileSource.

Every call is protected against hung processes:
- Configurable timeout (default 30s)
- Exponential backoff retry on timeouts and server errors (1s, 2s, 4s)
- GitHubTimeoutError once all attempts are used up
"""

from __future__ import annotations

import asyncio
import base64
import json
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import quote

from core.config import AnalysisConfig
from core.errors import GitHubError, GitHubTimeoutError, PathTraversalError
from core.gh_executable import get_gh_executable

logger = logging.getLogger(__name__)

SAFE_REF_PATTERN = re.compile(r"^[A-Za-z0-9._/\-]+$")
SAFE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9._\-]+$")
HTTP_STATUS_PATTERN = re.compile(r"HTTP (\d{3})")

RAW_MEDIA_TYPE = "Accept: application/vnd.github.raw"


@dataclass
class GHCommandResult:
    """Result of a gh CLI command execution."""

    stdout: str
    stderr: str
    returncode: int
    command: list[str]
    attempts: int
    total_time: float


def _status_code(stderr: str) -> int | None:
    match = HTTP_STATUS_PATTERN.search(stderr)
    if match:
        return int(match.group(1))
    if "Not Found" in stderr:
        return 404
    return None


def _validate_repo(owner: str, repo: str, ref: str) -> None:
    if not SAFE_NAME_PATTERN.match(owner) or not SAFE_NAME_PATTERN.match(repo):
        raise GitHubError(f"Invalid repository name: {owner}/{repo}")
    if not SAFE_REF_PATTERN.match(ref) or ".." in ref:
        raise GitHubError(f"Invalid git ref: {ref}")


def _validate_path(path: str) -> str:
    path = path.replace("\\", "/").strip("/")
    if ".." in path.split("/"):
        raise PathTraversalError(path)
    return path


class GitHubContentsClient:
    """
    Async client for the GitHub contents API via the gh CLI.

    Usage:
        client = GitHubContentsClient(token=os.environ["GITHUB_TOKEN"])
        source = GitHubFileSource(client, "owner", "repo", "main")
    """

    def __init__(
        self,
        token: str | None = None,
        default_timeout: float = 30.0,
        max_retries: int = 3,
        cwd: Path | None = None,
    ):
        """
        Initialize the contents client.

        Args:
            token: GitHub token passed to gh as GH_TOKEN (gh's own auth if None)
            default_timeout: Default timeout in seconds for each gh call
            max_retries: Maximum number of attempts per call
            cwd: Working directory for gh (current directory if None)
        """
        self.token = token
        self.default_timeout = default_timeout
        self.max_retries = max(1, max_retries)
        self.cwd = cwd

    @classmethod
    def from_config(cls, config: AnalysisConfig) -> GitHubContentsClient:
        return cls(
            token=config.github_token,
            default_timeout=config.gh_timeout,
            max_retries=config.gh_max_retries,
        )

    def _env(self) -> dict[str, str] | None:
        if not self.token:
            return None
        return {**os.environ, "GH_TOKEN": self.token}

    async def run(self, args: list[str], timeout: float | None = None) -> GHCommandResult:
        """
        Execute a gh CLI command with timeout and retry logic.

        Non-zero exits are returned, not raised; callers map them to errors.
        Server errors (HTTP 5xx) are retried like timeouts.

        Raises:
            GitHubError: If gh is not installed
            GitHubTimeoutError: If the command times out on every attempt
        """
        timeout = timeout or self.default_timeout
        gh_exec = get_gh_executable()
        if not gh_exec:
            raise GitHubError(
                "GitHub CLI (gh) not found. Install from https://cli.github.com/"
            )
        cmd = [gh_exec] + args
        start_time = asyncio.get_event_loop().time()

        for attempt in range(1, self.max_retries + 1):
            logger.debug(
                f"Executing gh command (attempt {attempt}/{self.max_retries}): {' '.join(cmd)}"
            )
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=self.cwd,
                env=self._env(),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )

            backoff_delay = 2 ** (attempt - 1)
            try:
                stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
            except asyncio.TimeoutError:
                try:
                    proc.kill()
                    await proc.wait()
                except ProcessLookupError as e:
                    logger.warning(f"Failed to kill hung process: {e}")

                logger.warning(
                    f"gh {args[0]} timed out after {timeout}s "
                    f"(attempt {attempt}/{self.max_retries})"
                )
                if attempt < self.max_retries:
                    logger.info(f"Retrying in {backoff_delay}s...")
                    await asyncio.sleep(backoff_delay)
                    continue

                total_time = asyncio.get_event_loop().time() - start_time
                raise GitHubTimeoutError(
                    f"gh {args[0]} timed out after {self.max_retries} attempts "
                    f"({timeout}s each, {total_time:.1f}s total)"
                )

            result = GHCommandResult(
                stdout=stdout.decode("utf-8", errors="replace"),
                stderr=stderr.decode("utf-8", errors="replace"),
                returncode=proc.returncode or 0,
                command=cmd,
                attempts=attempt,
                total_time=asyncio.get_event_loop().time() - start_time,
            )

            status = _status_code(result.stderr) if result.returncode else None
            if status is not None and status >= 500 and attempt < self.max_retries:
                logger.warning(
                    f"gh {args[0]} got HTTP {status} (attempt {attempt}/{self.max_retries}), "
                    f"retrying in {backoff_delay}s"
                )
                await asyncio.sleep(backoff_delay)
                continue

            if result.returncode == 0:
                logger.debug(
                    f"gh {args[0]} completed successfully "
                    f"(attempt {attempt}, {result.total_time:.2f}s)"
                )
            return result

        raise GitHubError(f"gh {args[0]} failed after {self.max_retries} attempts")

    async def api_get(self, endpoint: str, headers: list[str] | None = None) -> str:
        """
        GET a REST endpoint and return the raw body.

        Raises:
            FileNotFoundError: On HTTP 404
            GitHubError: On any other failure
        """
        args = ["api", "--method", "GET"]
        for header in headers or []:
            args.extend(["-H", header])
        args.append(endpoint)

        result = await self.run(args)
        if result.returncode != 0:
            status = _status_code(result.stderr)
            if status == 404:
                raise FileNotFoundError(f"Not found: {endpoint}")
            raise GitHubError(
                f"gh api {endpoint} failed: {result.stderr.strip() or 'Unknown error'}",
                status_code=status,
            )
        return result.stdout

    async def api_get_json(self, endpoint: str) -> Any:
        body = await self.api_get(endpoint)
        try:
            return json.loads(body) if body.strip() else None
        except json.JSONDecodeError as e:
            raise GitHubError(f"Invalid JSON from {endpoint}: {e}") from e

    @staticmethod
    def _contents_endpoint(owner: str, repo: str, path: str, ref: str) -> str:
        _validate_repo(owner, repo, ref)
        path = _validate_path(path)
        endpoint = f"repos/{owner}/{repo}/contents"
        if path:
            endpoint += "/" + quote(path, safe="/")
        return f"{endpoint}?ref={quote(ref, safe='')}"

    async def get_file_content(self, owner: str, repo: str, path: str, ref: str) -> str:
        """
        Text content of a file at ``ref``.

        Raises:
            FileNotFoundError: If the path does not exist
            IsADirectoryError: If the path is a directory
        """
        endpoint = self._contents_endpoint(owner, repo, path, ref)
        data = await self.api_get_json(endpoint)

        if isinstance(data, list):
            raise IsADirectoryError(f"Is a directory: {path}")
        if not isinstance(data, dict) or data.get("type") not in (None, "file"):
            raise FileNotFoundError(f"Not a regular file: {path}")

        if data.get("encoding") == "base64" and data.get("content") is not None:
            raw = base64.b64decode(data["content"])
            return raw.decode("utf-8", errors="replace")

        # Files over 1MB come back without inline content
        logger.debug(f"Fetching raw content for large file {path}")
        return await self.api_get(endpoint, headers=[RAW_MEDIA_TYPE])

    async def get_directory_contents(
        self, owner: str, repo: str, path: str, ref: str
    ) -> list[dict[str, Any]]:
        """
        Entries of a directory at ``ref`` as ``{"name", "path", "type"}`` dicts.

        Raises:
            FileNotFoundError: If the path does not exist
            NotADirectoryError: If the path is a file
        """
        data = await self.api_get_json(self._contents_endpoint(owner, repo, path, ref))
        if not isinstance(data, list):
            raise NotADirectoryError(f"Not a directory: {path}")
        return [
            {"name": item.get("name", ""), "path": item.get("path", ""), "type": item.get("type")}
            for item in data
            if isinstance(item, dict) and item.get("name")
        ]

    async def get_pr_files(self, owner: str, repo: str, pr_number: int) -> list[str]:
        """
        Paths changed by a pull request, following pagination.

        Uses: GET /repos/{owner}/{repo}/pulls/{pr_number}/files
        """
        _validate_repo(owner, repo, "HEAD")
        files: list[str] = []
        page = 1
        per_page = 100

        while True:
            endpoint = (
                f"repos/{owner}/{repo}/pulls/{pr_number}/files"
                f"?page={page}&per_page={per_page}"
            )
            page_files = await self.api_get_json(endpoint) or []
            files.extend(f["filename"] for f in page_files if f.get("filename"))

            if len(page_files) < per_page:
                break
            page += 1

            # GitHub caps the files endpoint at 3000 entries
            if page > 30:
                logger.warning(f"PR #{pr_number} lists too many files, stopping pagination")
                break

        return files
