"""GitHub ingestion: URL parsing, auth-scheme fallback, tree fetch, file selection and content retrieval."""

from __future__ import annotations

import base64
import logging
import re
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import quote

import requests

import config
from models import GitHubError, RepositoryContent, RepositoryFile, RepoTreeItem
from sanitize import is_valid_github_url, sanitize_github_url


logger = logging.getLogger(__name__)

OWNER_REPO_RE = re.compile(r"github\.com/([\w.-]+)/([\w.-]+)")

IMPORTANT_FILES = (
    "package.json",
    "package-lock.json",
    "yarn.lock",
    "requirements.txt",
    "Dockerfile",
    ".env.example",
    ".gitignore",
    "README.md",
    "docker-compose.yml",
)

SOURCE_EXTENSIONS = (".js", ".py", ".ts", ".jsx", ".tsx")


def choose_auth_scheme(token: Optional[str]) -> Optional[str]:
    """Fine-grained PATs (github_pat_) want Bearer; classic PATs and unknown shapes start with token."""
    if not token:
        return None
    if token.startswith("github_pat_"):
        return "Bearer"
    return "token"


def auth_schemes_for(token: Optional[str]) -> list[str]:
    if not token:
        return []
    schemes: list[str] = []
    for scheme in (choose_auth_scheme(token), "Bearer", "token"):
        if scheme and scheme not in schemes:
            schemes.append(scheme)
    return schemes


def is_relevant_file(item: RepoTreeItem) -> bool:
    if item.type != "blob":
        return False
    if any(name in item.path for name in IMPORTANT_FILES):
        return True
    return item.path.endswith(SOURCE_EXTENSIONS)


def select_relevant_files(
    tree: Iterable[RepoTreeItem],
    candidate_limit: int = config.MAX_CANDIDATE_FILES,
    fetch_limit: int = config.MAX_FETCHED_FILES,
) -> list[RepoTreeItem]:
    # Tree order is kept; only the first candidates are considered for fetching.
    candidates = [item for item in tree if is_relevant_file(item)][:candidate_limit]
    return candidates[:fetch_limit]


class GitHubService:
    def __init__(self, token: Optional[str] = None, session: Optional[requests.Session] = None) -> None:
        self.session = session or requests.Session()
        self.base_headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": config.GITHUB_USER_AGENT,
        }
        cleaned = token.strip() if isinstance(token, str) else ""
        # Caller-supplied token wins; environment token only lifts rate limits.
        self.token = cleaned or config.get_default_github_token()

    def parse_github_url(self, github_url: str) -> tuple[str, str, str]:
        url = github_url.strip() if isinstance(github_url, str) else ""
        if not url:
            raise GitHubError(
                code="INVALID_GITHUB_URL",
                message="Repository URL is required",
                status_code=400,
                kind="invalid_url",
            )
        if not is_valid_github_url(url):
            url = sanitize_github_url(url) or ""
            if not url:
                raise GitHubError(
                    code="INVALID_GITHUB_URL",
                    message="Invalid GitHub repository URL format",
                    status_code=400,
                    kind="invalid_url",
                )

        match = OWNER_REPO_RE.search(url)
        if not match:
            raise GitHubError(
                code="INVALID_GITHUB_URL",
                message="Invalid GitHub repository URL",
                status_code=400,
                kind="invalid_url",
            )
        return match.group(1), match.group(2), url

    def _get(self, url: str, authorization: Optional[str] = None) -> requests.Response:
        headers = dict(self.base_headers)
        if authorization:
            headers["Authorization"] = authorization
        try:
            return self.session.get(url, headers=headers, timeout=config.TIMEOUT_GITHUB_SECONDS)
        except requests.RequestException as exc:
            raise GitHubError(
                code="GITHUB_API_ERROR",
                message="GitHub API request failed.",
                status_code=502,
                details={"url": url, "error": str(exc)},
            ) from exc

    def fetch_with_auth(self, url: str) -> requests.Response:
        # Unauthenticated first so public repositories never spend the token.
        response = self._get(url)
        if response.ok or not self.token:
            return response

        for scheme in auth_schemes_for(self.token):
            retry = self._get(url, authorization=f"{scheme} {self.token}")
            if retry.ok:
                return retry
            response = retry
        return response

    def _log_failure(self, label: str, response: requests.Response) -> None:
        if config.is_development():
            logger.error("GitHub %s error: %s %s", label, response.status_code, (response.text or "")[:300])

    def get_repo_metadata(self, owner: str, repo: str) -> dict[str, Any]:
        response = self.fetch_with_auth(f"{config.GITHUB_API_BASE}/repos/{owner}/{repo}")
        if response.ok:
            return self._json(response)

        self._log_failure("repo metadata", response)
        status = response.status_code
        if status == 404:
            # Private repositories answer 404 to callers without access.
            if self.token:
                raise GitHubError(
                    code="REPO_ACCESS_DENIED",
                    message="Repository is private or access is denied with the provided token",
                    status_code=403,
                    kind="access_denied",
                )
            raise GitHubError(
                code="REPO_NOT_FOUND",
                message="Repository not found or is private",
                status_code=404,
                kind="private_or_missing",
            )
        if status == 401:
            raise GitHubError(
                code="GITHUB_UNAUTHORIZED",
                message="GitHub token is invalid or expired (401)",
                status_code=401,
                kind="unauthorized",
            )
        if status == 403:
            if response.headers.get("X-RateLimit-Remaining") == "0":
                raise GitHubError(
                    code="GITHUB_RATE_LIMIT",
                    message=(
                        "GitHub API rate limit exceeded. Please try again later "
                        f"(reset at {self._reset_time(response)}). "
                        "Consider setting GITHUB_TOKEN environment variable for higher limits."
                    ),
                    status_code=429,
                    kind="rate_limited",
                )
            raise GitHubError(
                code="GITHUB_FORBIDDEN",
                message="GitHub API access forbidden (403). The repository may be private or token lacks repo access.",
                status_code=403,
                kind="access_denied",
            )
        raise GitHubError(
            code="GITHUB_API_ERROR",
            message=f"GitHub API error: {status}",
            status_code=502,
            details={"status_code": status},
        )

    def get_repo_tree(self, owner: str, repo: str) -> list[RepoTreeItem]:
        main_branch, fallback_branch = config.DEFAULT_BRANCHES
        response = self.fetch_with_auth(self._tree_url(owner, repo, main_branch))
        if response.ok:
            return self._tree_items(self._json(response))

        if response.status_code == 403:
            self._log_failure(f"tree ({main_branch})", response)
            raise GitHubError(
                code="GITHUB_FORBIDDEN",
                message="GitHub API access forbidden. Rate limit may be exceeded or repository may be private.",
                status_code=403,
                kind="access_denied",
            )

        fallback = self.fetch_with_auth(self._tree_url(owner, repo, fallback_branch))
        if fallback.ok:
            return self._tree_items(self._json(fallback))
        if fallback.status_code == 403:
            self._log_failure(f"tree ({fallback_branch})", fallback)
            raise GitHubError(
                code="GITHUB_FORBIDDEN",
                message=(
                    "GitHub API access forbidden. Rate limit may be exceeded, "
                    "or repository is private without sufficient token scope."
                ),
                status_code=403,
                kind="access_denied",
            )
        # Neither default branch exists; the empty-result check reports it.
        return []

    def fetch_file(self, owner: str, repo: str, item: RepoTreeItem) -> Optional[RepositoryFile]:
        url = f"{config.GITHUB_API_BASE}/repos/{owner}/{repo}/contents/{quote(item.path)}"
        response = self.fetch_with_auth(url)
        if response.status_code == 403:
            raise GitHubError(
                code="GITHUB_FORBIDDEN",
                message=f"Rate limited while fetching {item.path}",
                status_code=403,
                kind="access_denied",
            )
        if not response.ok:
            return None

        data = self._json(response)
        if data.get("encoding") != "base64" or not data.get("content"):
            return None
        try:
            decoded = base64.b64decode(data["content"], validate=False)
        except ValueError:
            return None
        return RepositoryFile(path=item.path, content=decoded.decode("utf-8", errors="replace"))

    def fetch_selected_files(self, owner: str, repo: str, items: list[RepoTreeItem]) -> list[RepositoryFile]:
        files: list[RepositoryFile] = []
        for item in items:
            try:
                fetched = self.fetch_file(owner, repo, item)
            except GitHubError as exc:
                if exc.status_code == 403:
                    logger.warning("Rate limited while fetching %s, continuing with available files", item.path)
                    break
                if config.is_development():
                    logger.error("Error fetching file %s: %s", item.path, exc.message)
                continue
            if fetched is not None:
                files.append(fetched)
        return files

    def fetch_repository_content(self, repo_url: str) -> RepositoryContent:
        owner, repo, url = self.parse_github_url(repo_url)
        if config.is_development():
            logger.info("Using GitHub token: %s", "yes" if self.token else "no")

        metadata = self.get_repo_metadata(owner, repo)
        tree = self.get_repo_tree(owner, repo)
        files = self.fetch_selected_files(owner, repo, select_relevant_files(tree))

        if not files:
            raise GitHubError(
                code="NO_FILES_FETCHED",
                message=(
                    "No files could be fetched from the repository. The repository may be empty, "
                    "private, or GitHub API rate limits have been exceeded."
                ),
                status_code=502,
                kind="no_files",
            )

        return RepositoryContent(
            owner=owner,
            repo=repo,
            name=metadata.get("name"),
            description=metadata.get("description"),
            language=metadata.get("language"),
            files=files,
            url=url,
        )

    @staticmethod
    def _tree_url(owner: str, repo: str, ref: str) -> str:
        return f"{config.GITHUB_API_BASE}/repos/{owner}/{repo}/git/trees/{quote(ref)}?recursive=1"

    @staticmethod
    def _tree_items(data: dict[str, Any]) -> list[RepoTreeItem]:
        items: list[RepoTreeItem] = []
        for entry in data.get("tree") or []:
            path = str(entry.get("path", ""))
            if not path:
                continue
            items.append(
                RepoTreeItem(path=path, type=str(entry.get("type", "")), size=int(entry.get("size", 0) or 0))
            )
        return items

    @staticmethod
    def _reset_time(response: requests.Response) -> str:
        reset = response.headers.get("X-RateLimit-Reset")
        try:
            return datetime.fromtimestamp(int(reset), tz=timezone.utc).isoformat()
        except (TypeError, ValueError):
            return "unknown"

    @staticmethod
    def _json(response: requests.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as exc:
            raise GitHubError(
                code="GITHUB_API_ERROR",
                message="GitHub API returned invalid JSON.",
                status_code=502,
                details={"url": getattr(response, "url", "")},
            ) from exc
        return data if isinstance(data, dict) else {}
