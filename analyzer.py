"""Pipeline orchestration for repository security analysis."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

import config
from github_service import GitHubService
from llm_service import LLMService
from models import AnalysisError, AnalyzeResponse, AppError, GitHubError, RepositoryInfo


logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "An error occurred while fetching the repository. Please try again later."
ANALYSIS_FAILED_MESSAGE = "An error occurred while analyzing the repository. Please try again later."

ACCESS_DENIED_MESSAGE = "Access to repository denied. Ensure the token has repo read access to this repository."

# Client-facing status and message per GitHub failure kind; anything unlisted is a 500.
# Failures that may stem from a private repository rank as access denied ahead of not found.
FETCH_ERROR_MAP = {
    "invalid_url": (400, "Invalid GitHub repository URL format"),
    "access_denied": (403, ACCESS_DENIED_MESSAGE),
    "private_or_missing": (403, ACCESS_DENIED_MESSAGE),
    "no_files": (403, ACCESS_DENIED_MESSAGE),
    "unauthorized": (401, "GitHub token invalid or expired."),
    "not_found": (404, "Repository not found."),
}


def _dev_details(exc: BaseException) -> dict[str, str]:
    return {"error": str(exc)} if config.is_development() else {}


def fetch_error_response(exc: GitHubError) -> AppError:
    status_code, message = FETCH_ERROR_MAP.get(exc.kind, (500, FETCH_FAILED_MESSAGE))
    return AppError(code=exc.code, message=message, status_code=status_code, details=_dev_details(exc))


def analysis_error_response(exc: AnalysisError) -> AppError:
    if exc.kind == "rate_limited":
        return AppError(
            code=exc.code,
            message="Service temporarily unavailable. Please try again later.",
            status_code=503,
            details=_dev_details(exc),
        )
    # Missing keys and provider failures look the same to the client.
    return AppError(code=exc.code, message=ANALYSIS_FAILED_MESSAGE, status_code=500, details=_dev_details(exc))


def normalize_token(token: object) -> Optional[str]:
    if isinstance(token, str) and token.strip():
        return token.strip()
    return None


class SecurityAnalyzer:
    def __init__(self, llm_service: LLMService | None = None) -> None:
        self.llm_service = llm_service

    def analyze_repository(self, repository_url: str, github_token: Optional[str] = None) -> AnalyzeResponse:
        # 1) Fetch a bounded set of files, walking the auth-scheme ladder when needed.
        try:
            repo_data = GitHubService(token=github_token).fetch_repository_content(repository_url)
        except GitHubError as exc:
            if config.is_development():
                logger.error("Repository fetch error: %s", exc.message)
            else:
                logger.error("Repository fetch error: Failed to fetch repository")
            raise fetch_error_response(exc) from exc

        # 2) One chat completion over the fetched files; no retries.
        try:
            llm_service = self.llm_service or LLMService()
            report = llm_service.analyze_security(repo_data)
        except AnalysisError as exc:
            if config.is_development():
                logger.error("Security analysis error: %s", exc.message)
            else:
                logger.error("Security analysis error: Analysis failed")
            raise analysis_error_response(exc) from exc

        return AnalyzeResponse(
            report=report,
            repository=RepositoryInfo(
                url=repo_data.url,
                owner=repo_data.owner,
                name=repo_data.repo,
                language=repo_data.language,
            ),
            timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        )
