"""API models and typed application errors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, Field


class AnalyzeRequest(BaseModel):
    # Loosely typed so the handler can answer bad input with its own 400 messages.
    repositoryUrl: Any = Field(default=None, examples=["https://github.com/psf/requests"])
    githubToken: Any = None


class RepositoryInfo(BaseModel):
    url: str
    owner: str
    name: str
    language: Optional[str] = None


class AnalyzeResponse(BaseModel):
    report: str
    repository: RepositoryInfo
    timestamp: str


class DownloadRequest(BaseModel):
    report: Any = None
    repository: Optional[dict[str, Any]] = None

    def repository_name(self) -> str:
        name = (self.repository or {}).get("name")
        return str(name) if name else "report"


class ErrorResponse(BaseModel):
    error: str
    code: Optional[str] = None
    retryAfter: Optional[int] = None
    details: Optional[Any] = None


class RepositoryFile(BaseModel):
    path: str
    content: str


class RepoTreeItem(BaseModel):
    path: str
    type: str
    size: int = 0


class RepositoryContent(BaseModel):
    owner: str
    repo: str
    name: Optional[str] = None
    description: Optional[str] = None
    language: Optional[str] = None
    files: list[RepositoryFile]
    url: str


@dataclass
class AppError(Exception):
    code: str
    message: str
    status_code: int = 500
    details: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message

    def to_payload(self, include_details: bool = False) -> ErrorResponse:
        # Shared helper for consistent API error serialization.
        return ErrorResponse(
            error=self.message,
            code=self.code,
            details=self.details if include_details and self.details else None,
        )


@dataclass
class RateLimitError(AppError):
    retry_after: int = 0

    def to_payload(self, include_details: bool = False) -> ErrorResponse:
        payload = super().to_payload(include_details)
        payload.retryAfter = self.retry_after
        return payload


@dataclass
class GitHubError(AppError):
    """Failure inside the GitHub fetch pipeline; ``kind`` drives the HTTP mapping."""

    kind: str = "api_error"


@dataclass
class AnalysisError(AppError):
    """Failure inside the LLM client; ``kind`` drives the HTTP mapping."""

    kind: str = "failed"
