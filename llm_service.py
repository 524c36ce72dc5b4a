"""OpenAI chat wrapper that turns fetched repository files into a markdown security report."""

from __future__ import annotations

import logging
from typing import Any

from openai import APIStatusError, OpenAI, OpenAIError

import config
from models import AnalysisError, RepositoryContent


logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a security analysis expert. Analyze code repositories for security vulnerabilities, "
    "best practices, and potential security issues. Provide a comprehensive security report in markdown format."
)

USER_PROMPT = """Analyze the following GitHub repository for security vulnerabilities and provide recommendations:

Repository: {OWNER}/{REPO}
Description: {DESCRIPTION}
Primary Language: {LANGUAGE}

Files to analyze:
{FILE_CONTENTS}

Please provide a comprehensive security analysis report in markdown format covering:
1. Executive Summary
2. Security Vulnerabilities Found (with severity levels)
3. Code Quality Issues
4. Best Practices Recommendations
5. Specific Remediation Steps

Format the report in a clear, professional markdown format suitable for developers and security teams."""


def render_file_contents(repo_data: RepositoryContent, max_chars: int = config.MAX_PROMPT_CHARS_PER_FILE) -> str:
    if not repo_data.files:
        return "No files found in repository"
    return "\n---\n\n".join(
        f"File: {item.path}\n```\n{item.content[:max_chars]}\n```\n" for item in repo_data.files
    )


def build_user_prompt(repo_data: RepositoryContent) -> str:
    return USER_PROMPT.format(
        OWNER=repo_data.owner,
        REPO=repo_data.repo,
        DESCRIPTION=repo_data.description or "No description",
        LANGUAGE=repo_data.language or "Unknown",
        FILE_CONTENTS=render_file_contents(repo_data),
    )


class LLMService:
    def __init__(self) -> None:
        try:
            api_key = config.get_openai_api_key()
        except RuntimeError as exc:
            raise AnalysisError(
                code="LLM_CONFIG_ERROR",
                message=str(exc),
                status_code=500,
                kind="config",
            ) from exc

        self.client = OpenAI(
            api_key=api_key,
            base_url=config.OPENAI_BASE_URL,
            timeout=config.TIMEOUT_LLM_SECONDS,
        )
        self.model = config.OPENAI_MODEL

    def _extract_text(self, response: Any) -> str:
        if not response or not getattr(response, "choices", None):
            return ""
        content = response.choices[0].message.content
        return content if isinstance(content, str) else ""

    def analyze_security(self, repo_data: RepositoryContent) -> str:
        if repo_data is None or not isinstance(getattr(repo_data, "files", None), list):
            raise AnalysisError(
                code="INVALID_REPOSITORY_DATA",
                message="Invalid repository data: files array is missing or invalid",
                status_code=500,
                kind="invalid_input",
            )

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_user_prompt(repo_data)},
                ],
                max_tokens=config.LLM_MAX_OUTPUT_TOKENS,
                temperature=config.LLM_TEMPERATURE,
            )
        except APIStatusError as exc:
            logger.error("OpenAI API error: status=%s type=%s", exc.status_code, type(exc).__name__)
            raise self._status_error(exc) from exc
        except OpenAIError as exc:
            logger.error("OpenAI API error: type=%s", type(exc).__name__)
            raise AnalysisError(
                code="LLM_REQUEST_FAILED",
                message=f"Failed to generate security analysis: {exc}",
                status_code=502,
            ) from exc

        report = self._extract_text(response)
        if not report:
            raise AnalysisError(
                code="LLM_EMPTY_RESPONSE",
                message="No response from OpenAI API",
                status_code=502,
                kind="empty",
            )
        return report

    @staticmethod
    def _status_error(exc: APIStatusError) -> AnalysisError:
        if exc.status_code == 401:
            return AnalysisError(code="LLM_UNAUTHORIZED", message="Invalid OpenAI API key", status_code=500, kind="auth")
        if exc.status_code == 429:
            return AnalysisError(
                code="LLM_RATE_LIMIT",
                message="OpenAI API rate limit exceeded",
                status_code=503,
                kind="rate_limited",
            )
        if exc.status_code == 500:
            return AnalysisError(code="LLM_SERVER_ERROR", message="OpenAI API server error", status_code=502, kind="server")
        return AnalysisError(
            code="LLM_REQUEST_FAILED",
            message=f"Failed to generate security analysis: {exc.message}",
            status_code=502,
            details={"status_code": exc.status_code},
        )
