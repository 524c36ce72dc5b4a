"""FastAPI entrypoint exposing POST /api/analyze, the download endpoints and the single-page frontend."""

from __future__ import annotations

import logging
import math
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
from analyzer import SecurityAnalyzer, normalize_token
from cors import cors_headers, is_origin_allowed
from models import AnalyzeRequest, AnalyzeResponse, AppError, DownloadRequest, RateLimitError
from rate_limit import RateLimiter, client_ip
from report_export import (
    MARKDOWN_CONTENT_TYPE,
    PDF_CONTENT_TYPE,
    TEXT_CONTENT_TYPE,
    content_disposition,
    generate_filename,
    markdown_to_plain_text,
    prepare_markdown,
    render_pdf,
)
from sanitize import sanitize_github_url, validate_input, validate_repo_name
from utils import sanitize_error_response, sanitize_headers, sanitize_log_data


logging.basicConfig(level=logging.DEBUG if config.is_development() else logging.INFO)
logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"

app = FastAPI(title="SecLens Security Analyzer API", version="1.0.0")
rate_limiter = RateLimiter()


def _error_response(err: AppError, headers: Optional[dict[str, str]] = None) -> JSONResponse:
    payload = err.to_payload(include_details=config.is_development()).model_dump(exclude_none=True)
    merged = {**(headers or {}), **err.headers}
    return JSONResponse(status_code=err.status_code, content=payload, headers=merged)


@app.exception_handler(AppError)
def app_error_handler(_request: Request, exc: AppError):
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
def request_validation_exception_handler(_request: Request, exc: RequestValidationError):
    # Keep validation failures in the same error envelope as runtime errors.
    return _error_response(
        AppError(
            code="INVALID_REQUEST",
            message="Invalid request payload.",
            status_code=400,
            details={"errors": exc.errors()},
        )
    )


@app.exception_handler(StarletteHTTPException)
def http_exception_handler(_request: Request, exc: StarletteHTTPException):
    messages = {404: "Not found", 405: "Method not allowed"}
    message = messages.get(exc.status_code, str(exc.detail))
    return _error_response(
        AppError(
            code=f"HTTP_{exc.status_code}",
            message=message,
            status_code=exc.status_code,
            headers=dict(exc.headers or {}),
        )
    )


@app.middleware("http")
async def cors_guard(request: Request, call_next: Callable):
    if not request.url.path.startswith("/api/"):
        return await call_next(request)

    origin = request.headers.get("origin")
    headers = cors_headers(origin)

    if request.method == "OPTIONS":
        return Response(status_code=204, headers=headers)

    if not is_origin_allowed(origin, request.headers.get("host")):
        logger.error("CORS violation - origin not allowed")
        if config.is_development():
            logger.error("Origin: %s", origin)
        return JSONResponse(
            status_code=403,
            content={"error": "CORS policy violation: Origin not allowed"},
            headers=headers,
        )

    response = await call_next(request)
    response.headers.update(headers)
    return response


def _apply_rate_limit(request: Request) -> dict[str, str]:
    peer = request.client.host if request.client else None
    result = rate_limiter.check(client_ip(request.headers, peer))
    limit = str(rate_limiter.max_requests)

    if not result.allowed:
        retry_after = max(0, math.ceil(result.reset_time - time.time()))
        reset_iso = datetime.fromtimestamp(result.reset_time, tz=timezone.utc).isoformat().replace("+00:00", "Z")
        raise RateLimitError(
            code="RATE_LIMITED",
            message="Too many requests. Please try again later.",
            status_code=429,
            retry_after=retry_after,
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Limit": limit,
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": reset_iso,
            },
        )
    return {"X-RateLimit-Limit": limit, "X-RateLimit-Remaining": str(result.remaining)}


def _validated_repository_url(raw_url: object) -> str:
    if not raw_url or not isinstance(raw_url, str):
        raise AppError(code="INVALID_GITHUB_URL", message="Repository URL is required", status_code=400)

    checked = validate_input(raw_url, max_length=config.MAX_REPOSITORY_URL_LENGTH)
    if not checked.valid:
        raise AppError(
            code="INVALID_GITHUB_URL",
            message=checked.error or "Invalid repository URL format",
            status_code=400,
        )

    sanitized = sanitize_github_url(checked.value)
    if not sanitized:
        raise AppError(code="INVALID_GITHUB_URL", message="Invalid GitHub repository URL format", status_code=400)
    return sanitized


def _log_request(request: Request, payload: AnalyzeRequest) -> None:
    if config.is_development():
        sanitized = sanitize_log_data({"body": payload.model_dump(), "headers": dict(request.headers)})
        logger.debug("Analyze request %s %s body=%s", request.method, request.url.path, sanitized["body"])
        logger.debug("Origin: %s", sanitize_headers(dict(request.headers)).get("origin", "none"))
    else:
        logger.info("[%s] %s", request.method, request.url.path)


@app.get("/api/health")
def health():
    return {"status": "ok"}


@app.post("/api/analyze", response_model=AnalyzeResponse)
def analyze(payload: AnalyzeRequest, request: Request, response: Response):
    _log_request(request, payload)
    rate_headers: dict[str, str] = {}
    try:
        rate_headers = _apply_rate_limit(request)
        repository_url = _validated_repository_url(payload.repositoryUrl)
        result = SecurityAnalyzer().analyze_repository(repository_url, normalize_token(payload.githubToken))
    except AppError as err:
        return _error_response(err, headers=rate_headers)
    except Exception as exc:  # Safety net preserving error contract.
        logger.exception("Unexpected error in analyze handler")
        return JSONResponse(status_code=500, content=sanitize_error_response(exc), headers=rate_headers)

    response.headers.update(rate_headers)
    return result


def _download(payload: DownloadRequest, extension: str, content_type: str, context: str, render: Callable[[DownloadRequest], object]):
    if not payload.report or not isinstance(payload.report, str):
        raise AppError(code="REPORT_REQUIRED", message="Report content is required", status_code=400)

    name_check = validate_repo_name((payload.repository or {}).get("name"))
    if not name_check.valid:
        raise AppError(code="INVALID_REPOSITORY_NAME", message=name_check.error or "Invalid repository name", status_code=400)

    try:
        body = render(payload)
    except Exception as exc:
        if config.is_development():
            logger.error("%s failed: %s", context, exc)
        else:
            logger.error("%s failed", context)
        raise AppError(
            code="DOWNLOAD_GENERATION_FAILED",
            message=f"{context} failed",
            status_code=500,
            details={"error": str(exc)},
        ) from exc

    filename = generate_filename(extension, payload.repository_name())
    return Response(
        content=body,
        media_type=content_type,
        headers={
            "Content-Disposition": content_disposition(filename),
            "X-Content-Type-Options": "nosniff",
        },
    )


@app.post("/api/download/markdown")
def download_markdown(payload: DownloadRequest):
    return _download(payload, "md", MARKDOWN_CONTENT_TYPE, "Markdown generation", lambda p: prepare_markdown(p.report))


@app.post("/api/download/text")
def download_text(payload: DownloadRequest):
    return _download(payload, "txt", TEXT_CONTENT_TYPE, "Text generation", lambda p: markdown_to_plain_text(p.report))


@app.post("/api/download/pdf")
def download_pdf(payload: DownloadRequest):
    return _download(
        payload,
        "pdf",
        PDF_CONTENT_TYPE,
        "PDF generation",
        lambda p: render_pdf(p.report, repository_name=(p.repository or {}).get("name")),
    )


@app.get("/", include_in_schema=False)
def index():
    return FileResponse(STATIC_DIR / "index.html")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=config.is_development())
