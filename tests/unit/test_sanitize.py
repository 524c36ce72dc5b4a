import pytest

from sanitize import (
    is_valid_github_url,
    sanitize_github_url,
    sanitize_markdown,
    sanitize_text,
    validate_input,
    validate_repo_name,
    validate_string,
)
from utils import sanitize_body, sanitize_error_response, sanitize_headers, sanitize_log_data


def test_sanitize_text_escapes_html_once():
    assert sanitize_text("<a href='/x'>&</a>") == "&lt;a href=&#x27;&#x2F;x&#x27;&gt;&amp;&lt;&#x2F;a&gt;"
    assert sanitize_text(None) == ""
    assert sanitize_text(5) == ""


def test_sanitize_markdown_is_case_insensitive():
    assert sanitize_markdown("<SCRIPT>bad()</SCRIPT>keep JavaScript:x OnClick = y") == "keep x  y"


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://github.com/psf/requests", "https://github.com/psf/requests"),
        ("github.com/psf/requests", "https://github.com/psf/requests"),
        ("http://github.com/psf/requests/issues/1", "https://github.com/psf/requests"),
        ("https://gitlab.com/psf/requests", None),
        ("", None),
        (None, None),
    ],
)
def test_sanitize_github_url(url, expected):
    assert sanitize_github_url(url) == expected


def test_is_valid_github_url_requires_https_and_two_segments():
    assert is_valid_github_url(" https://github.com/psf/requests/ ")
    assert not is_valid_github_url("http://github.com/psf/requests")
    assert not is_valid_github_url("https://github.com/psf")


def test_validate_input():
    assert validate_input("  abc  ").value == "abc"
    assert validate_input("", allow_empty=True).valid is True
    assert validate_input("abcdef", max_length=3).error == "Input exceeds maximum length of 3"
    assert validate_input(["x"]).error == "Input must be a string"


def test_validate_string_and_repo_name():
    assert validate_string(None).error == "Value is required"
    assert validate_string(None, required=False).valid is True
    assert validate_string(3).error == "Value must be a string"
    assert validate_string("  ").error == "Value cannot be empty"
    assert validate_repo_name("my.repo_name-1").valid is True
    assert validate_repo_name("bad name!").error == "Repository name contains invalid characters"
    assert validate_repo_name("").valid is True


def test_log_sanitization_redacts_secrets():
    headers = sanitize_headers({"Authorization": "Bearer x", "Cookie": "a=b", "Origin": "https://app.example"})
    assert headers == {"Authorization": "[REDACTED]", "Cookie": "[REDACTED]", "Origin": "https://app.example"}

    body = sanitize_body({"repositoryUrl": "https://github.com/a/b", "githubToken": "ghp_x", "password": "p"})
    assert body == {"repositoryUrl": "https://github.com/a/b", "githubToken": "[REDACTED]", "password": "[REDACTED]"}

    data = sanitize_log_data({"body": {"api_key": "k"}, "requestHeaders": {"x-api-key": "k"}, "path": "/api"})
    assert data == {"body": {"api_key": "[REDACTED]"}, "requestHeaders": {"x-api-key": "[REDACTED]"}, "path": "/api"}


def test_sanitize_error_response_hides_details_outside_development(monkeypatch):
    assert sanitize_error_response(RuntimeError("secret")) == {
        "error": "An unexpected error occurred. Please try again later."
    }
    monkeypatch.setenv("ENVIRONMENT", "development")
    assert sanitize_error_response(RuntimeError("secret"))["details"] == "secret"
