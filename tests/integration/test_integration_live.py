import os

import httpx
import pytest


@pytest.mark.integration
def test_live_analyze_public_repo():
    if os.getenv("RUN_INTEGRATION") != "1":
        pytest.skip("RUN_INTEGRATION is not enabled")
    if not os.getenv("OPENAI_API_KEY"):
        pytest.skip("OPENAI_API_KEY is not set")

    base_url = os.getenv("INTEGRATION_BASE_URL", "http://localhost:8000")
    response = httpx.post(
        f"{base_url}/api/analyze",
        json={"repositoryUrl": "https://github.com/psf/requests"},
        timeout=120.0,
    )

    assert response.status_code == 200
    payload = response.json()
    assert len(payload["report"]) > 100
    assert payload["repository"]["owner"] == "psf"

    pdf = httpx.post(
        f"{base_url}/api/download/pdf",
        json={"report": payload["report"], "repository": payload["repository"]},
        timeout=60.0,
    )
    assert pdf.status_code == 200
    assert pdf.content.startswith(b"%PDF")
