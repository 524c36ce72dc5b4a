from cors import cors_headers, get_allowed_origins, is_origin_allowed


def test_allowlist_from_environment(monkeypatch):
    monkeypatch.setenv("CORS_ALLOWLIST", "https://app.example,https://admin.example")

    assert get_allowed_origins() == {"https://app.example", "https://admin.example"}
    assert cors_headers("https://app.example")["Access-Control-Allow-Origin"] == "https://app.example"
    assert "Access-Control-Allow-Origin" not in cors_headers("https://other.example")


def test_production_without_allowlist_denies_everything():
    assert get_allowed_origins() == set()
    headers = cors_headers("http://localhost:5173")

    assert "Access-Control-Allow-Origin" not in headers
    assert headers["Vary"] == "Origin"
    assert headers["Access-Control-Allow-Headers"] == "Content-Type, Authorization"
    assert not is_origin_allowed("http://localhost:5173")


def test_development_defaults_and_wildcard_for_originless(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "development")

    assert "http://localhost:5173" in get_allowed_origins()
    assert cors_headers(None)["Access-Control-Allow-Origin"] == "*"
    assert is_origin_allowed("http://127.0.0.1:3000")


def test_originless_requests_get_no_wildcard_outside_development():
    assert "Access-Control-Allow-Origin" not in cors_headers(None)
    assert is_origin_allowed(None)


def test_same_origin_requests_pass_without_allowlist():
    assert is_origin_allowed("https://seclens.example", host="seclens.example")
    assert not is_origin_allowed("https://seclens.example", host="other.example")
