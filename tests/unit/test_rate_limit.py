from rate_limit import RateLimiter, client_ip


def test_allows_up_to_limit_then_blocks():
    limiter = RateLimiter(max_requests=5, window_seconds=3600)
    now = 7200.0

    results = [limiter.check("1.2.3.4", now=now + i) for i in range(6)]

    assert [r.allowed for r in results] == [True] * 5 + [False]
    assert [r.remaining for r in results] == [4, 3, 2, 1, 0, 0]
    assert results[-1].reset_time == now + 3600


def test_new_hour_bucket_resets_budget():
    limiter = RateLimiter(max_requests=1, window_seconds=3600)

    assert limiter.check("1.2.3.4", now=3599.0).allowed is True
    assert limiter.check("1.2.3.4", now=3599.5).allowed is False
    assert limiter.check("1.2.3.4", now=3600.0).allowed is True


def test_clients_are_counted_separately():
    limiter = RateLimiter(max_requests=1, window_seconds=60)

    assert limiter.check("a", now=0.0).allowed is True
    assert limiter.check("b", now=0.0).allowed is True
    assert limiter.check("a", now=1.0).allowed is False


def test_entries_older_than_two_windows_are_purged():
    limiter = RateLimiter(max_requests=5, window_seconds=60)
    limiter.check("a", now=0.0)
    limiter.check("b", now=100.0)
    assert len(limiter) == 2

    limiter.check("c", now=130.0)

    assert len(limiter) == 2


def test_client_ip_resolution_order():
    assert client_ip({"x-forwarded-for": "203.0.113.1, 10.0.0.2", "x-real-ip": "9.9.9.9"}, "127.0.0.1") == "203.0.113.1"
    assert client_ip({"x-real-ip": "9.9.9.9"}, "127.0.0.1") == "9.9.9.9"
    assert client_ip({}, "127.0.0.1") == "127.0.0.1"
    assert client_ip({}) == "unknown"
