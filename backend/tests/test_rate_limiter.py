"""Tests for the admin rate limiter."""

from unittest.mock import MagicMock, patch

import redis

from app.config import settings
from app.services import rate_limiter


def _fake_redis(wait_ms=0, error=None):
    fake = MagicMock()
    if error is not None:
        fake.eval.side_effect = error
    else:
        fake.eval.return_value = wait_ms
    return fake


def test_disabled_when_rpm_zero():
    fake = _fake_redis(wait_ms=5000)
    with patch.object(settings, "RATE_LIMIT_ADMIN_RPM", 0), patch.object(
        rate_limiter, "_get_redis", return_value=fake
    ):
        assert rate_limiter._wait_seconds("rl:admin:ip:1.2.3.4") == 0
    fake.eval.assert_not_called()


def test_fails_open_when_redis_down():
    fake = _fake_redis(error=redis.ConnectionError("down"))
    with patch.object(settings, "RATE_LIMIT_ADMIN_RPM", 60), patch.object(
        rate_limiter, "_get_redis", return_value=fake
    ):
        assert rate_limiter._wait_seconds("rl:admin:ip:1.2.3.4") == 0


def test_wait_rounds_up_to_whole_seconds():
    with patch.object(settings, "RATE_LIMIT_ADMIN_RPM", 60), patch.object(
        rate_limiter, "_get_redis", return_value=_fake_redis(wait_ms=1500)
    ):
        assert rate_limiter._wait_seconds("rl:admin:ip:1.2.3.4") == 2


def test_empty_bucket_returns_429(client, admin_headers):
    fake = _fake_redis(wait_ms=800)
    with patch.object(settings, "RATE_LIMIT_ADMIN_RPM", 60), patch.object(
        rate_limiter, "_get_redis", return_value=fake
    ):
        response = client.get("/api/admin/quizzes", headers=admin_headers)

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "1"
    assert fake.eval.call_args.args[2].startswith("rl:admin:u:")


def test_player_routes_not_limited(client):
    fake = _fake_redis(wait_ms=800)
    with patch.object(settings, "RATE_LIMIT_ADMIN_RPM", 60), patch.object(
        rate_limiter, "_get_redis", return_value=fake
    ):
        assert client.get("/api/prizes").status_code == 200
    fake.eval.assert_not_called()
