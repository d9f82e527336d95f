"""Tests for Redis-backed rate limiting."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from edulearn.core.rate_limit import check_rate_limit


def _redis(counter: int) -> MagicMock:
    client = MagicMock()
    client.incr = AsyncMock(return_value=counter)
    client.expire = AsyncMock()
    return client


class TestCheckRateLimit:
    async def test_fails_open_without_redis(self) -> None:
        with patch("edulearn.core.rate_limit.get_redis", return_value=None):
            assert await check_rate_limit("k", 5, 60) == (True, 0, 5)

    async def test_first_hit_sets_window(self) -> None:
        client = _redis(1)
        with patch("edulearn.core.rate_limit.get_redis", return_value=client):
            assert await check_rate_limit("k", 5, 60) == (True, 1, 4)
        client.expire.assert_awaited_once_with("k", 60)

    async def test_over_limit(self) -> None:
        client = _redis(6)
        with patch("edulearn.core.rate_limit.get_redis", return_value=client):
            assert await check_rate_limit("k", 5, 60) == (False, 6, 0)
        client.expire.assert_not_called()

    async def test_fails_open_on_redis_error(self) -> None:
        client = MagicMock()
        client.incr = AsyncMock(side_effect=ConnectionError("down"))
        with patch("edulearn.core.rate_limit.get_redis", return_value=client):
            assert await check_rate_limit("k", 5, 60) == (True, 0, 5)


@pytest.mark.parametrize(
    "path,body",
    [
        (
            "/signup-request",
            {
                "email": "ana@college.edu",
                "name": "Ana Silva",
                "role": "student",
                "institution": "State College",
            },
        ),
        ("/auth/login", {"email": "ana@college.edu", "password": "Welcome123"}),
    ],
)
def test_limited_endpoints_return_429(client: TestClient, path: str, body: dict) -> None:
    with patch("edulearn.core.rate_limit.get_redis", return_value=_redis(100)):
        response = client.post(path, json=body)

    assert response.status_code == 429
    assert response.json()["success"] is False
    assert response.headers["Retry-After"] == "60"
    assert response.headers["X-RateLimit-Remaining"] == "0"
