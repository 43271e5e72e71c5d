"""
Tests for Rate Limiting

The login/registration limiter is an injected dependency, so tests swap in a
small RateLimiter instead of relying on the globally disabled one.
"""

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from bookreviewer.main import app
from bookreviewer.models import User
from bookreviewer.services.rate_limiter import RateLimiter, get_auth_rate_limiter
from tests.conftest import PASSWORD


class TestRateLimiter:
    def test_allows_up_to_limit(self):
        limiter = RateLimiter("3/minute", namespace="test")

        results = [limiter.check_and_record("1.2.3.4") for _ in range(4)]

        assert results == [True, True, True, False]

    def test_keys_are_independent(self):
        limiter = RateLimiter("1/minute", namespace="test")

        assert limiter.check_and_record("a") is True
        assert limiter.check_and_record("b") is True
        assert limiter.check_and_record("a") is False

    def test_disabled_always_allows(self):
        limiter = RateLimiter("1/minute", namespace="test", enabled=False)

        assert all(limiter.check_and_record("a") for _ in range(5))

    def test_reset(self):
        limiter = RateLimiter("1/minute", namespace="test")
        limiter.check_and_record("a")

        limiter.reset()

        assert limiter.check_and_record("a") is True


class TestAuthThrottle:
    @pytest.fixture
    def strict_limiter(self, client: TestClient):
        limiter = RateLimiter("2/minute", namespace="auth-test")
        app.dependency_overrides[get_auth_rate_limiter] = lambda: limiter
        yield limiter
        app.dependency_overrides.pop(get_auth_rate_limiter, None)

    def test_login_throttled(self, client: TestClient, strict_limiter, sample_user: User):
        payload = {"email": sample_user.email, "password": "WrongPass999"}

        first = client.post("/api/v1/auth/login", json=payload)
        second = client.post("/api/v1/auth/login", json=payload)
        third = client.post("/api/v1/auth/login", json={"email": sample_user.email, "password": PASSWORD})

        assert first.status_code == status.HTTP_401_UNAUTHORIZED
        assert second.status_code == status.HTTP_401_UNAUTHORIZED
        # Even the right password is refused once the allowance is used up
        assert third.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        body = third.json()
        assert body["success"] is False
        assert body["code"] == "RATE_LIMIT_EXCEEDED"

    def test_throttle_is_per_client(self, client: TestClient, strict_limiter, sample_user: User):
        payload = {"email": sample_user.email, "password": PASSWORD}
        for _ in range(2):
            client.post("/api/v1/auth/login", json=payload, headers={"X-Forwarded-For": "10.0.0.1"})

        blocked = client.post("/api/v1/auth/login", json=payload, headers={"X-Forwarded-For": "10.0.0.1"})
        other = client.post("/api/v1/auth/login", json=payload, headers={"X-Forwarded-For": "10.0.0.2"})

        assert blocked.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert other.status_code == status.HTTP_200_OK
