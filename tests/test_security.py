from datetime import timedelta

import pytest
from jose import jwt

from gilt_backend.middleware import path_matches
from gilt_backend.security import (
    FailedAttemptLimiter,
    SESSION_COOKIE_NAME,
    create_session_token,
    decode_session_token,
    make_unsubscribe_token,
    secret_matches,
    verify_unsubscribe_token,
)
from gilt_backend.utils import utcnow


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestSessionTokens:
    def test_round_trip_keeps_role(self):
        token = create_session_token("42", email="admin@giltcounselling.com", role="admin")

        user = decode_session_token(token)

        assert user.id == "42"
        assert user.email == "admin@giltcounselling.com"
        assert user.is_admin is True

    def test_expired_token_is_rejected(self):
        token = create_session_token("42", expires_delta=timedelta(seconds=-10))

        assert decode_session_token(token) is None

    def test_token_signed_with_other_secret_is_rejected(self):
        token = jwt.encode(
            {"sub": "42", "role": "admin", "exp": utcnow() + timedelta(hours=1)},
            "someone-else",
            algorithm="HS256",
        )

        assert decode_session_token(token) is None

    def test_token_without_subject_is_rejected(self):
        token = jwt.encode(
            {"role": "admin", "exp": utcnow() + timedelta(hours=1)},
            "test-session-secret",
            algorithm="HS256",
        )

        assert decode_session_token(token) is None

    def test_missing_secret_rejects_sessions(self, monkeypatch):
        token = create_session_token("42", role="admin")
        monkeypatch.setenv("SESSION_SECRET", "")

        assert decode_session_token(token) is None
        with pytest.raises(RuntimeError):
            create_session_token("42")


class TestSharedSecrets:
    def test_secret_matches(self):
        assert secret_matches("abc", "abc") is True
        assert secret_matches("abd", "abc") is False
        assert secret_matches("", "") is False
        assert secret_matches(None, "abc") is False

    def test_unsubscribe_token_is_case_insensitive_on_email(self):
        token = make_unsubscribe_token("Reader@Example.com")

        assert verify_unsubscribe_token("reader@example.com", token) is True
        assert verify_unsubscribe_token("other@example.com", token) is False


class TestFailedAttemptLimiter:
    def test_blocks_after_max_failures(self):
        limiter = FailedAttemptLimiter(clock=FakeClock())

        for _ in range(3):
            assert limiter.is_blocked("1.2.3.4", 3) is False
            limiter.record_failure("1.2.3.4", 60)

        assert limiter.is_blocked("1.2.3.4", 3) is True
        assert limiter.is_blocked("5.6.7.8", 3) is False

    def test_window_expiry_unblocks(self):
        clock = FakeClock()
        limiter = FailedAttemptLimiter(clock=clock)
        for _ in range(3):
            limiter.record_failure("1.2.3.4", 60)

        clock.now += 61

        assert limiter.is_blocked("1.2.3.4", 3) is False

    def test_expired_entries_are_purged_on_new_failures(self):
        clock = FakeClock()
        limiter = FailedAttemptLimiter(clock=clock)
        for i in range(10):
            limiter.record_failure(f"10.0.0.{i}", 60)

        clock.now += 61
        limiter.record_failure("10.0.0.99", 60)

        assert limiter.tracked_keys() == 1

    def test_reset(self):
        limiter = FailedAttemptLimiter(clock=FakeClock())
        limiter.record_failure("1.2.3.4", 60)

        limiter.reset("1.2.3.4")

        assert limiter.is_blocked("1.2.3.4", 1) is False


@pytest.mark.parametrize(
    "path, prefix, expected",
    [
        ("/api/admin", "/api/admin", True),
        ("/api/admin/users", "/api/admin", True),
        ("/api/admin-notifications", "/api/admin", False),
        ("/dashboard", "/dashboard", True),
        ("/dashboards", "/dashboard", False),
        ("/bookings", "/booking", False),
    ],
)
def test_path_matches_on_segment_boundaries(path, prefix, expected):
    assert path_matches(path, prefix) is expected


class TestSessionGate:
    def test_page_without_session_redirects_to_signin(self, client):
        response = client.get("/dashboard/bookings", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/auth/signin?callbackUrl=%2Fdashboard%2Fbookings"

    def test_admin_page_with_user_session_redirects_home(self, client, user_headers):
        response = client.get("/dashboard", headers=user_headers, follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/"

    def test_booking_page_allows_any_session(self, client, user_headers):
        response = client.get("/booking", headers=user_headers, follow_redirects=False)

        # Pasa el gate; la página la sirve el frontend
        assert response.status_code == 404

    def test_api_without_session_returns_401(self, client):
        response = client.get("/api/bookings")

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Authentication required"}

    def test_api_with_user_session_returns_401(self, client, user_headers):
        response = client.get("/api/dashboard/stats", headers=user_headers)

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Admin access required"}

    def test_admin_session_from_cookie(self, client):
        client.cookies.set(SESSION_COOKIE_NAME, create_session_token("1", email="admin@giltcounselling.com", role="admin"))

        response = client.get("/api/bookings")

        assert response.status_code == 200
        assert response.json() == []

    def test_cron_paths_are_not_session_gated(self, client):
        response = client.post("/api/admin-notifications", headers={"Authorization": "Bearer wrong"})

        # Lo rechaza el secreto de cron, no el middleware de sesión
        assert response.json()["error"] == "Unauthorized"
