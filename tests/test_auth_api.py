"""HTTP contract tests for /api/auth/* and the bearer-token gate, via FastAPI TestClient."""

import unittest
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from fuelcredit.core.config import Settings, get_settings
from fuelcredit.main import app
from fuelcredit.models import AuthAttempt, User
from fuelcredit.services.rate_limit import RATE_LIMIT_MESSAGE
from tests.support import TEST_SETTINGS, clear_overrides, make_client, make_session_factory

ALICE = {
    "email": "alice@example.com",
    "password": "secret1",
    "firstName": "Alice",
    "lastName": "Smith",
}


class ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.Session = make_session_factory()
        self.client = make_client(self.Session)

    def tearDown(self) -> None:
        clear_overrides()

    def _register(self, body: dict | None = None):
        return self.client.post("/api/auth/register", json=body or ALICE)

    def _login(self, email: str = "alice@example.com", password: str = "secret1"):
        return self.client.post("/api/auth/login", json={"email": email, "password": password})

    @staticmethod
    def _bearer(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}


class TestRegisterEndpoint(ApiTestCase):
    def test_returns_201_with_user_and_tokens(self) -> None:
        resp = self._register()
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertEqual(body["message"], "User created successfully")
        self.assertEqual(body["user"]["email"], "alice@example.com")
        self.assertEqual(body["user"]["firstName"], "Alice")
        self.assertEqual(body["user"]["lastName"], "Smith")
        self.assertEqual(body["user"]["fuelAccount"]["balance"], 0)
        self.assertEqual(body["user"]["fuelAccount"]["creditLimit"], 1000)
        self.assertIsInstance(body["user"]["fuelAccount"]["creditLimit"], float)
        self.assertNotIn("passwordHash", body["user"])
        self.assertIn("accessToken", body["tokens"])
        self.assertIn("refreshToken", body["tokens"])

    def test_duplicate_email_is_400(self) -> None:
        self._register({**ALICE, "email": "Test@x.com"})
        resp = self._register({**ALICE, "email": "test@x.com"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "User already exists")

    def test_missing_field_is_400(self) -> None:
        resp = self._register({"email": "bob@example.com", "password": "secret1"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "All fields are required")

    def test_short_password_is_400_and_creates_nothing(self) -> None:
        resp = self._register({**ALICE, "password": "12345"})
        self.assertEqual(resp.status_code, 400)
        with self.Session() as db:
            self.assertEqual(db.query(User).count(), 0)

    def test_non_string_field_is_400(self) -> None:
        resp = self._register({**ALICE, "email": 42})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("message", resp.json())


class TestLoginEndpoint(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.registration = self._register().json()

    def test_returns_200_with_fresh_pair(self) -> None:
        resp = self._login()
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["message"], "Login successful")
        self.assertEqual(body["user"]["fuelAccount"]["status"], "active")
        self.assertNotEqual(body["tokens"], self.registration["tokens"])

    def test_wrong_password_matches_unknown_email(self) -> None:
        wrong_password = self._login(password="wrong-password")
        unknown_email = self._login(email="ghost@example.com")
        self.assertEqual(wrong_password.status_code, 400)
        self.assertEqual(wrong_password.status_code, unknown_email.status_code)
        self.assertEqual(wrong_password.json(), unknown_email.json())
        self.assertEqual(wrong_password.json()["message"], "Invalid credentials")

    def test_missing_password_is_400(self) -> None:
        resp = self.client.post("/api/auth/login", json={"email": "alice@example.com"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "Email and password are required")


class TestMeEndpoint(ApiTestCase):
    def test_no_header_is_401(self) -> None:
        resp = self.client.get("/api/auth/me")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["message"], "Access token required")
        self.assertEqual(resp.headers.get("WWW-Authenticate"), "Bearer")

    def test_garbage_token_is_403(self) -> None:
        resp = self.client.get("/api/auth/me", headers=self._bearer("garbage"))
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["message"], "Invalid or expired token")

    def test_refresh_token_is_not_accepted_as_access(self) -> None:
        tokens = self._register().json()["tokens"]
        resp = self.client.get("/api/auth/me", headers=self._bearer(tokens["refreshToken"]))
        self.assertEqual(resp.status_code, 403)

    def test_deleted_user_is_401(self) -> None:
        tokens = self._register().json()["tokens"]
        with self.Session() as db:
            db.query(User).delete()
            db.commit()
        resp = self.client.get("/api/auth/me", headers=self._bearer(tokens["accessToken"]))
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["message"], "User not found")

    def test_fuel_account_is_read_live(self) -> None:
        tokens = self._register().json()["tokens"]
        with self.Session() as db:
            user = db.query(User).one()
            user.fuel_account.balance = Decimal("125.50")
            db.commit()
        resp = self.client.get("/api/auth/me", headers=self._bearer(tokens["accessToken"]))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["user"]["fuelAccount"]["balance"], 125.5)


class TestRefreshAndLogoutEndpoints(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.tokens = self._register().json()["tokens"]

    def test_refresh_missing_token_is_400(self) -> None:
        resp = self.client.post("/api/auth/refresh", json={})
        self.assertEqual(resp.status_code, 400)

    def test_refresh_garbage_is_403(self) -> None:
        resp = self.client.post("/api/auth/refresh", json={"refreshToken": "garbage"})
        self.assertEqual(resp.status_code, 403)

    def test_refresh_returns_only_tokens(self) -> None:
        resp = self.client.post(
            "/api/auth/refresh", json={"refreshToken": self.tokens["refreshToken"]}
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(set(resp.json()), {"tokens"})

    def test_logout_requires_access_token(self) -> None:
        resp = self.client.post(
            "/api/auth/logout", json={"refreshToken": self.tokens["refreshToken"]}
        )
        self.assertEqual(resp.status_code, 401)

    def test_logout_revokes_refresh_but_not_access(self) -> None:
        resp = self.client.post(
            "/api/auth/logout",
            json={"refreshToken": self.tokens["refreshToken"]},
            headers=self._bearer(self.tokens["accessToken"]),
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["message"], "Logout successful")

        refreshed = self.client.post(
            "/api/auth/refresh", json={"refreshToken": self.tokens["refreshToken"]}
        )
        self.assertEqual(refreshed.status_code, 403)
        me = self.client.get("/api/auth/me", headers=self._bearer(self.tokens["accessToken"]))
        self.assertEqual(me.status_code, 200)

    def test_logout_without_body_succeeds(self) -> None:
        resp = self.client.post(
            "/api/auth/logout", headers=self._bearer(self.tokens["accessToken"])
        )
        self.assertEqual(resp.status_code, 200)


class TestEndToEndSession(ApiTestCase):
    def test_register_login_me_refresh_replay(self) -> None:
        registered = self._register()
        self.assertEqual(registered.status_code, 201)

        logged_in = self._login()
        self.assertEqual(logged_in.status_code, 200)
        login_tokens = logged_in.json()["tokens"]
        self.assertNotEqual(login_tokens, registered.json()["tokens"])

        me = self.client.get("/api/auth/me", headers=self._bearer(login_tokens["accessToken"]))
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["user"]["firstName"], "Alice")
        self.assertEqual(me.json()["user"]["email"], "alice@example.com")

        first = self.client.post(
            "/api/auth/refresh", json={"refreshToken": login_tokens["refreshToken"]}
        )
        self.assertEqual(first.status_code, 200)
        self.assertNotEqual(first.json()["tokens"]["refreshToken"], login_tokens["refreshToken"])

        replay = self.client.post(
            "/api/auth/refresh", json={"refreshToken": login_tokens["refreshToken"]}
        )
        self.assertEqual(replay.status_code, 403)


class TestServiceEndpoints(ApiTestCase):
    def test_root_is_anonymous_friendly(self) -> None:
        resp = self.client.get("/")
        self.assertEqual(resp.status_code, 200)
        self.assertNotIn("greeting", resp.json())
        self.assertIn("refresh", resp.json()["endpoints"])

    def test_root_greets_authenticated_caller(self) -> None:
        tokens = self._register().json()["tokens"]
        resp = self.client.get("/", headers=self._bearer(tokens["accessToken"]))
        self.assertEqual(resp.json()["greeting"], "Welcome back, Alice")

    def test_root_ignores_bad_token(self) -> None:
        resp = self.client.get("/", headers=self._bearer("garbage"))
        self.assertEqual(resp.status_code, 200)
        self.assertNotIn("greeting", resp.json())

    def test_root_survives_store_failure_during_optional_auth(self) -> None:
        tokens = self._register().json()["tokens"]
        with patch(
            "fuelcredit.api.auth.get_user_by_id",
            side_effect=OperationalError("SELECT users", {}, Exception("database is down")),
        ):
            resp = self.client.get("/", headers=self._bearer(tokens["accessToken"]))
        self.assertEqual(resp.status_code, 200)
        self.assertNotIn("greeting", resp.json())

    def test_security_headers_are_set(self) -> None:
        resp = self.client.get("/")
        self.assertEqual(resp.headers["X-Content-Type-Options"], "nosniff")
        self.assertEqual(resp.headers["X-Frame-Options"], "DENY")
        self.assertEqual(resp.headers["Referrer-Policy"], "no-referrer")
        self.assertIn("default-src 'none'", resp.headers["Content-Security-Policy"])
        self.assertNotIn("Strict-Transport-Security", resp.headers)

    def test_health_reports_database(self) -> None:
        resp = self.client.get("/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "ok")
        self.assertEqual(resp.json()["database"], "connected")


class TestAuthRateLimit(ApiTestCase):
    """Register and login share one attempt budget per client; other routes are unlimited."""

    def setUp(self) -> None:
        super().setUp()
        limited = TEST_SETTINGS.model_copy(
            update={"AUTH_RATE_LIMIT_ENABLED": True, "AUTH_RATE_LIMIT_ATTEMPTS": 3}
        )
        app.dependency_overrides[get_settings] = lambda: limited

    def test_fourth_attempt_is_rejected_with_429(self) -> None:
        for _ in range(3):
            self.assertEqual(self._login(password="wrong-pass").status_code, 400)
        resp = self._login()
        self.assertEqual(resp.status_code, 429)
        self.assertEqual(resp.json(), {"message": RATE_LIMIT_MESSAGE})
        self.assertGreater(int(resp.headers["Retry-After"]), 0)

    def test_register_and_login_share_the_budget(self) -> None:
        self.assertEqual(self._register().status_code, 201)
        self.assertEqual(self._login().status_code, 200)
        self.assertEqual(self._login().status_code, 200)
        resp = self._register({**ALICE, "email": "bob@example.com"})
        self.assertEqual(resp.status_code, 429)
        with self.Session() as db:
            self.assertEqual(db.query(User).count(), 1)

    def test_other_endpoints_are_not_limited(self) -> None:
        tokens = self._register().json()["tokens"]
        self._login(password="wrong-pass")
        self._login(password="wrong-pass")
        self.assertEqual(self._login().status_code, 429)
        me = self.client.get("/api/auth/me", headers=self._bearer(tokens["accessToken"]))
        self.assertEqual(me.status_code, 200)
        refreshed = self.client.post(
            "/api/auth/refresh", json={"refreshToken": tokens["refreshToken"]}
        )
        self.assertEqual(refreshed.status_code, 200)

    def test_attempts_outside_the_window_do_not_count(self) -> None:
        old = datetime.now(UTC) - timedelta(minutes=20)
        with self.Session() as db:
            for _ in range(3):
                db.add(AuthAttempt(client_key="testclient", attempted_at=old))
            db.commit()
        self.assertEqual(self._register().status_code, 201)


class TestInternalErrors(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        clear_overrides()
        self.client = make_client(self.Session, raise_server_exceptions=False)

    def test_unexpected_error_is_generic_500(self) -> None:
        with patch(
            "fuelcredit.services.auth.hash_password",
            side_effect=RuntimeError("disk on fire"),
        ):
            resp = self._register()
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {"message": "Internal server error"})

    def test_missing_secrets_fail_closed(self) -> None:
        app.dependency_overrides[get_settings] = lambda: Settings(
            _env_file=None, DATABASE_URL="sqlite://", BCRYPT_ROUNDS=4
        )
        resp = self._register()
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {"message": "Internal server error"})
        with self.Session() as db:
            self.assertEqual(db.query(User).count(), 0)


if __name__ == "__main__":
    unittest.main()
