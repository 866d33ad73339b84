"""HTTP tests for the auth routes and the request authorization guard."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

from fastapi import APIRouter, Depends, FastAPI
from fastapi.testclient import TestClient

from calmato.api.guard import AuthorizationGuard
from calmato.api.v1 import auth, health
from calmato.core.database import get_db
from calmato.core.tokens import TokenClaims, get_token_service
from calmato.main import PUBLIC_ENDPOINTS, app, handle_auth_service_error, root
from calmato.models.user import UserRole
from calmato.services.auth import AuthServiceError
from support import make_session_factory

PASSWORD = "Abcd1234!"


class ApiTestCase(unittest.TestCase):
    """TestClient over the real app with get_db pointed at in-memory SQLite."""

    def setUp(self) -> None:
        session_factory = make_session_factory()

        def override_get_db():
            db = session_factory()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def register(self, email: str = "a@x.com", **kwargs: object):
        body: dict = {"email": email, "name": "A", "password": PASSWORD}
        body.update(kwargs)
        return self.client.post("/auth/register", json=body)

    def bearer(self, token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}


class TestRegisterEndpoint(ApiTestCase):
    def test_register_returns_token_envelope(self) -> None:
        resp = self.register()
        self.assertEqual(resp.status_code, 201)
        data = resp.json()
        self.assertEqual(data["tokenType"], "Bearer")
        self.assertEqual(data["expiresIn"], 7 * 24 * 3600)
        self.assertTrue(data["accessToken"])
        self.assertEqual(data["user"]["email"], "a@x.com")
        self.assertEqual(data["user"]["role"], "USER")
        self.assertIn("createdAt", data["user"])
        self.assertNotIn("password", data["user"])
        self.assertNotIn("passwordHash", data["user"])
        self.assertNotIn("password_hash", data["user"])

    def test_duplicate_email_conflict(self) -> None:
        self.assertEqual(self.register().status_code, 201)
        resp = self.register()
        self.assertEqual(resp.status_code, 409)
        self.assertIn("detail", resp.json())

    def test_weak_password_is_bad_request(self) -> None:
        resp = self.register(password="abcdefgh")
        self.assertEqual(resp.status_code, 400)
        fields = [e["field"] for e in resp.json()["detail"]]
        self.assertIn("password", fields)

    def test_invalid_email_is_bad_request(self) -> None:
        resp = self.register(email="not-an-email")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"][0]["field"], "email")

    def test_missing_name_is_bad_request(self) -> None:
        resp = self.client.post("/auth/register", json={"email": "a@x.com", "password": PASSWORD})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("name", [e["field"] for e in resp.json()["detail"]])

    def test_unknown_role_is_bad_request(self) -> None:
        self.assertEqual(self.register(role="ROOT").status_code, 400)

    def test_unknown_field_is_bad_request(self) -> None:
        resp = self.register(isAdmin=True)
        self.assertEqual(resp.status_code, 400)
        self.assertIn("isAdmin", [e["field"] for e in resp.json()["detail"]])

    def test_non_ascii_digit_does_not_satisfy_policy(self) -> None:
        resp = self.register(password="Abcdefg\u0661!")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("password", [e["field"] for e in resp.json()["detail"]])

    def test_malformed_json_reports_body(self) -> None:
        resp = self.client.post(
            "/auth/register",
            content=b'{"email": "a@x.com", "name": ',
            headers={"Content-Type": "application/json"},
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual([e["field"] for e in resp.json()["detail"]], ["body"])


class TestLoginEndpoint(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.register()

    def test_login_success(self) -> None:
        resp = self.client.post("/auth/login", json={"email": "a@x.com", "password": PASSWORD})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["user"]["email"], "a@x.com")

    def test_login_rejects_unknown_field(self) -> None:
        resp = self.client.post(
            "/auth/login",
            json={"email": "a@x.com", "password": PASSWORD, "remember": True},
        )
        self.assertEqual(resp.status_code, 400)

    def test_wrong_password_generic_message(self) -> None:
        wrong = self.client.post("/auth/login", json={"email": "a@x.com", "password": "Wrong1234!"})
        unknown = self.client.post("/auth/login", json={"email": "b@x.com", "password": PASSWORD})
        self.assertEqual(wrong.status_code, 401)
        self.assertEqual(unknown.status_code, 401)
        self.assertEqual(wrong.json(), unknown.json())
        self.assertNotIn("wrong password", wrong.json()["detail"].lower())


class TestProfileEndpoint(ApiTestCase):
    def test_profile_with_token(self) -> None:
        token = self.register().json()["accessToken"]
        resp = self.client.get("/auth/profile", headers=self.bearer(token))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["email"], "a@x.com")
        self.assertNotIn("passwordHash", resp.json())

    def test_profile_without_header(self) -> None:
        resp = self.client.get("/auth/profile")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.headers.get("www-authenticate"), "Bearer")

    def test_profile_with_expired_token(self) -> None:
        user_id = self.register().json()["user"]["id"]
        token = get_token_service().issue(
            TokenClaims(user_id=user_id, email="a@x.com", role=UserRole.USER),
            now=datetime.now(UTC) - timedelta(days=8),
        )
        resp = self.client.get("/auth/profile", headers=self.bearer(token))
        self.assertEqual(resp.status_code, 401)

    def test_expired_and_forged_look_the_same(self) -> None:
        expired = get_token_service().issue(
            TokenClaims(user_id=1, email="a@x.com", role=UserRole.USER),
            now=datetime.now(UTC) - timedelta(days=8),
        )
        r1 = self.client.get("/auth/profile", headers=self.bearer(expired))
        r2 = self.client.get("/auth/profile", headers=self.bearer("forged.token.value"))
        self.assertEqual(r1.json(), r2.json())

    def test_non_bearer_scheme(self) -> None:
        resp = self.client.get("/auth/profile", headers={"Authorization": "Basic YTpi"})
        self.assertEqual(resp.status_code, 401)

    def test_profile_for_deleted_user(self) -> None:
        token = get_token_service().issue(
            TokenClaims(user_id=999, email="gone@x.com", role=UserRole.USER)
        )
        resp = self.client.get("/auth/profile", headers=self.bearer(token))
        self.assertEqual(resp.status_code, 404)


class TestUsersEndpoint(ApiTestCase):
    def test_requires_token(self) -> None:
        self.assertEqual(self.client.get("/auth/users").status_code, 401)

    def test_forbidden_for_regular_user(self) -> None:
        token = self.register().json()["accessToken"]
        resp = self.client.get("/auth/users", headers=self.bearer(token))
        self.assertEqual(resp.status_code, 403)

    def test_admin_lists_all_users(self) -> None:
        self.register(email="u@x.com")
        token = self.register(email="admin@x.com", role="ADMIN").json()["accessToken"]
        resp = self.client.get("/auth/users", headers=self.bearer(token))
        self.assertEqual(resp.status_code, 200)
        self.assertIsInstance(resp.json(), list)
        emails = [u["email"] for u in resp.json()]
        self.assertEqual(emails, ["u@x.com", "admin@x.com"])
        self.assertNotIn("passwordHash", resp.json()[0])


class TestPublicRoutes(ApiTestCase):
    def test_root_is_public(self) -> None:
        self.assertEqual(self.client.get("/").status_code, 200)

    def test_health_is_public(self) -> None:
        resp = self.client.get("/health/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "ok")
        self.assertEqual(resp.json()["database"], "connected")
        self.assertEqual(resp.json()["version"], app.version)

    def test_health_degraded_when_database_unreachable(self) -> None:
        with patch("calmato.api.v1.health.check_db_connected", return_value=False):
            resp = self.client.get("/health/")
        self.assertEqual(resp.status_code, 503)
        self.assertEqual(resp.json()["status"], "degraded")
        self.assertEqual(resp.json()["database"], "disconnected")

    def test_public_route_ignores_bad_token(self) -> None:
        resp = self.client.get("/", headers=self.bearer("garbage"))
        self.assertEqual(resp.status_code, 200)

    def test_unknown_path_is_not_found(self) -> None:
        self.assertEqual(self.client.get("/does-not-exist").status_code, 404)


class TestGuardPublicTable(unittest.TestCase):
    """The public table matches handlers, not path templates relative to a router."""

    def setUp(self) -> None:
        def open_root() -> dict[str, str]:
            return {"message": "open"}

        def list_things() -> list[str]:
            return []

        things = APIRouter()
        things.add_api_route("/", list_things, methods=["GET"])

        guarded = FastAPI(dependencies=[Depends(AuthorizationGuard({open_root}))])
        guarded.add_api_route("/", open_root, methods=["GET"])
        guarded.include_router(things, prefix="/things")
        guarded.add_exception_handler(AuthServiceError, handle_auth_service_error)
        self.client = TestClient(guarded)

    def test_public_root_open(self) -> None:
        self.assertEqual(self.client.get("/").status_code, 200)

    def test_router_root_stays_protected(self) -> None:
        self.assertEqual(self.client.get("/things/").status_code, 401)

    def test_router_root_with_token(self) -> None:
        token = get_token_service().issue(
            TokenClaims(user_id=1, email="a@x.com", role=UserRole.USER)
        )
        resp = self.client.get("/things/", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(resp.status_code, 200)

    def test_app_public_table(self) -> None:
        self.assertEqual(
            PUBLIC_ENDPOINTS,
            frozenset({root, health.get_health, auth.register, auth.login}),
        )
        self.assertNotIn(auth.get_profile, PUBLIC_ENDPOINTS)
        self.assertNotIn(auth.list_users, PUBLIC_ENDPOINTS)


if __name__ == "__main__":
    unittest.main()
