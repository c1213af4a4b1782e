"""End-to-end API tests through FastAPI's TestClient."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import jwt
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from devnexus.core.config import get_settings
from devnexus.core.errors import ConfigurationError
from devnexus.core.rate_limit import login_limiter
from devnexus.core.security import JWT_ALGORITHM
from devnexus.main import app
from devnexus.services.hub import get_dispatcher
from devnexus.services.notifications import NotificationDispatcher
from tests.support import add_user, reset_database

API = "/api/v1"


class ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        reset_database()
        login_limiter.reset()
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        login_limiter.reset()

    def login(self, username: str = "developer", password: str = "password123") -> str:
        response = self.client.post(
            f"{API}/auth/login", json={"username": username, "password": password}
        )
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()["data"]["token"]

    def auth(self, token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}


class TestHealth(ApiTestCase):
    def test_health_needs_no_auth(self) -> None:
        response = self.client.get(f"{API}/health/")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "ok")
        self.assertEqual(body["database"], "connected")


class TestAuthRoutes(ApiTestCase):
    def test_login_returns_envelope_with_developer_role(self) -> None:
        response = self.client.post(
            f"{API}/auth/login", json={"username": "developer", "password": "password123"}
        )
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["data"]["user"]["role"], "Developer")
        self.assertNotIn("password_hash", body["data"]["user"])
        self.assertIsNone(body["errors"])

    def test_bad_credentials(self) -> None:
        response = self.client.post(
            f"{API}/auth/login", json={"username": "developer", "password": "nope"}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.headers["WWW-Authenticate"], "Bearer")

    def test_validate_token(self) -> None:
        response = self.client.post(f"{API}/auth/validate", json={"token": self.login()})
        self.assertEqual(response.status_code, 200)
        body = response.json()["data"]
        self.assertTrue(body["valid"])
        self.assertEqual(body["user"]["id"], "user-001")
        self.assertEqual(body["user"]["username"], "developer")
        self.assertEqual(body["user"]["role"], "Developer")

    def test_validate_expired_or_garbage_token_is_not_valid(self) -> None:
        settings = get_settings()
        now = datetime.now(UTC)
        expired = jwt.encode(
            {
                "sub": "user-001",
                "name": "developer",
                "role": "Developer",
                "UserId": "user-001",
                "UserName": "developer",
                "iss": settings.JWT_ISSUER,
                "aud": settings.JWT_AUDIENCE,
                "iat": now - timedelta(minutes=10),
                "exp": now - timedelta(seconds=1),
            },
            settings.JWT_SECRET.get_secret_value(),
            algorithm=JWT_ALGORITHM,
        )
        for token in (expired, "garbage"):
            with self.subTest(token=token[:10]):
                response = self.client.post(f"{API}/auth/validate", json={"token": token})
                self.assertEqual(response.status_code, 200)
                self.assertEqual(response.json()["data"], {"valid": False, "user": None})

    def test_validate_requires_token(self) -> None:
        for body in ({}, {"token": ""}, {"token": "   "}):
            with self.subTest(body=body):
                response = self.client.post(f"{API}/auth/validate", json=body)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.json()["message"], "Token is required")
        body = response.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["message"], "Invalid username or password")
        self.assertIsNone(body["data"])

    def test_empty_credentials_are_bad_request(self) -> None:
        response = self.client.post(f"{API}/auth/login", json={"username": "", "password": ""})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Username and password are required")

    def test_login_is_rate_limited(self) -> None:
        for _ in range(5):
            self.client.post(f"{API}/auth/login", json={"username": "x", "password": "y"})
        response = self.client.post(
            f"{API}/auth/login", json={"username": "developer", "password": "password123"}
        )
        self.assertEqual(response.status_code, 429)
        self.assertGreater(int(response.headers["Retry-After"]), 0)

    def test_missing_secret_is_service_unavailable(self) -> None:
        with patch("devnexus.core.security._signing_key") as signing_key:
            signing_key.side_effect = ConfigurationError("JWT_SECRET is not configured")
            response = self.client.post(
                f"{API}/auth/login", json={"username": "developer", "password": "password123"}
            )
        self.assertEqual(response.status_code, 503)

    def test_profile_refresh_logout(self) -> None:
        headers = self.auth(self.login())
        profile = self.client.get(f"{API}/auth/profile", headers=headers).json()
        self.assertEqual(profile["data"]["username"], "developer")
        refreshed = self.client.post(f"{API}/auth/refresh", headers=headers)
        self.assertEqual(refreshed.status_code, 200)
        new_token = refreshed.json()["data"]["token"]
        self.assertEqual(
            self.client.get(f"{API}/auth/profile", headers=self.auth(new_token)).status_code, 200
        )
        self.assertEqual(self.client.post(f"{API}/auth/logout", headers=headers).status_code, 200)

    def test_missing_and_invalid_tokens(self) -> None:
        self.assertEqual(self.client.get(f"{API}/auth/profile").status_code, 401)
        response = self.client.get(
            f"{API}/auth/profile", headers={"Authorization": "Bearer garbage"}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.headers["WWW-Authenticate"], "Bearer")

    def test_users_listing_is_admin_only(self) -> None:
        developer = self.auth(self.login())
        forbidden = self.client.get(f"{API}/auth/users", headers=developer)
        self.assertEqual(forbidden.status_code, 403)
        unauthorized = self.client.get(f"{API}/auth/users")
        self.assertEqual(forbidden.json()["message"], unauthorized.json()["message"])

        add_user("user-002", "admin", role="Admin")
        admin = self.auth(self.login("admin"))
        response = self.client.get(f"{API}/auth/users", headers=admin)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()["data"]), 2)


class TestReadRoutes(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.headers = self.auth(self.login())

    def test_dashboard(self) -> None:
        metrics = self.client.get(f"{API}/dashboard/metrics", headers=self.headers).json()
        self.assertEqual(metrics["data"]["total_projects"], 2)
        activity = self.client.get(
            f"{API}/dashboard/recent-activity", params={"count": 4}, headers=self.headers
        ).json()
        self.assertEqual(len(activity["data"]), 4)
        bad = self.client.get(
            f"{API}/dashboard/recent-activity", params={"count": 0}, headers=self.headers
        )
        self.assertEqual(bad.status_code, 400)
        pipeline_metrics = self.client.get(
            f"{API}/dashboard/pipeline-metrics", headers=self.headers
        ).json()
        self.assertEqual(len(pipeline_metrics["data"]), 2)
        summary = self.client.get(f"{API}/dashboard/project-summary", headers=self.headers)
        self.assertEqual(summary.json()["data"]["total_projects"], 2)

    def test_projects(self) -> None:
        projects = self.client.get(f"{API}/projects", headers=self.headers).json()["data"]
        self.assertEqual([p["id"] for p in projects], ["proj-001", "proj-002"])
        missing = self.client.get(f"{API}/projects/proj-999", headers=self.headers)
        self.assertEqual(missing.status_code, 404)
        self.assertFalse(missing.json()["success"])
        metrics = self.client.get(f"{API}/projects/proj-002/metrics", headers=self.headers)
        self.assertEqual(metrics.json()["data"]["pipeline_success_rate"], 0.0)
        items = self.client.get(
            f"{API}/projects/proj-001/workitems", params={"type": "UserStory"}, headers=self.headers
        ).json()["data"]
        self.assertEqual([w["id"] for w in items], ["wi-002"])
        repos = self.client.get(f"{API}/projects/proj-001/repositories", headers=self.headers)
        self.assertEqual(len(repos.json()["data"]), 1)
        pipelines = self.client.get(f"{API}/projects/proj-001/pipelines", headers=self.headers)
        self.assertEqual(len(pipelines.json()["data"]), 2)

    def test_pipelines_and_repositories(self) -> None:
        pipeline = self.client.get(f"{API}/pipelines/pipe-001", headers=self.headers).json()
        self.assertEqual(len(pipeline["data"]["runs"]), 2)
        run = self.client.get(f"{API}/pipelines/pipe-001/runs/run-002", headers=self.headers)
        self.assertEqual(run.json()["data"]["result"], "Failed")
        branches = self.client.get(f"{API}/repositories/repo-001/branches", headers=self.headers)
        self.assertEqual(branches.json()["data"][0], "main")
        commits = self.client.get(
            f"{API}/repositories/repo-001/commits", params={"branch": "develop"}, headers=self.headers
        )
        self.assertEqual(len(commits.json()["data"]), 5)

    def test_validation_errors_map_to_bad_request(self) -> None:
        response = self.client.post(f"{API}/workitems", json={"title": "x"}, headers=self.headers)
        self.assertEqual(response.status_code, 400)
        self.assertTrue(response.json()["errors"])


class TestMutationsAndNotifications(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.transport = MagicMock()
        self.transport.send_to_group = AsyncMock()
        self.transport.send_to_all = AsyncMock()
        app.dependency_overrides[get_dispatcher] = lambda: NotificationDispatcher(self.transport)

    def test_trigger_run_fires_one_pipeline_update(self) -> None:
        headers = self.auth(self.login())
        response = self.client.post(
            f"{API}/pipelines/pipe-001/runs",
            json={"parameters": {"sourceBranch": "develop"}},
            headers=headers,
        )
        self.assertEqual(response.status_code, 200, response.text)
        run = response.json()["data"]
        self.assertEqual(run["status"], "Running")
        self.assertEqual(run["source_branch"], "develop")
        self.transport.send_to_group.assert_awaited_once()
        group, event, _, payload = self.transport.send_to_group.call_args.args
        self.assertEqual(group, "Pipeline_pipe-001")
        self.assertEqual(event, "ReceivePipelineUpdate")
        self.assertEqual(payload["status"], "Running")

    def test_failing_transport_does_not_fail_trigger(self) -> None:
        self.transport.send_to_group.side_effect = RuntimeError("hub down")
        headers = self.auth(self.login())
        response = self.client.post(f"{API}/pipelines/pipe-001/runs", headers=headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["status"], "Running")

    def test_trigger_requires_contributor_role(self) -> None:
        add_user("user-003", "viewer", role="User")
        headers = self.auth(self.login("viewer"))
        response = self.client.post(f"{API}/pipelines/pipe-001/runs", headers=headers)
        self.assertEqual(response.status_code, 403)
        self.transport.send_to_group.assert_not_called()

    def test_unknown_pipeline_is_not_found(self) -> None:
        headers = self.auth(self.login())
        response = self.client.post(f"{API}/pipelines/pipe-999/runs", headers=headers)
        self.assertEqual(response.status_code, 404)

    def test_work_item_lifecycle_broadcasts(self) -> None:
        headers = self.auth(self.login())
        created = self.client.post(
            f"{API}/workitems",
            json={"title": "Add tests", "project_id": "proj-001"},
            headers=headers,
        )
        self.assertEqual(created.status_code, 201)
        item_id = created.json()["data"]["id"]
        updated = self.client.put(
            f"{API}/workitems/{item_id}", json={"state": "Closed"}, headers=headers
        )
        self.assertEqual(updated.json()["data"]["state"], "Closed")
        deleted = self.client.delete(f"{API}/workitems/{item_id}", headers=headers)
        self.assertEqual(deleted.status_code, 200)
        self.assertEqual(
            self.client.get(f"{API}/workitems/{item_id}", headers=headers).status_code, 404
        )
        types = [c.args[2]["type"] for c in self.transport.send_to_all.call_args_list]
        self.assertEqual(types, ["Created", "StatusChanged", "Deleted"])

    def test_blank_title_update_is_bad_request(self) -> None:
        headers = self.auth(self.login())
        response = self.client.put(
            f"{API}/workitems/wi-001", json={"title": "   "}, headers=headers
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Title is required")
        title = self.client.get(f"{API}/workitems/wi-001", headers=headers).json()["data"]["title"]
        self.assertTrue(title.strip())
        self.transport.send_to_all.assert_not_awaited()

    def test_admin_notifications(self) -> None:
        add_user("user-002", "admin", role="Admin")
        admin = self.auth(self.login("admin"))
        response = self.client.post(
            f"{API}/notifications/users/user-001",
            json={"title": "Hello", "message": "World"},
            headers=admin,
        )
        self.assertEqual(response.status_code, 200)
        group = self.transport.send_to_group.call_args.args[0]
        self.assertEqual(group, "User_user-001")
        response = self.client.post(
            f"{API}/notifications/global",
            json={"title": "Maintenance", "message": "Tonight"},
            headers=admin,
        )
        self.assertEqual(response.status_code, 200)
        self.transport.send_to_all.assert_awaited_once()

        developer = self.auth(self.login())
        response = self.client.post(
            f"{API}/notifications/global",
            json={"title": "x", "message": "y"},
            headers=developer,
        )
        self.assertEqual(response.status_code, 403)


class TestNotificationHub(ApiTestCase):
    def test_invalid_token_is_rejected(self) -> None:
        with self.assertRaises(WebSocketDisconnect) as ctx:
            with self.client.websocket_connect(f"{API}/notifications/hub?token=bad"):
                pass
        self.assertEqual(ctx.exception.code, 4001)

    def test_connect_join_and_ping(self) -> None:
        token = self.login()
        with self.client.websocket_connect(f"{API}/notifications/hub?token={token}") as ws:
            self.assertEqual(ws.receive_json(), {"type": "connected", "user_id": "user-001"})
            ws.send_json({"type": "join_pipeline", "id": "pipe-001"})
            self.assertEqual(ws.receive_json(), {"type": "join_pipeline", "group": "Pipeline_pipe-001"})
            ws.send_json({"type": "ping"})
            self.assertEqual(ws.receive_json(), {"type": "pong"})
            ws.send_json({"type": "dance"})
            self.assertEqual(ws.receive_json()["type"], "error")

    def test_binary_frame_gets_error_and_connection_stays_open(self) -> None:
        token = self.login()
        with self.client.websocket_connect(f"{API}/notifications/hub?token={token}") as ws:
            ws.receive_json()
            ws.send_bytes(b"\x00\x01")
            self.assertEqual(
                ws.receive_json(), {"type": "error", "message": "Binary frames are not supported"}
            )
            ws.send_json({"type": "ping"})
            self.assertEqual(ws.receive_json(), {"type": "pong"})
