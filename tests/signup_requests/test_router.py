"""HTTP tests for signup submission and admin decisions."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from edulearn.core.exceptions import StoreUnavailableError
from edulearn.signup_requests.service import SignupRequestService


SIGNUP = {
    "email": "ana@college.edu",
    "name": "Ana Silva",
    "role": "student",
    "institution": "State College",
}


def _submit(client: TestClient, **overrides) -> str:
    response = client.post("/signup-request", json={**SIGNUP, **overrides})
    assert response.status_code == 201, response.text
    return response.json()["request_id"]


class TestSubmit:
    def test_submit(self, client: TestClient) -> None:
        response = client.post("/signup-request", json=SIGNUP)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["request_id"]

    def test_college_name_alias(
        self, client: TestClient, admin_headers: dict[str, str]
    ) -> None:
        payload = {k: v for k, v in SIGNUP.items() if k != "institution"}
        response = client.post(
            "/signup-request", json={**payload, "collegeName": "Tech Institute"}
        )
        assert response.status_code == 201

        pending = client.get("/admin/pending-requests", headers=admin_headers).json()
        assert pending["data"][0]["institution"] == "Tech Institute"

    def test_duplicate_pending(self, client: TestClient) -> None:
        _submit(client)
        response = client.post("/signup-request", json=SIGNUP)

        assert response.status_code == 409
        assert response.json()["success"] is False

    def test_admin_role_refused(self, client: TestClient) -> None:
        response = client.post("/signup-request", json={**SIGNUP, "role": "admin"})
        assert response.status_code == 422
        assert response.json()["message"] == "Role must be teacher or student"

    def test_missing_field(self, client: TestClient) -> None:
        response = client.post("/signup-request", json={"email": "ana@college.edu"})
        assert response.status_code == 422
        assert response.json()["success"] is False


class TestAdminAccess:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("get", "/admin/pending-requests"),
            ("post", "/admin/approve-request"),
            ("post", "/admin/reject-request"),
        ],
    )
    def test_requires_admin(
        self,
        client: TestClient,
        teacher_headers: dict[str, str],
        method: str,
        path: str,
    ) -> None:
        anonymous = client.request(method, path, json={"requestId": str(uuid4())})
        teacher = client.request(
            method, path, json={"requestId": str(uuid4())}, headers=teacher_headers
        )
        assert anonymous.status_code == 401
        assert teacher.status_code == 403


class TestApprove:
    def test_approve_returns_generated_password_once(
        self, client: TestClient, admin_headers: dict[str, str]
    ) -> None:
        request_id = _submit(client)

        response = client.post(
            "/admin/approve-request",
            json={"requestId": request_id},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"]["email"] == "ana@college.edu"
        assert data["user"]["role"] == "student"
        temporary = data["temporary_password"]
        assert temporary

        login = client.post(
            "/auth/login", json={"email": "ana@college.edu", "password": temporary}
        )
        assert login.status_code == 200

    def test_assigned_password_not_echoed(
        self, client: TestClient, admin_headers: dict[str, str]
    ) -> None:
        request_id = _submit(client)
        response = client.post(
            "/admin/approve-request",
            json={"requestId": request_id, "password": "Temp12345"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"].get("temporary_password") is None

    def test_short_assigned_password_logs_in(
        self, client: TestClient, admin_headers: dict[str, str]
    ) -> None:
        request_id = _submit(client, email="a@x.com", role="teacher")
        response = client.post(
            "/admin/approve-request",
            json={"requestId": request_id, "password": "temp123"},
            headers=admin_headers,
        )
        assert response.status_code == 200

        login = client.post(
            "/auth/login", json={"email": "a@x.com", "password": "temp123"}
        )
        assert login.status_code == 200
        assert login.json()["user"]["role"] == "teacher"

    def test_second_approval_conflicts(
        self, client: TestClient, admin_headers: dict[str, str]
    ) -> None:
        request_id = _submit(client)
        body = {"requestId": request_id, "password": "Temp12345"}

        assert (
            client.post("/admin/approve-request", json=body, headers=admin_headers)
        ).status_code == 200
        second = client.post("/admin/approve-request", json=body, headers=admin_headers)
        assert second.status_code == 409

    def test_unknown_request(
        self, client: TestClient, admin_headers: dict[str, str]
    ) -> None:
        response = client.post(
            "/admin/approve-request",
            json={"requestId": str(uuid4())},
            headers=admin_headers,
        )
        assert response.status_code == 404


class TestReject:
    def test_reject_then_approve(
        self, client: TestClient, admin_headers: dict[str, str]
    ) -> None:
        request_id = _submit(client)

        rejected = client.post(
            "/admin/reject-request", json={"requestId": request_id}, headers=admin_headers
        )
        assert rejected.status_code == 200

        approved = client.post(
            "/admin/approve-request", json={"requestId": request_id}, headers=admin_headers
        )
        assert approved.status_code == 409

        pending = client.get("/admin/pending-requests", headers=admin_headers)
        assert pending.json()["data"] == []


class TestPendingList:
    def test_lists_pending(
        self, client: TestClient, admin_headers: dict[str, str]
    ) -> None:
        request_id = _submit(client)
        response = client.get("/admin/pending-requests", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert [r["id"] for r in data] == [request_id]
        assert data[0]["status"] == "pending"

    def test_store_down_returns_empty(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        signup_service: SignupRequestService,
    ) -> None:
        signup_service.requests.list_by_status = AsyncMock(
            side_effect=StoreUnavailableError()
        )
        response = client.get("/admin/pending-requests", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"] == []

    def test_store_down_on_submit_is_503(
        self, client: TestClient, signup_service: SignupRequestService
    ) -> None:
        signup_service.requests.create = AsyncMock(side_effect=StoreUnavailableError())
        response = client.post("/signup-request", json=SIGNUP)

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "30"
        assert response.json()["success"] is False
