"""HTTP tests for /progress."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from edulearn.auth.permissions import UserRole
from edulearn.core.exceptions import StoreUnavailableError
from edulearn.progress.service import ProgressService
from tests.conftest import auth_headers


@pytest.fixture
def video_id() -> str:
    return str(uuid4())


def _report(
    client: TestClient,
    headers: dict[str, str],
    video_id: str,
    position: float,
    completed: bool = False,
):
    return client.put(
        "/progress/video",
        json={"videoId": video_id, "position": position, "completed": completed},
        headers=headers,
    )


class TestReport:
    def test_report_and_read_back(
        self,
        client: TestClient,
        student_headers: dict[str, str],
        student_id: str,
        video_id: str,
    ) -> None:
        assert _report(client, student_headers, video_id, 30).status_code == 200
        response = _report(client, student_headers, video_id, 90)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user_id"] == student_id
        assert data["last_position"] == 90

        listed = client.get("/progress/me", headers=student_headers).json()["data"]
        assert len(listed) == 1
        assert listed[0]["last_position"] == 90

    def test_fractional_position(
        self, client: TestClient, student_headers: dict[str, str], video_id: str
    ) -> None:
        """Players report currentTime unrounded."""
        response = _report(client, student_headers, video_id, 30.5)

        assert response.status_code == 200
        assert response.json()["data"]["last_position"] == 30.5

    def test_negative_position(
        self, client: TestClient, student_headers: dict[str, str], video_id: str
    ) -> None:
        response = _report(client, student_headers, video_id, -5)
        assert response.status_code == 422
        assert response.json()["success"] is False

    def test_requires_login(self, client: TestClient, video_id: str) -> None:
        response = client.put(
            "/progress/video", json={"videoId": video_id, "position": 1}
        )
        assert response.status_code == 401

    def test_store_down_fails_loud(
        self,
        client: TestClient,
        student_headers: dict[str, str],
        progress_service: ProgressService,
        video_id: str,
    ) -> None:
        progress_service.progress.upsert = AsyncMock(side_effect=StoreUnavailableError())
        response = _report(client, student_headers, video_id, 10)
        assert response.status_code == 503


class TestComplete:
    def test_complete_after_report(
        self, client: TestClient, student_headers: dict[str, str], video_id: str
    ) -> None:
        _report(client, student_headers, video_id, 30)
        response = client.post(
            f"/progress/video/{video_id}/complete", headers=student_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["completed"] is True

        completed = client.get("/progress/me/completed", headers=student_headers)
        assert completed.json()["data"] == [video_id]
        in_progress = client.get("/progress/me/in-progress", headers=student_headers)
        assert in_progress.json()["data"] == []

    def test_complete_without_report(
        self, client: TestClient, student_headers: dict[str, str], video_id: str
    ) -> None:
        response = client.post(
            f"/progress/video/{video_id}/complete", headers=student_headers
        )
        assert response.status_code == 404


class TestOwnRecord:
    def test_unwatched_video_returns_null(
        self, client: TestClient, student_headers: dict[str, str], video_id: str
    ) -> None:
        response = client.get(f"/progress/video/{video_id}", headers=student_headers)
        assert response.status_code == 200
        assert response.json()["data"] is None

    def test_delete(
        self, client: TestClient, student_headers: dict[str, str], video_id: str
    ) -> None:
        _report(client, student_headers, video_id, 30)

        deleted = client.delete(f"/progress/video/{video_id}", headers=student_headers)
        assert deleted.status_code == 200
        again = client.delete(f"/progress/video/{video_id}", headers=student_headers)
        assert again.status_code == 404

    def test_records_are_per_user(
        self,
        client: TestClient,
        student_headers: dict[str, str],
        teacher_headers: dict[str, str],
        video_id: str,
    ) -> None:
        _report(client, student_headers, video_id, 30)
        response = client.get(f"/progress/video/{video_id}", headers=teacher_headers)
        assert response.json()["data"] is None

    def test_store_down_reads_empty(
        self,
        client: TestClient,
        student_headers: dict[str, str],
        progress_service: ProgressService,
    ) -> None:
        progress_service.progress.list_by_user = AsyncMock(
            side_effect=StoreUnavailableError()
        )
        for path in ("/progress/me", "/progress/me/completed", "/progress/me/in-progress"):
            response = client.get(path, headers=student_headers)
            assert response.status_code == 200
            assert response.json()["data"] == []


class TestVideoStats:
    def test_teacher_sees_stats(
        self,
        client: TestClient,
        teacher_headers: dict[str, str],
        video_id: str,
    ) -> None:
        for position, completed in [(100, True), (50, False), (0, False)]:
            _report(
                client, auth_headers(UserRole.STUDENT), video_id, position, completed
            )

        response = client.get(f"/progress/videos/{video_id}/stats", headers=teacher_headers)

        assert response.status_code == 200
        assert response.json()["data"] == {
            "total_watches": 3,
            "completed": 1,
            "in_progress": 2,
            "avg_position": 50,
        }

    def test_student_forbidden(
        self, client: TestClient, student_headers: dict[str, str], video_id: str
    ) -> None:
        response = client.get(f"/progress/videos/{video_id}/stats", headers=student_headers)
        assert response.status_code == 403

    def test_store_down_reads_zeros(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        progress_service: ProgressService,
        video_id: str,
    ) -> None:
        progress_service.progress.list_by_video = AsyncMock(
            side_effect=StoreUnavailableError()
        )
        response = client.get(f"/progress/videos/{video_id}/stats", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["total_watches"] == 0
