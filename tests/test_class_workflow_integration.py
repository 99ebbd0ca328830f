"""Integration tests driving the class workflow through the live HTTP stack."""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import date
from uuid import UUID, uuid4

import httpx
import pytest
import pytest_asyncio

API_BASE_URL = os.getenv("INTEGRATION_BASE_URL", "http://localhost:8000/api/v1").rstrip("/")
HEALTHCHECK_URL = os.getenv("INTEGRATION_HEALTH_URL", "http://localhost:8000/health")
REQUEST_TIMEOUT_SECONDS = float(os.getenv("INTEGRATION_TIMEOUT_SECONDS", "15"))
ADMIN_TPIN = os.getenv("INTEGRATION_ADMIN_TPIN", "100001")
ADMIN_PASSWORD = os.getenv("INTEGRATION_ADMIN_PASSWORD", "DemoPass123!")

_INTEGRATION_STACK_HEALTHY: bool | None = None
_INTEGRATION_STACK_ERROR: str | None = None


@dataclass(slots=True)
class AuthSession:
    user_id: UUID
    access_token: str


def _assert_status(response: httpx.Response, expected_status: int) -> None:
    assert response.status_code == expected_status, (
        f"{response.request.method} {response.request.url} -> "
        f"{response.status_code}, body={response.text}"
    )


def _auth_headers(session: AuthSession) -> dict[str, str]:
    return {"Authorization": f"Bearer {session.access_token}"}


async def _login(client: httpx.AsyncClient, tpin: str, password: str) -> AuthSession:
    login_response = await client.post("/identity/auth/login", json={"tpin": tpin, "password": password})
    _assert_status(login_response, 200)
    access_token = login_response.json()["access_token"]

    me_response = await client.get("/identity/users/me", headers={"Authorization": f"Bearer {access_token}"})
    _assert_status(me_response, 200)
    return AuthSession(user_id=UUID(me_response.json()["id"]), access_token=access_token)


async def _create_person(client: httpx.AsyncClient, admin: AuthSession, role: str) -> tuple[str, str]:
    tpin = f"it{uuid4().hex[:10]}"
    password = "StrongPass123!"
    response = await client.post(
        "/identity/users",
        headers=_auth_headers(admin),
        json={
            "tpin": tpin,
            "name": f"Integration {role}",
            "role": role,
            "password": password,
            "confirm_password": password,
        },
    )
    _assert_status(response, 201)
    return tpin, password


@pytest_asyncio.fixture()
async def api_client() -> AsyncIterator[httpx.AsyncClient]:
    global _INTEGRATION_STACK_HEALTHY, _INTEGRATION_STACK_ERROR  # noqa: PLW0603

    if _INTEGRATION_STACK_HEALTHY is None:
        probe_timeout_seconds = min(REQUEST_TIMEOUT_SECONDS, 3.0)
        async with httpx.AsyncClient(timeout=probe_timeout_seconds) as probe:
            try:
                health_response = await probe.get(HEALTHCHECK_URL)
            except httpx.HTTPError as exc:
                _INTEGRATION_STACK_HEALTHY = False
                _INTEGRATION_STACK_ERROR = (
                    f"Integration stack unavailable at {HEALTHCHECK_URL}: {exc}"
                )
            else:
                if health_response.status_code != 200:
                    _INTEGRATION_STACK_HEALTHY = False
                    _INTEGRATION_STACK_ERROR = (
                        f"Integration stack returned {health_response.status_code} "
                        f"for {HEALTHCHECK_URL}"
                    )
                else:
                    _INTEGRATION_STACK_HEALTHY = True
                    _INTEGRATION_STACK_ERROR = None

    if not _INTEGRATION_STACK_HEALTHY:
        pytest.skip(_INTEGRATION_STACK_ERROR or "Integration stack is unavailable")
        return

    async with httpx.AsyncClient(base_url=API_BASE_URL, timeout=REQUEST_TIMEOUT_SECONDS) as client:
        yield client


@pytest.mark.asyncio
async def test_assign_complete_confirm_and_upload_sequence(api_client: httpx.AsyncClient) -> None:
    admin = await _login(api_client, ADMIN_TPIN, ADMIN_PASSWORD)
    teacher_tpin, teacher_password = await _create_person(api_client, admin, "teacher")
    editor_tpin, editor_password = await _create_person(api_client, admin, "editor")
    teacher = await _login(api_client, teacher_tpin, teacher_password)
    editor = await _login(api_client, editor_tpin, editor_password)

    course_response = await api_client.post(
        "/courses",
        headers=_auth_headers(admin),
        json={"name": f"Integration course {uuid4().hex[:6]}", "number_of_classes": 4},
    )
    _assert_status(course_response, 201)
    course_id = course_response.json()["id"]

    assign_body = {
        "course_id": course_id,
        "teacher_id": str(teacher.user_id),
        "name": "Batch A",
        "hours": "1.5",
        "hourly_rate": "600",
    }
    assign_response = await api_client.post("/classes/assign", headers=_auth_headers(admin), json=assign_body)
    _assert_status(assign_response, 201)
    session_id = assign_response.json()["id"]

    duplicate_response = await api_client.post("/classes/assign", headers=_auth_headers(admin), json=assign_body)
    _assert_status(duplicate_response, 409)
    assert duplicate_response.json()["error"]["code"] == "duplicate_name"

    pending_response = await api_client.get("/classes/pending", headers=_auth_headers(teacher))
    _assert_status(pending_response, 200)
    pending_item = next(item for item in pending_response.json()["items"] if item["id"] == session_id)
    assert pending_item["hourly_rate"] is None

    complete_response = await api_client.patch(
        f"/classes/{session_id}/complete",
        headers=_auth_headers(teacher),
    )
    _assert_status(complete_response, 200)
    assert complete_response.json()["status"] == "teacherCompleted"

    again_response = await api_client.patch(f"/classes/{session_id}/complete", headers=_auth_headers(teacher))
    _assert_status(again_response, 409)
    assert again_response.json()["error"]["code"] == "invalid_state"

    confirm_response = await api_client.patch(f"/classes/{session_id}/confirm", headers=_auth_headers(admin))
    _assert_status(confirm_response, 200)
    confirmed = confirm_response.json()
    assert confirmed["status"] == "adminConfirmed"
    assert confirmed["paid"] is False

    uploads_response = await api_client.get(
        "/upload/pending",
        headers=_auth_headers(editor),
        params={"limit": 100, "offset": 0},
    )
    _assert_status(uploads_response, 200)
    task = next(
        item for item in uploads_response.json()["items"] if item["class_session_id"] == session_id
    )

    uploaded_response = await api_client.patch(
        f"/upload/{task['id']}/uploaded",
        headers=_auth_headers(editor),
        json={"video_url": " https://videos.example/batch-a "},
    )
    _assert_status(uploaded_response, 200)
    assert uploaded_response.json()["video_url"] == "https://videos.example/batch-a"
    assert uploaded_response.json()["editor"]["tpin"] == editor_tpin

    delete_response = await api_client.delete(f"/classes/{session_id}", headers=_auth_headers(admin))
    _assert_status(delete_response, 409)

    paid_response = await api_client.patch(f"/classes/{session_id}/paid", headers=_auth_headers(admin))
    _assert_status(paid_response, 200)
    assert paid_response.json()["paid"] is True


@pytest.mark.asyncio
async def test_role_guards_and_report_shapes(api_client: httpx.AsyncClient) -> None:
    admin = await _login(api_client, ADMIN_TPIN, ADMIN_PASSWORD)
    teacher_tpin, teacher_password = await _create_person(api_client, admin, "teacher")
    teacher = await _login(api_client, teacher_tpin, teacher_password)

    forbidden_response = await api_client.get("/reports/summary", headers=_auth_headers(teacher))
    _assert_status(forbidden_response, 403)
    assert forbidden_response.json()["error"]["code"] == "forbidden"

    today = date.today().isoformat()
    summary_response = await api_client.get(
        "/reports/summary",
        headers=_auth_headers(admin),
        params={"start": today, "end": today},
    )
    _assert_status(summary_response, 200)
    payload = summary_response.json()
    assert set(payload["summary"]) == {"total_classes", "total_hours", "total_amount"}
    assert isinstance(payload["by_teacher"], list)

    bad_range_response = await api_client.get(
        "/reports/summary",
        headers=_auth_headers(admin),
        params={"start": "2026-03-10", "end": "2026-03-01"},
    )
    _assert_status(bad_range_response, 422)
    assert bad_range_response.json()["error"]["code"] == "validation_error"

    empty_bill_response = await api_client.post(
        "/reports/bills/daily",
        headers=_auth_headers(admin),
        json={"day": "1999-01-01"},
    )
    _assert_status(empty_bill_response, 422)
    assert empty_bill_response.json()["error"]["code"] == "empty_bill"
