"""Auth module test suite — sign-up, login, JWT, profile, rate limiting."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from leave_portal.auth.service import (
    build_default_accounts,
    hash_password,
    verify_password,
)
from leave_portal.common.constants import Department, Role
from leave_portal.config import settings
from leave_portal.storage.sql import SqlLeaveRepository
from tests.conftest import (
    DEFAULT_PASSWORD,
    TestSessionFactory,
    _make_user,
    auth_headers,
    create_access_token,
    store_users,
)


def _signup(**overrides) -> dict:
    body = {
        "name": "Asha Patil",
        "email": "asha.patil@scoe.edu",
        "password": "asha1234",
        "role": "Teaching Staff",
        "department": "COMPS",
        "date_of_joining": "2023-06-15",
        "approver_role": "HOD",
    }
    body.update(overrides)
    return body


async def _stored_users() -> list:
    async with TestSessionFactory() as session:
        return await SqlLeaveRepository(session).list_users()


# ── Passwords ───────────────────────────────────────────────────────


def test_password_hash_roundtrip():
    hashed = hash_password("s3cret!")
    assert hashed != "s3cret!"
    assert verify_password("s3cret!", hashed)
    assert not verify_password("wrong", hashed)


def test_verify_rejects_missing_or_malformed_hash():
    assert not verify_password("anything", None)
    assert not verify_password("anything", "not-a-bcrypt-hash")


def test_default_accounts():
    accounts = build_default_accounts()
    assert [a.email for a in accounts] == ["admin@scoe.edu", "principal@scoe.edu"]
    assert accounts[0].role == Role.admin_1
    assert accounts[1].role == Role.principal
    assert accounts[0].created_at < accounts[1].created_at
    assert verify_password("principal", accounts[1].password_hash)


# ── Sign-up ─────────────────────────────────────────────────────────


async def test_signup_staff_resolves_department_hod(client):
    hod = _make_user(name="HOD Comps", role=Role.hod, department=Department.comps)
    await store_users(hod)

    resp = await client.post("/api/v1/auth/signup", json=_signup())
    assert resp.status_code == 201
    data = resp.json()
    assert data["token_type"] == "bearer"
    assert data["access_token"]
    assert data["user"]["approver_id"] == str(hod.id)
    assert data["user"]["quotas"] == {"CL": 12, "CO": 5, "ML": 10, "VL": 15, "EL": 15}
    assert "password_hash" not in data["user"]


async def test_signup_without_approver_role_defaults_to_hod(client):
    hod = _make_user(name="HOD Mech", role=Role.hod, department=Department.mech)
    await store_users(hod)
    body = _signup(department="MECH")
    del body["approver_role"]

    resp = await client.post("/api/v1/auth/signup", json=body)
    assert resp.status_code == 201
    user = resp.json()["user"]
    assert user["approver_role"] == "HOD"
    assert user["approver_id"] == str(hod.id)


async def test_signup_with_chosen_admin(client):
    admin_1 = _make_user(role=Role.admin_1)
    admin_2 = _make_user(role=Role.admin_2)
    await store_users(admin_1, admin_2)

    resp = await client.post(
        "/api/v1/auth/signup",
        json=_signup(approver_role="Admin", approver_id=str(admin_2.id), department="TPO"),
    )
    assert resp.status_code == 201
    assert resp.json()["user"]["approver_id"] == str(admin_2.id)


async def test_signup_admin_requires_access_code(client):
    resp = await client.post(
        "/api/v1/auth/signup",
        json=_signup(email="admin2@scoe.edu", role="Admin 2", access_code="WRONG"),
    )
    assert resp.status_code == 422
    assert "access_code" in resp.json()["errors"]
    assert await _stored_users() == []


async def test_signup_admin_with_valid_code(client):
    resp = await client.post(
        "/api/v1/auth/signup",
        json=_signup(
            email="admin2@scoe.edu", role="Admin 2",
            access_code=settings.DEFAULT_ACCESS_CODE, approver_role="HOD",
        ),
    )
    assert resp.status_code == 201
    user = resp.json()["user"]
    assert user["role"] == "Admin 2"
    assert user["approver_id"] is None
    assert user["approver_role"] is None


async def test_signup_duplicate_email_case_insensitive(client):
    await store_users(_make_user(email="asha.patil@scoe.edu"))
    resp = await client.post(
        "/api/v1/auth/signup", json=_signup(email="Asha.Patil@SCOE.edu"),
    )
    assert resp.status_code == 409
    assert resp.json()["type"].endswith("/conflict")
    assert len(await _stored_users()) == 1


async def test_signup_rejects_invalid_role(client):
    resp = await client.post("/api/v1/auth/signup", json=_signup(role="Janitor"))
    assert resp.status_code == 422


# ── Login ───────────────────────────────────────────────────────────


async def test_login_email_is_case_insensitive(client):
    staff = _make_user(email="ravi@scoe.edu")
    await store_users(staff)

    resp = await client.post(
        "/api/v1/auth/login", json={"email": "RAVI@scoe.edu", "password": DEFAULT_PASSWORD},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["user"]["id"] == str(staff.id)
    assert data["expires_in"] == settings.JWT_EXPIRY_HOURS * 3600

    payload = jwt.decode(data["access_token"], settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    assert payload["sub"] == str(staff.id)
    assert payload["type"] == "access"
    assert payload["role"] == "Teaching Staff"


@pytest.mark.parametrize(
    "email, password",
    [("ravi@scoe.edu", "wrong-password"), ("nobody@scoe.edu", DEFAULT_PASSWORD)],
)
async def test_login_invalid_credentials(client, email, password):
    await store_users(_make_user(email="ravi@scoe.edu"))
    resp = await client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 401


async def test_signup_then_login(client):
    await client.post("/api/v1/auth/signup", json=_signup(approver_role="Principal"))
    resp = await client.post(
        "/api/v1/auth/login", json={"email": "asha.patil@scoe.edu", "password": "asha1234"},
    )
    assert resp.status_code == 200


# ── Current user ────────────────────────────────────────────────────


async def test_me_returns_current_user(client):
    staff = _make_user(name="Asha Patil")
    await store_users(staff)
    resp = await client.get("/api/v1/auth/me", headers=auth_headers(staff))
    assert resp.status_code == 200
    assert resp.json()["name"] == "Asha Patil"
    assert resp.json()["quotas"]["CL"] == 12


async def test_me_without_token(client):
    resp = await client.get("/api/v1/auth/me")
    assert resp.status_code == 401


async def test_me_with_expired_token(client):
    staff = _make_user()
    await store_users(staff)
    token = create_access_token(staff.id, expired=True)
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Token has expired."


async def test_me_with_wrong_token_type(client):
    staff = _make_user()
    await store_users(staff)
    token = jwt.encode(
        {
            "sub": str(staff.id),
            "type": "refresh",
            "exp": datetime.now(timezone.utc) + timedelta(hours=1),
        },
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


async def test_me_for_deleted_user(client):
    token = create_access_token(uuid.uuid4())
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


async def test_update_profile(client):
    staff = _make_user(name="Old Name", department=Department.it)
    await store_users(staff)
    resp = await client.put(
        "/api/v1/auth/me",
        json={"name": "  New Name ", "department": "AIML"},
        headers=auth_headers(staff),
    )
    assert resp.status_code == 200
    assert resp.json()["name"] == "New Name"
    assert resp.json()["department"] == "AIML"

    stored = {u.id: u for u in await _stored_users()}[staff.id]
    assert stored.name == "New Name"
    assert stored.role == staff.role
    assert verify_password(DEFAULT_PASSWORD, stored.password_hash)


# ── Rate limiting ───────────────────────────────────────────────────


async def test_login_rate_limited_at_10_per_minute(client):
    for i in range(10):
        resp = await client.post(
            "/api/v1/auth/login", json={"email": f"u{i}@scoe.edu", "password": "nope"},
        )
        assert resp.status_code == 401, f"Request {i+1} should not be rate-limited"

    resp = await client.post(
        "/api/v1/auth/login", json={"email": "overflow@scoe.edu", "password": "nope"},
    )
    assert resp.status_code == 429


# ── Health ──────────────────────────────────────────────────────────


async def test_health(client):
    resp = await client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


