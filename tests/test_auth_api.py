import pytest

from services.user_management.models import User, UserRole
from tests.factories import PASSWORD, auth_headers, make_user

pytestmark = pytest.mark.anyio


async def test_health_check(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json() == {"status": "TeachWave Backend is running"}


async def test_login_returns_token_for_valid_credentials(client, db):
    teacher = await make_user(db, UserRole.TEACHER, "Mbali Ndaba")

    response = await client.post("/auth/login", json={"email": teacher.email, "password": PASSWORD})

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["role"] == "teacher"
    assert body["full_name"] == "Mbali Ndaba"

    me = await client.get("/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == teacher.email


@pytest.mark.parametrize("password", ["wrong-password", ""])
async def test_login_rejects_bad_password(client, db, password):
    student = await make_user(db, UserRole.STUDENT, "Sbu Khanyile")
    response = await client.post("/auth/login", json={"email": student.email, "password": password})
    assert response.status_code == 401


async def test_login_rejects_inactive_user(client, db):
    user = await make_user(db, UserRole.STUDENT, "Former Student", is_active=False)
    response = await client.post("/auth/login", json={"email": user.email, "password": PASSWORD})
    assert response.status_code == 401


async def test_signup_always_creates_a_student(client):
    response = await client.post(
        "/auth/signup",
        json={
            "email": "new.learner@teachwave.co.za",
            "full_name": "New Learner",
            "password": "learner-pass-1",
            "role": "admin",
        },
    )
    assert response.status_code == 201
    assert response.json()["role"] == "student"

    duplicate = await client.post(
        "/auth/signup",
        json={"email": "new.learner@teachwave.co.za", "full_name": "Again", "password": "learner-pass-1"},
    )
    assert duplicate.status_code == 409


async def test_missing_or_garbage_token_is_rejected(client):
    assert (await client.get("/auth/me")).status_code == 401
    response = await client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


async def test_token_for_deleted_profile_is_rejected(client, db):
    ghost = await make_user(db, UserRole.TEACHER, "Ghost Teacher")
    headers = auth_headers(ghost)
    await db.delete(ghost)
    await db.commit()

    response = await client.get("/auth/me", headers=headers)
    assert response.status_code == 401
    assert response.json()["detail"] == "User profile not found"


async def test_role_comes_from_profile_not_token(client, db):
    student = await make_user(db, UserRole.STUDENT, "Sneaky Student")
    forged = User(id=student.id, email=student.email, role=UserRole.ADMIN)

    response = await client.get("/users", headers=auth_headers(forged))
    assert response.status_code == 403


async def test_admin_manages_users(client, db):
    admin = await make_user(db, UserRole.ADMIN, "Head Office")
    headers = auth_headers(admin)

    created = await client.post(
        "/users",
        headers=headers,
        json={
            "email": "lindo.mathebula@teachwave.co.za",
            "full_name": "Lindo Mathebula",
            "password": "teacher-pass-1",
            "role": "teacher",
        },
    )
    assert created.status_code == 201
    teacher_id = created.json()["id"]

    listed = await client.get("/users", params={"role": "teacher"}, headers=headers)
    assert [u["id"] for u in listed.json()] == [teacher_id]

    updated = await client.put(f"/users/{teacher_id}", headers=headers, json={"full_name": "Lindo M."})
    assert updated.status_code == 200
    assert updated.json()["full_name"] == "Lindo M."
    assert updated.json()["role"] == "teacher"

    missing = await client.put(
        "/users/00000000-0000-0000-0000-000000000000", headers=headers, json={"full_name": "Nobody"}
    )
    assert missing.status_code == 404


async def test_non_admin_cannot_create_users(client, db):
    teacher = await make_user(db, UserRole.TEACHER, "Regular Teacher")
    response = await client.post(
        "/users",
        headers=auth_headers(teacher),
        json={"email": "x@teachwave.co.za", "full_name": "X", "password": "password-1", "role": "admin"},
    )
    assert response.status_code == 403
