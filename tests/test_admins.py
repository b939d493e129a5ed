"""Admin provisioning tests, including rollback of the user on a failed profile insert."""

import asyncio

import pytest
from pymongo.errors import DuplicateKeyError

from dropship_api.core.errors import EmployeeIdConflictError
from dropship_api.core.rbac import TokenData, UserRole
from dropship_api.schemas.admin import AdminCreate
from dropship_api.services.admin_service import provision_admin
from tests.conftest import make_user


def _body(**overrides) -> dict:
    body = {
        "name": "Ada Admin",
        "employeeId": "  EMP-100 ",
        "email": " Ada@Example.com",
        "password": "secret123",
        "phone": "555-0100",
    }
    body.update(overrides)
    return body


class TestCreateAdmin:
    def test_creates_user_and_profile(self, client, store, superadmin, superadmin_headers):
        res = client.post("/admins", headers=superadmin_headers, json=_body())
        assert res.status_code == 201
        admin = res.json()["admin"]
        assert admin["employeeId"] == "EMP-100"
        assert admin["email"] == "ada@example.com"
        assert admin["role"] == "admin"
        assert admin["createdBy"] == str(superadmin["_id"])

        user = next(u for u in store.users.docs if u["email"] == "ada@example.com")
        assert admin["userId"] == str(user["_id"])
        assert user["role"] == "admin"
        assert user["created_by"] == superadmin["_id"]

    def test_new_admin_can_log_in(self, client, superadmin_headers):
        client.post("/admins", headers=superadmin_headers, json=_body())
        res = client.post("/auth/login", json={"email": "ada@example.com", "password": "secret123"})
        assert res.status_code == 200
        assert res.json()["user"]["role"] == "admin"

    def test_superadmin_only_when_requested_exactly(self, client, superadmin_headers):
        res = client.post("/admins", headers=superadmin_headers, json=_body(role="superadmin"))
        assert res.json()["admin"]["role"] == "superadmin"

        res = client.post("/admins", headers=superadmin_headers, json=_body(
            email="b@example.com", employeeId="EMP-2", role="owner",
        ))
        assert res.status_code == 201
        assert res.json()["admin"]["role"] == "admin"

    @pytest.mark.parametrize("missing", ["name", "employeeId", "email", "password"])
    def test_missing_fields_400(self, client, store, superadmin_headers, missing):
        body = _body()
        del body[missing]
        res = client.post("/admins", headers=superadmin_headers, json=body)
        assert res.status_code == 400
        assert len(store.users.docs) == 1  # only the superadmin
        assert store.admins.docs == []

    def test_blank_employee_id_400(self, client, superadmin_headers):
        res = client.post("/admins", headers=superadmin_headers, json=_body(employeeId="   "))
        assert res.status_code == 400

    def test_email_conflict_409(self, client, store, superadmin_headers):
        make_user(store, "ada@example.com")
        res = client.post("/admins", headers=superadmin_headers, json=_body())
        assert res.status_code == 409
        assert store.admins.docs == []

    def test_employee_id_conflict_409(self, client, store, superadmin_headers):
        client.post("/admins", headers=superadmin_headers, json=_body())
        res = client.post("/admins", headers=superadmin_headers, json=_body(email="other@example.com"))
        assert res.status_code == 409
        assert res.json() == {"message": "Employee ID already exists"}
        assert not any(u["email"] == "other@example.com" for u in store.users.docs)

    def test_list_admins(self, client, superadmin_headers):
        client.post("/admins", headers=superadmin_headers, json=_body())
        res = client.get("/admins", headers=superadmin_headers)
        assert res.status_code == 200
        assert [a["employeeId"] for a in res.json()["admins"]] == ["EMP-100"]


class TestRollback:
    def test_profile_duplicate_rolls_back_user(self, client, store, superadmin_headers):
        """The employeeId pre-check is bypassed; the unique index fires after the user insert."""
        store.admins.seed({"employee_id": "EMP-100", "user_id": "someone"})
        original = store.admins.find_one

        async def miss(query):
            return None

        store.admins.find_one = miss
        try:
            res = client.post("/admins", headers=superadmin_headers, json=_body())
        finally:
            store.admins.find_one = original

        assert res.status_code == 409
        assert res.json() == {"message": "Employee ID already exists"}
        assert not any(u["email"] == "ada@example.com" for u in store.users.docs)
        assert len(store.users.deleted_ids) == 1

    def test_unexpected_profile_failure_rolls_back_and_500(self, client, store, superadmin_headers):
        store.admins.insert_error = RuntimeError("disk full")
        res = client.post("/admins", headers=superadmin_headers, json=_body())
        assert res.status_code == 500
        assert res.json() == {"message": "Internal server error"}
        assert not any(u["email"] == "ada@example.com" for u in store.users.docs)

    def test_failed_rollback_still_surfaces_original_error(self, client, store, superadmin_headers):
        store.admins.insert_error = DuplicateKeyError(
            "E11000 duplicate key", code=11000, details={"keyPattern": {"employee_id": 1}},
        )
        store.users.delete_error = RuntimeError("connection reset")
        res = client.post("/admins", headers=superadmin_headers, json=_body())
        assert res.status_code == 409
        assert res.json() == {"message": "Employee ID already exists"}


@pytest.mark.asyncio
async def test_rollback_deletes_only_the_new_user(store):
    bystander = make_user(store, "bystander@example.com", role=UserRole.ADMIN)
    creator = make_user(store, "root@example.com", role=UserRole.SUPERADMIN)
    store.admins.insert_error = DuplicateKeyError(
        "E11000 duplicate key", code=11000, details={"keyPattern": {"employee_id": 1}},
    )
    identity = TokenData(str(creator["_id"]), creator["email"], UserRole.SUPERADMIN)
    payload = AdminCreate(name="Ada", employee_id="EMP-1", email="ada@example.com", password="secret123")

    with pytest.raises(EmployeeIdConflictError):
        await provision_admin(store, payload, identity)

    emails = sorted(u["email"] for u in store.users.docs)
    assert emails == ["bystander@example.com", "root@example.com"]
    assert bystander["_id"] not in store.users.deleted_ids


def test_password_over_72_bytes_400(client, store, superadmin_headers):
    res = client.post("/admins", headers=superadmin_headers, json=_body(password="x" * 80))
    assert res.status_code == 400
    assert res.json() == {"message": "Password must be at most 72 bytes"}
    assert len(store.users.docs) == 1
    assert store.admins.docs == []


def test_duplicate_user_link_is_generic_conflict(client, store, superadmin_headers):
    store.admins.insert_error = DuplicateKeyError(
        "E11000 duplicate key", code=11000, details={"keyPattern": {"user_id": 1}},
    )
    res = client.post("/admins", headers=superadmin_headers, json=_body())
    assert res.status_code == 409
    assert res.json() == {"message": "Admin profile already exists"}
    assert not any(u["email"] == "ada@example.com" for u in store.users.docs)


@pytest.mark.asyncio
async def test_cancelled_profile_insert_rolls_back_user(store):
    creator = make_user(store, "root@example.com", role=UserRole.SUPERADMIN)
    store.admins.insert_error = asyncio.CancelledError()
    identity = TokenData(str(creator["_id"]), creator["email"], UserRole.SUPERADMIN)
    payload = AdminCreate(name="Ada", employee_id="EMP-1", email="ada@example.com", password="secret123")

    with pytest.raises(asyncio.CancelledError):
        await provision_admin(store, payload, identity)

    assert [u["email"] for u in store.users.docs] == ["root@example.com"]
    assert len(store.users.deleted_ids) == 1
