from app.constants import ROLE_ADMIN, ROLE_CASHIER, ROLE_DETAILER, ROLE_SUPER_ADMIN
from app.domain.staff.defaults import PERMISSION_KEYS, seed_roles_and_permissions
from app.domain.staff.permissions import has_permission, resolve_permissions
from app.domain.staff.repository import StaffRepository
from app.models import Permission, Role


def _role(db, name):
    return db.query(Role).filter(Role.name == name).first()


def test_seed_is_idempotent(db):
    before = db.query(Permission).count()
    seed_roles_and_permissions(db)
    assert db.query(Permission).count() == before
    assert db.query(Role).count() == 4


def test_super_admin_has_everything(db, owner):
    resolved = resolve_permissions(db, owner)
    assert set(resolved) == set(PERMISSION_KEYS)
    assert all(resolved.values())


def test_role_defaults(db, admin, cashier, detailer):
    assert not has_permission(db, admin, "settings.roles_permissions")
    assert has_permission(db, admin, "staff.manage")
    assert has_permission(db, cashier, "quotes.manage")
    assert not has_permission(db, cashier, "pos.void_transactions")
    assert has_permission(db, detailer, "appointments.view")
    assert not has_permission(db, detailer, "pos.access")


def test_employee_override_wins_over_role(client, owner_headers, cashier, auth_headers):
    response = client.patch(
        f"/api/staff/employees/{cashier.id}/permissions",
        json={
            "overrides": [
                {"permission_key": "pos.void_transactions", "granted": True},
                {"permission_key": "quotes.manage", "granted": False},
            ]
        },
        headers=owner_headers,
    )
    assert response.status_code == 200
    assert response.json()["overrides"] == {"pos.void_transactions": True, "quotes.manage": False}

    mine = client.get("/api/staff/my-permissions", headers=auth_headers(cashier)).json()
    assert mine["permissions"]["pos.void_transactions"] is True
    assert mine["permissions"]["quotes.manage"] is False
    assert mine["permissions"]["customers.view"] is True

    # granted: null removes the override again
    client.patch(
        f"/api/staff/employees/{cashier.id}/permissions",
        json={"overrides": [{"permission_key": "quotes.manage", "granted": None}]},
        headers=owner_headers,
    )
    mine = client.get("/api/staff/my-permissions", headers=auth_headers(cashier)).json()
    assert mine["permissions"]["quotes.manage"] is True


def test_overrides_body_must_be_a_list(client, owner_headers, cashier):
    response = client.patch(
        f"/api/staff/employees/{cashier.id}/permissions", json={"overrides": "nope"}, headers=owner_headers
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid body: overrides must be an array"}


def test_admin_cannot_manage_permissions(client, admin, cashier, auth_headers):
    response = client.get(f"/api/staff/employees/{cashier.id}/permissions", headers=auth_headers(admin))
    assert response.status_code == 403


def test_create_role_slugifies_name(client, owner_headers):
    response = client.post(
        "/api/staff/roles",
        json={"display_name": "Shop Lead", "permissions": {"pos.access": True, "staff.manage": "yes"}},
        headers=owner_headers,
    )
    assert response.status_code == 201
    role = response.json()
    assert role["name"] == "shop_lead"
    assert role["is_system"] is False
    # Only literal true grants
    assert role["permissions"]["pos.access"] is True
    assert role["permissions"]["staff.manage"] is False

    duplicate = client.post("/api/staff/roles", json={"display_name": "shop lead"}, headers=owner_headers)
    assert duplicate.status_code == 409


def test_super_admin_role_is_protected(client, db, owner_headers):
    super_role = _role(db, ROLE_SUPER_ADMIN)

    update = client.patch(
        f"/api/staff/roles/{super_role.id}", json={"permissions": {"pos.access": False}}, headers=owner_headers
    )
    assert update.status_code == 400
    assert update.json()["error"].startswith("Cannot modify Super Admin permissions")

    assert client.delete(f"/api/staff/roles/{super_role.id}", headers=owner_headers).status_code == 400


def test_cannot_delete_role_with_employees(client, db, owner_headers, make_employee):
    role = client.post("/api/staff/roles", json={"display_name": "Porter"}, headers=owner_headers).json()
    make_employee("porter")

    response = client.delete(f"/api/staff/roles/{role['id']}", headers=owner_headers)
    assert response.status_code == 400
    assert response.json()["employee_count"] == 1


def test_reset_role_restores_defaults(client, db, owner_headers):
    cashier_role = _role(db, ROLE_CASHIER)
    client.patch(
        f"/api/staff/roles/{cashier_role.id}", json={"permissions": {"staff.manage": True}}, headers=owner_headers
    )

    response = client.post(f"/api/staff/roles/{cashier_role.id}/reset", headers=owner_headers)
    assert response.status_code == 200
    permissions = response.json()["permissions"]
    assert permissions["staff.manage"] is False
    assert permissions["pos.access"] is True


def test_roles_list_requires_super_admin(client, admin, auth_headers, owner_headers):
    assert client.get("/api/staff/roles", headers=auth_headers(admin)).status_code == 403

    body = client.get("/api/staff/roles", headers=owner_headers).json()
    names = {r["name"] for r in body["roles"]}
    assert {ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_CASHIER, ROLE_DETAILER} <= names
    assert len(body["permission_definitions"]) == len(PERMISSION_KEYS)


def test_create_employee_and_schedule(client, db, owner_headers):
    detailer_role = _role(db, ROLE_DETAILER)
    response = client.post(
        "/api/staff/employees",
        json={"first_name": "Jo", "email": "jo@example.com", "role_id": detailer_role.id, "pin": "2468"},
        headers=owner_headers,
    )
    assert response.status_code == 201
    employee = response.json()
    assert employee["role_name"] == ROLE_DETAILER

    duplicate = client.post(
        "/api/staff/employees",
        json={"first_name": "Jo", "email": "jo@example.com", "role_id": detailer_role.id},
        headers=owner_headers,
    )
    assert duplicate.status_code == 409

    bad = client.put(
        f"/api/staff/employees/{employee['id']}/schedules",
        json=[{"day_of_week": 1, "start_time": "17:00", "end_time": "09:00"}],
        headers=owner_headers,
    )
    assert bad.status_code == 400

    ok = client.put(
        f"/api/staff/employees/{employee['id']}/schedules",
        json=[{"day_of_week": 1, "start_time": "09:00", "end_time": "17:00"}],
        headers=owner_headers,
    )
    assert ok.status_code == 200
    assert ok.json()["schedules"][0]["start_time"] == "09:00"


def test_role_patch_grants_only_literal_true(client, owner_headers):
    role = client.post("/api/staff/roles", json={"display_name": "Floor Lead"}, headers=owner_headers).json()

    response = client.patch(
        f"/api/staff/roles/{role['id']}",
        json={"permissions": {"pos.access": "true", "quotes.manage": 1, "staff.manage": True}},
        headers=owner_headers,
    )
    assert response.status_code == 200

    roles = client.get("/api/staff/roles", headers=owner_headers).json()["roles"]
    permissions = next(r for r in roles if r["id"] == role["id"])["permissions"]
    assert permissions["staff.manage"] is True
    assert permissions["pos.access"] is False
    assert permissions["quotes.manage"] is False


def test_role_removed_when_permissions_fail(client, db, owner_headers, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("permission insert failed")

    monkeypatch.setattr(StaffRepository, "upsert_role_permission", broken)
    response = client.post(
        "/api/staff/roles",
        json={"display_name": "Night Crew", "permissions": {"pos.access": True}},
        headers=owner_headers,
    )
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to create role permissions"}
    assert _role(db, "night_crew") is None
