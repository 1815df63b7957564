"""Staff service - Business logic for roles, permission overrides and employees"""

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from ...auth import hash_secret
from ...errors import ConflictError, NotFoundError, PersistenceError, RoleProtectedError, ValidationFailed
from ...models import Employee, Role
from ...shared.formatting import role_slug
from .defaults import ROLE_PERMISSION_DEFAULTS
from .permissions import (
    get_definition_keys,
    get_employee_overrides,
    get_role_permission_map,
    resolve_permissions,
)
from .repository import StaffRepository
from .schemas import EmployeeCreate, EmployeeUpdate, RoleCreate, RoleUpdate, ScheduleEntry

logger = logging.getLogger(__name__)


class StaffService:
    """Service layer for roles, permissions and employees"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = StaffRepository()

    # ========================================================================
    # ROLES
    # ========================================================================

    def list_roles(self) -> dict:
        roles = self.repo.get_roles(self.db)
        counts = self.repo.employee_counts_by_role(self.db)
        return {
            "roles": [self._role_payload(role, counts.get(role.id, 0)) for role in roles],
            "permission_definitions": self._definitions(),
        }

    def _definitions(self) -> list[dict]:
        return [
            {
                "key": d.key,
                "name": d.name,
                "description": d.description,
                "category": d.category,
                "sort_order": d.sort_order,
            }
            for d in self.repo.get_definitions(self.db)
        ]

    def _role_payload(self, role: Role, employee_count: int = 0) -> dict:
        return {
            "id": role.id,
            "name": role.name,
            "display_name": role.display_name,
            "description": role.description,
            "is_system": role.is_system,
            "is_super": role.is_super,
            "can_access_pos": role.can_access_pos,
            "permissions": get_role_permission_map(self.db, role.id),
            "employee_count": employee_count,
        }

    def get_role(self, role_id: int) -> Role:
        role = self.repo.get_role(self.db, role_id)
        if not role:
            raise NotFoundError("Role not found")
        return role

    def create_role(self, data: RoleCreate) -> dict:
        display_name = (data.display_name or "").strip()
        if not display_name:
            raise ValidationFailed("Display name is required")

        name = role_slug(display_name)
        if not name:
            raise ValidationFailed("Display name must contain letters or numbers")

        if self.repo.get_role_by_name(self.db, name):
            raise ConflictError(f'A role with the name "{name}" already exists')

        logger.info(f"📥 Creating role {name}")
        role = Role(
            name=name,
            display_name=display_name,
            description=(data.description or "").strip() or None,
            can_access_pos=data.can_access_pos,
            is_system=False,
            is_super=False,
        )
        self.db.add(role)
        self.db.commit()
        self.db.refresh(role)

        grants = data.permissions or {}
        try:
            for key in get_definition_keys(self.db):
                self.repo.upsert_role_permission(self.db, role.id, key, grants.get(key) is True)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create permissions for role {name}: {e}, removing role")
            self.db.delete(role)
            self.db.commit()
            raise PersistenceError("Failed to create role permissions") from e

        return self._role_payload(role)

    def update_role(self, role_id: int, data: RoleUpdate) -> dict:
        role = self.get_role(role_id)

        if role.is_super and data.permissions is not None:
            raise RoleProtectedError(
                "Cannot modify Super Admin permissions: this role bypasses all permission checks"
            )

        if data.display_name is not None:
            if not data.display_name.strip():
                raise ValidationFailed("Display name is required")
            role.display_name = data.display_name.strip()
        if data.description is not None:
            role.description = data.description.strip() or None
        if data.can_access_pos is not None:
            role.can_access_pos = data.can_access_pos

        if data.permissions:
            for key, value in data.permissions.items():
                self.repo.upsert_role_permission(self.db, role.id, key, value is True)

        self.db.commit()
        logger.info(f"✅ Role {role.name} updated")
        return {"success": True}

    def delete_role(self, role_id: int) -> dict:
        role = self.get_role(role_id)
        if role.is_system:
            raise RoleProtectedError("Cannot delete system roles")

        employee_count = self.repo.employee_counts_by_role(self.db).get(role.id, 0)
        if employee_count > 0:
            raise RoleProtectedError(
                "Cannot delete role with assigned employees. Reassign them first.",
                employee_count=employee_count,
            )

        self.repo.delete_role(self.db, role)
        logger.info(f"🗑️ Role {role_id} deleted")
        return {"success": True}

    def reset_role(self, role_id: int) -> dict:
        role = self.get_role(role_id)
        if role.is_super:
            raise RoleProtectedError("Super Admin permissions cannot be modified")

        defaults = ROLE_PERMISSION_DEFAULTS.get(role.name, {})
        permissions = {key: defaults.get(key, False) for key in get_definition_keys(self.db)}
        for key, granted in permissions.items():
            self.repo.upsert_role_permission(self.db, role.id, key, granted)
        self.db.commit()

        logger.info(f"🔄 Role {role.name} reset to default permissions")
        return {"success": True, "permissions": permissions}

    # ========================================================================
    # EMPLOYEE PERMISSIONS
    # ========================================================================

    def get_employee_permissions(self, employee_id: int) -> dict:
        employee = self.get_employee(employee_id)
        role = employee.role
        return {
            "employee_id": employee.id,
            "role": {
                "id": role.id,
                "display_name": role.display_name,
                "can_access_pos": role.can_access_pos,
            }
            if role
            else None,
            "definitions": self._definitions(),
            "role_defaults": get_role_permission_map(self.db, role.id) if role else {},
            "overrides": get_employee_overrides(self.db, employee.id),
        }

    def update_employee_permissions(self, employee_id: int, body: Any) -> dict:
        overrides = body.get("overrides") if isinstance(body, dict) else None
        if not isinstance(overrides, list):
            raise ValidationFailed("Invalid body: overrides must be an array")

        employee = self.get_employee(employee_id)
        for entry in overrides:
            if not isinstance(entry, dict) or not entry.get("permission_key"):
                raise ValidationFailed("Each override needs a permission_key")
            key = entry["permission_key"]
            granted = entry.get("granted")
            if granted is None:
                self.repo.delete_employee_override(self.db, employee.id, key)
            else:
                self.repo.upsert_employee_override(self.db, employee.id, key, granted is True)
        self.db.commit()

        logger.info(f"✅ Updated {len(overrides)} permission overrides for employee {employee.id}")
        return {"success": True, "overrides": get_employee_overrides(self.db, employee.id)}

    def my_permissions(self, employee: Employee) -> dict:
        return {
            "employee_id": employee.id,
            "role": employee.role.name if employee.role else None,
            "is_super": bool(employee.role and employee.role.is_super),
            "permissions": resolve_permissions(self.db, employee),
        }

    # ========================================================================
    # EMPLOYEES
    # ========================================================================

    def list_employees(self, status: Optional[str] = None) -> list[Employee]:
        return self.repo.get_employees(self.db, status)

    def get_employee(self, employee_id: int) -> Employee:
        employee = self.repo.get_employee(self.db, employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def create_employee(self, data: EmployeeCreate) -> Employee:
        self.get_role(data.role_id)
        if data.email and self.repo.get_employee_by_email(self.db, data.email):
            raise ConflictError("An employee with this email already exists")

        logger.info(f"📥 Creating employee {data.first_name}")
        return self.repo.create_employee(
            self.db,
            first_name=data.first_name.strip(),
            last_name=data.last_name,
            email=data.email,
            phone=data.phone,
            role_id=data.role_id,
            password_hash=hash_secret(data.password) if data.password else None,
            pin_hash=hash_secret(data.pin) if data.pin else None,
            hourly_rate=data.hourly_rate,
            bookable_for_appointments=data.bookable_for_appointments,
            status="active",
        )

    def update_employee(self, employee_id: int, data: EmployeeUpdate) -> Employee:
        employee = self.get_employee(employee_id)
        if data.role_id is not None:
            self.get_role(data.role_id)
        if data.email and data.email != employee.email:
            existing = self.repo.get_employee_by_email(self.db, data.email)
            if existing and existing.id != employee.id:
                raise ConflictError("An employee with this email already exists")

        updates = data.model_dump(exclude_unset=True, exclude={"password", "pin"})
        if data.password:
            updates["password_hash"] = hash_secret(data.password)
        if data.pin:
            updates["pin_hash"] = hash_secret(data.pin)
        return self.repo.update_employee(self.db, employee, **updates)

    def set_schedules(self, employee_id: int, entries: list[ScheduleEntry]) -> Employee:
        employee = self.get_employee(employee_id)
        for entry in entries:
            if entry.start_time >= entry.end_time:
                raise ValidationFailed("Schedule start time must be before end time")
        return self.repo.replace_schedules(self.db, employee, [e.model_dump() for e in entries])
