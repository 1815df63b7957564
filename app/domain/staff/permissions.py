"""Effective permission resolution: employee override, then role default, then denied"""

from sqlalchemy.orm import Session

from ...models import Employee, Permission, PermissionDefinition


def get_definition_keys(db: Session) -> list[str]:
    return [
        key
        for (key,) in db.query(PermissionDefinition.key).order_by(PermissionDefinition.sort_order).all()
    ]


def get_role_permission_map(db: Session, role_id: int) -> dict[str, bool]:
    rows = (
        db.query(Permission)
        .filter(Permission.role_id == role_id, Permission.employee_id.is_(None))
        .all()
    )
    return {row.permission_key: row.granted for row in rows}


def get_employee_overrides(db: Session, employee_id: int) -> dict[str, bool]:
    rows = db.query(Permission).filter(Permission.employee_id == employee_id).all()
    return {row.permission_key: row.granted for row in rows}


def resolve_permissions(db: Session, employee: Employee) -> dict[str, bool]:
    keys = get_definition_keys(db)
    if employee.role and employee.role.is_super:
        return {key: True for key in keys}

    role_map = get_role_permission_map(db, employee.role_id) if employee.role_id else {}
    overrides = get_employee_overrides(db, employee.id)

    resolved = {}
    for key in keys:
        if key in overrides:
            resolved[key] = overrides[key]
        elif key in role_map:
            resolved[key] = role_map[key]
        else:
            resolved[key] = False
    return resolved


def has_permission(db: Session, employee: Employee, permission_key: str) -> bool:
    if employee.role and employee.role.is_super:
        return True

    override = (
        db.query(Permission)
        .filter(Permission.employee_id == employee.id, Permission.permission_key == permission_key)
        .first()
    )
    if override is not None:
        return override.granted

    role_default = (
        db.query(Permission)
        .filter(
            Permission.role_id == employee.role_id,
            Permission.employee_id.is_(None),
            Permission.permission_key == permission_key,
        )
        .first()
    )
    return bool(role_default and role_default.granted)
