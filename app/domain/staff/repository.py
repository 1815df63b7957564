"""Staff repository - Database operations for roles, permissions and employees"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Employee, EmployeeSchedule, Permission, PermissionDefinition, Role


class StaffRepository:
    """Repository for staff database operations"""

    # ------------------------------------------------------------------ roles

    @staticmethod
    def get_roles(db: Session) -> list[Role]:
        return (
            db.query(Role)
            .order_by(Role.is_super.desc(), Role.is_system.desc(), Role.name)
            .all()
        )

    @staticmethod
    def get_role(db: Session, role_id: int) -> Optional[Role]:
        return db.query(Role).filter(Role.id == role_id).first()

    @staticmethod
    def get_role_by_name(db: Session, name: str) -> Optional[Role]:
        return db.query(Role).filter(Role.name == name).first()

    @staticmethod
    def get_definitions(db: Session) -> list[PermissionDefinition]:
        return db.query(PermissionDefinition).order_by(PermissionDefinition.sort_order).all()

    @staticmethod
    def employee_counts_by_role(db: Session) -> dict[int, int]:
        """Active and inactive employees per role id"""
        rows = (
            db.query(Employee.role_id, func.count(Employee.id))
            .filter(Employee.status.in_(["active", "inactive"]))
            .group_by(Employee.role_id)
            .all()
        )
        return {role_id: count for role_id, count in rows}

    @staticmethod
    def upsert_role_permission(db: Session, role_id: int, key: str, granted: bool) -> None:
        row = (
            db.query(Permission)
            .filter(
                Permission.role_id == role_id,
                Permission.employee_id.is_(None),
                Permission.permission_key == key,
            )
            .first()
        )
        if row:
            row.granted = granted
        else:
            db.add(Permission(permission_key=key, role_id=role_id, granted=granted))

    @staticmethod
    def delete_role(db: Session, role: Role) -> None:
        db.query(Permission).filter(Permission.role_id == role.id).delete(synchronize_session=False)
        db.delete(role)
        db.commit()

    # -------------------------------------------------------------- overrides

    @staticmethod
    def upsert_employee_override(db: Session, employee_id: int, key: str, granted: bool) -> None:
        row = (
            db.query(Permission)
            .filter(Permission.employee_id == employee_id, Permission.permission_key == key)
            .first()
        )
        if row:
            row.granted = granted
        else:
            db.add(Permission(permission_key=key, employee_id=employee_id, granted=granted))

    @staticmethod
    def delete_employee_override(db: Session, employee_id: int, key: str) -> None:
        db.query(Permission).filter(
            Permission.employee_id == employee_id, Permission.permission_key == key
        ).delete(synchronize_session=False)

    # -------------------------------------------------------------- employees

    @staticmethod
    def get_employees(db: Session, status: Optional[str] = None) -> list[Employee]:
        query = db.query(Employee).options(joinedload(Employee.role), joinedload(Employee.schedules))
        if status:
            query = query.filter(Employee.status == status)
        return query.order_by(Employee.first_name, Employee.id).all()

    @staticmethod
    def get_employee(db: Session, employee_id: int) -> Optional[Employee]:
        return (
            db.query(Employee)
            .options(joinedload(Employee.role))
            .filter(Employee.id == employee_id)
            .first()
        )

    @staticmethod
    def get_employee_by_email(db: Session, email: str) -> Optional[Employee]:
        return db.query(Employee).filter(func.lower(Employee.email) == email.lower()).first()

    @staticmethod
    def create_employee(db: Session, **employee_data) -> Employee:
        employee = Employee(**employee_data)
        db.add(employee)
        db.commit()
        db.refresh(employee)
        return employee

    @staticmethod
    def update_employee(db: Session, employee: Employee, **updates) -> Employee:
        for key, value in updates.items():
            if value is not None and hasattr(employee, key):
                setattr(employee, key, value)
        db.commit()
        db.refresh(employee)
        return employee

    @staticmethod
    def replace_schedules(db: Session, employee: Employee, entries: list[dict]) -> Employee:
        db.query(EmployeeSchedule).filter(EmployeeSchedule.employee_id == employee.id).delete(
            synchronize_session=False
        )
        for entry in entries:
            db.add(EmployeeSchedule(employee_id=employee.id, **entry))
        db.commit()
        db.refresh(employee)
        return employee
