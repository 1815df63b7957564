"""Staff router - roles, permission overrides, employees and schedules"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_employee, require_permission, require_super_admin
from ...database import get_db
from ...models import Employee
from .schemas import (
    EmployeeCreate,
    EmployeeResponse,
    EmployeeUpdate,
    RoleCreate,
    RoleListResponse,
    RoleResponse,
    RoleUpdate,
    ScheduleEntry,
)
from .service import StaffService


router = APIRouter(prefix="/staff", tags=["Staff"])


def get_staff_service(db: Session = Depends(get_db)) -> StaffService:
    """Dependency injection for StaffService"""
    return StaffService(db)


def _employee_response(employee: Employee) -> EmployeeResponse:
    return EmployeeResponse(
        id=employee.id,
        first_name=employee.first_name,
        last_name=employee.last_name,
        email=employee.email,
        phone=employee.phone,
        role_id=employee.role_id,
        role_name=employee.role.name if employee.role else None,
        role_display_name=employee.role.display_name if employee.role else None,
        status=employee.status,
        hourly_rate=employee.hourly_rate,
        bookable_for_appointments=employee.bookable_for_appointments,
        schedules=[
            ScheduleEntry(
                day_of_week=s.day_of_week,
                start_time=s.start_time,
                end_time=s.end_time,
                is_available=s.is_available,
            )
            for s in sorted(employee.schedules, key=lambda s: s.day_of_week)
        ],
        created_at=employee.created_at,
    )


# ============================================================================
# ROLES
# ============================================================================


@router.get("/roles", response_model=RoleListResponse)
async def list_roles(
    _: Employee = Depends(require_super_admin),
    service: StaffService = Depends(get_staff_service),
):
    """All roles with their permission maps and employee counts"""
    return service.list_roles()


@router.post("/roles", response_model=RoleResponse, status_code=201)
async def create_role(
    data: RoleCreate,
    _: Employee = Depends(require_super_admin),
    service: StaffService = Depends(get_staff_service),
):
    return service.create_role(data)


@router.patch("/roles/{role_id}")
async def update_role(
    role_id: int,
    data: RoleUpdate,
    _: Employee = Depends(require_super_admin),
    service: StaffService = Depends(get_staff_service),
):
    return service.update_role(role_id, data)


@router.delete("/roles/{role_id}")
async def delete_role(
    role_id: int,
    _: Employee = Depends(require_super_admin),
    service: StaffService = Depends(get_staff_service),
):
    return service.delete_role(role_id)


@router.post("/roles/{role_id}/reset")
async def reset_role(
    role_id: int,
    _: Employee = Depends(require_super_admin),
    service: StaffService = Depends(get_staff_service),
):
    """Restore the built-in default permissions for a role"""
    return service.reset_role(role_id)


# ============================================================================
# PERMISSIONS
# ============================================================================


@router.get("/my-permissions")
async def my_permissions(
    employee: Employee = Depends(get_current_employee),
    service: StaffService = Depends(get_staff_service),
):
    """Effective permissions for the signed-in employee"""
    return service.my_permissions(employee)


@router.get("/employees/{employee_id}/permissions")
async def get_employee_permissions(
    employee_id: int,
    _: Employee = Depends(require_permission("settings.roles_permissions")),
    service: StaffService = Depends(get_staff_service),
):
    return service.get_employee_permissions(employee_id)


@router.patch("/employees/{employee_id}/permissions")
async def update_employee_permissions(
    employee_id: int,
    body: Any = Body(...),
    _: Employee = Depends(require_permission("settings.roles_permissions")),
    service: StaffService = Depends(get_staff_service),
):
    """Body: {"overrides": [{"permission_key": "...", "granted": true|false|null}]}"""
    return service.update_employee_permissions(employee_id, body)


# ============================================================================
# EMPLOYEES
# ============================================================================


@router.get("/employees", response_model=list[EmployeeResponse])
async def list_employees(
    status: Optional[str] = Query(None),
    _: Employee = Depends(require_permission("staff.manage")),
    service: StaffService = Depends(get_staff_service),
):
    return [_employee_response(e) for e in service.list_employees(status)]


@router.post("/employees", response_model=EmployeeResponse, status_code=201)
async def create_employee(
    data: EmployeeCreate,
    _: Employee = Depends(require_permission("staff.manage")),
    service: StaffService = Depends(get_staff_service),
):
    return _employee_response(service.create_employee(data))


@router.get("/employees/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    employee_id: int,
    _: Employee = Depends(require_permission("staff.manage")),
    service: StaffService = Depends(get_staff_service),
):
    return _employee_response(service.get_employee(employee_id))


@router.patch("/employees/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    employee_id: int,
    data: EmployeeUpdate,
    _: Employee = Depends(require_permission("staff.manage")),
    service: StaffService = Depends(get_staff_service),
):
    return _employee_response(service.update_employee(employee_id, data))


@router.put("/employees/{employee_id}/schedules", response_model=EmployeeResponse)
async def set_employee_schedules(
    employee_id: int,
    entries: list[ScheduleEntry],
    _: Employee = Depends(require_permission("staff.manage")),
    service: StaffService = Depends(get_staff_service),
):
    """Replace the weekly schedule of an employee"""
    return _employee_response(service.set_schedules(employee_id, entries))


__all__ = ["router"]
