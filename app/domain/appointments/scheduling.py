"""
Availability and detailer assignment.
Times are "HH:MM" strings in shop-local time; schedules use 0 = Sunday.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...constants import APPOINTMENT_BUFFER_MINUTES, DAY_NAMES, JOB_ACTIVE_STATUSES, ROLE_DETAILER
from ...models import Employee, EmployeeSchedule, Role
from ...models_sales import Appointment, Job
from ..settings.service import get_setting

logger = logging.getLogger(__name__)


def time_to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(total: int) -> str:
    return f"{(total // 60) % 24:02d}:{total % 60:02d}"


def add_minutes_to_time(value: str, minutes: int) -> str:
    """add_minutes_to_time("23:30", 60) -> "00:30" """
    return minutes_to_time(time_to_minutes(value) + minutes)


def sunday_based_weekday(day: date) -> int:
    return (day.weekday() + 1) % 7


def _fallback_owner(db: Session) -> Optional[int]:
    owner = (
        db.query(Employee)
        .join(Role, Employee.role_id == Role.id)
        .filter(Role.is_super.is_(True), Employee.status == "active")
        .order_by(Employee.created_at, Employee.id)
        .first()
    )
    return owner.id if owner else None


def find_available_detailer(db: Session, day: date, start_time: str, end_time: str) -> Optional[int]:
    """
    Pick a detailer for a time window.

    1. Active, bookable detailers ordered by hire date; none -> the owner (super admin)
    2. When schedules exist for that weekday, keep detailers whose shift covers the window
    3. A single candidate gets the job regardless of conflicts
    4. Otherwise the first candidate without an overlapping appointment or active job,
       or the first candidate when everyone is busy
    """
    detailers = (
        db.query(Employee.id)
        .join(Role, Employee.role_id == Role.id)
        .filter(
            Role.name == ROLE_DETAILER,
            Employee.status == "active",
            Employee.bookable_for_appointments.is_(True),
        )
        .order_by(Employee.created_at, Employee.id)
        .all()
    )
    detailer_ids = [row.id for row in detailers]
    if not detailer_ids:
        return _fallback_owner(db)

    schedules = (
        db.query(EmployeeSchedule)
        .filter(
            EmployeeSchedule.day_of_week == sunday_based_weekday(day),
            EmployeeSchedule.is_available.is_(True),
            EmployeeSchedule.employee_id.in_(detailer_ids),
        )
        .all()
    )

    if schedules:
        covering = {
            s.employee_id for s in schedules if s.start_time <= start_time and s.end_time >= end_time
        }
        candidate_ids = [i for i in detailer_ids if i in covering]
    else:
        candidate_ids = detailer_ids

    if not candidate_ids:
        return _fallback_owner(db)
    if len(candidate_ids) == 1:
        return candidate_ids[0]

    busy_appointments = (
        db.query(Appointment.employee_id)
        .filter(
            Appointment.scheduled_date == day,
            Appointment.employee_id.in_(candidate_ids),
            Appointment.status != "cancelled",
            Appointment.scheduled_start_time < end_time,
            Appointment.scheduled_end_time > start_time,
        )
        .all()
    )
    busy_jobs = (
        db.query(Job.assigned_staff_id)
        .filter(Job.assigned_staff_id.in_(candidate_ids), Job.status.in_(JOB_ACTIVE_STATUSES))
        .all()
    )
    busy = {row[0] for row in busy_appointments} | {row[0] for row in busy_jobs}

    for candidate in candidate_ids:
        if candidate not in busy:
            return candidate
    return candidate_ids[0]


def get_available_slots(db: Session, day: date, duration_minutes: int) -> list[str]:
    """Start times on a day that fit duration plus turnover buffer before close"""
    hours = get_setting(db, "business_hours") or {}
    day_hours = hours.get(DAY_NAMES[day.weekday()])
    if not day_hours:
        return []

    config = get_setting(db, "booking_config") or {}
    interval = config.get("slot_interval_minutes") or 30
    total_needed = duration_minutes + APPOINTMENT_BUFFER_MINUTES

    existing = (
        db.query(Appointment.scheduled_start_time, Appointment.scheduled_end_time)
        .filter(Appointment.scheduled_date == day, Appointment.status != "cancelled")
        .all()
    )
    booked = [(time_to_minutes(start), time_to_minutes(end)) for start, end in existing]

    open_minute = time_to_minutes(day_hours["open"])
    close_minute = time_to_minutes(day_hours["close"])

    slots = []
    t = open_minute
    while t + total_needed <= close_minute:
        slot_end = t + total_needed
        if not any(t < end and slot_end > start for start, end in booked):
            slots.append(minutes_to_time(t))
        t += interval
    return slots
