"""Auth service - staff sign-in by password or POS PIN"""

import logging
from datetime import datetime

from fastapi import HTTPException
from sqlalchemy.orm import Session, joinedload

from ...auth import create_access_token, verify_secret
from ...models import Employee
from .schemas import SessionEmployee, TokenResponse

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def _issue(self, employee: Employee) -> TokenResponse:
        employee.last_login_at = datetime.utcnow()
        self.db.commit()
        return TokenResponse(access_token=create_access_token(employee), employee=session_payload(employee))

    def login(self, email: str, password: str) -> TokenResponse:
        employee = (
            self.db.query(Employee)
            .options(joinedload(Employee.role))
            .filter(Employee.email == email.strip().lower(), Employee.status == "active")
            .first()
        )
        if not employee or not verify_secret(password, employee.password_hash):
            logger.warning(f"⚠️ Failed login for {email}")
            raise HTTPException(status_code=401, detail="Invalid email or password")

        logger.info(f"✅ Employee {employee.id} signed in")
        return self._issue(employee)

    def pin_login(self, pin: str) -> TokenResponse:
        """PINs are hashed, so every active employee with a PIN is checked"""
        candidates = (
            self.db.query(Employee)
            .options(joinedload(Employee.role))
            .filter(Employee.status == "active", Employee.pin_hash.isnot(None))
            .all()
        )
        for employee in candidates:
            if verify_secret(pin, employee.pin_hash):
                if not employee.role or not employee.role.can_access_pos:
                    raise HTTPException(status_code=403, detail="Your role does not have POS access")
                logger.info(f"✅ Employee {employee.id} signed in to POS")
                return self._issue(employee)

        logger.warning("⚠️ Failed POS PIN login")
        raise HTTPException(status_code=401, detail="Invalid PIN")


def session_payload(employee: Employee) -> SessionEmployee:
    role = employee.role
    return SessionEmployee(
        id=employee.id,
        first_name=employee.first_name,
        last_name=employee.last_name,
        email=employee.email,
        role=role.name if role else None,
        role_display_name=role.display_name if role else None,
        is_super=bool(role and role.is_super),
        can_access_pos=bool(role and role.can_access_pos),
    )
