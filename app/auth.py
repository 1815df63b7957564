"""
Staff authentication.
Employees sign in with email + password (back office) or a PIN (POS) and receive
a signed JWT that is sent back as a Bearer token.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from jose import jwt as jose_jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session, joinedload

from .config import JWT_ALGORITHM, JWT_EXPIRE_MINUTES, SECRET_KEY
from .database import get_db
from .domain.staff.permissions import has_permission
from .models import Employee

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

# Password and PIN hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ============================================================================
# HASHING & TOKENS
# ============================================================================


def hash_secret(secret: str) -> str:
    """Hash a password or PIN using bcrypt"""
    return pwd_context.hash(secret)


def verify_secret(plain: str, hashed: Optional[str]) -> bool:
    """Verify a password or PIN against its bcrypt hash"""
    if not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError as e:
        logger.error(f"Password verification error: {e}")
        return False


def create_access_token(employee: Employee, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT for an employee session"""
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=JWT_EXPIRE_MINUTES))
    to_encode = {"sub": str(employee.id), "role": employee.role.name if employee.role else None, "exp": expire}
    return jose_jwt.encode(to_encode, SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[dict[str, Any]]:
    """Decoded payload if valid, None if invalid or expired"""
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None


# ============================================================================
# DEPENDENCIES
# ============================================================================


async def get_current_employee(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Employee:
    """Get the signed-in employee from the Bearer token"""
    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    payload = decode_access_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    try:
        employee_id = int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=401, detail="Invalid token claims") from e

    employee = (
        db.query(Employee)
        .options(joinedload(Employee.role))
        .filter(Employee.id == employee_id)
        .first()
    )
    if not employee or employee.status != "active":
        logger.warning(f"⚠️ Token for missing or inactive employee {employee_id}")
        raise HTTPException(status_code=401, detail="Employee account is not active")

    return employee


def require_permission(permission_key: str):
    """
    Dependency factory: the current employee must hold permission_key.

    Example usage:
        @router.patch("/seo/{page_id}")
        async def update_seo(employee: Employee = Depends(require_permission("cms.seo.manage"))):
            ...
    """

    async def permission_checker(
        employee: Employee = Depends(get_current_employee),
        db: Session = Depends(get_db),
    ) -> Employee:
        if not has_permission(db, employee, permission_key):
            logger.warning(f"⚠️ Employee {employee.id} lacks permission {permission_key}")
            raise HTTPException(status_code=403, detail="Forbidden")
        return employee

    return permission_checker


def require_roles(*role_names: str):
    """Dependency factory: the current employee's role must be one of role_names"""

    async def role_checker(employee: Employee = Depends(get_current_employee)) -> Employee:
        if not employee.role or employee.role.name not in role_names:
            raise HTTPException(status_code=403, detail="Forbidden")
        return employee

    return role_checker


async def require_super_admin(employee: Employee = Depends(get_current_employee)) -> Employee:
    if not employee.role or not employee.role.is_super:
        raise HTTPException(status_code=403, detail="Forbidden")
    return employee
