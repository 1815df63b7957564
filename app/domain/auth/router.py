"""Auth router - staff sign-in endpoints"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_employee
from ...database import get_db
from ...models import Employee
from ...rate_limiter import create_rate_limiter
from .schemas import LoginRequest, PinLoginRequest, SessionEmployee, TokenResponse
from .service import AuthService, session_payload

router = APIRouter(prefix="/auth", tags=["Auth"])

login_limiter = create_rate_limiter(limit=10, window_seconds=900, key_prefix="staff_login")
pin_login_limiter = create_rate_limiter(limit=10, window_seconds=300, key_prefix="pin_login")


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    """Dependency injection for AuthService"""
    return AuthService(db)


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    _: None = Depends(login_limiter),
    service: AuthService = Depends(get_auth_service),
):
    """Back-office sign-in with email and password"""
    return service.login(data.email, data.password)


@router.post("/pin-login", response_model=TokenResponse)
async def pin_login(
    data: PinLoginRequest,
    _: None = Depends(pin_login_limiter),
    service: AuthService = Depends(get_auth_service),
):
    """POS sign-in with a 4-6 digit PIN"""
    return service.pin_login(data.pin)


@router.get("/me", response_model=SessionEmployee)
async def me(employee: Employee = Depends(get_current_employee)):
    return session_payload(employee)


__all__ = ["router"]
