"""Auth domain schemas"""

from typing import Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: str
    password: str


class PinLoginRequest(BaseModel):
    pin: str = Field(min_length=4, max_length=6)


class SessionEmployee(BaseModel):
    id: int
    first_name: str
    last_name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    role_display_name: Optional[str] = None
    is_super: bool = False
    can_access_pos: bool = False


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    employee: SessionEmployee
