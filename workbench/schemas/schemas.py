"""Pydantic schemas for API request/response serialization."""

import re
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from workbench.core.security import BCRYPT_MAX_BYTES, password_too_long
from workbench.db.base import MAX_ID
from workbench.models.permission import Action
from workbench.models.user import UserStatus

PASSWORD_LETTER = re.compile(r"[A-Za-z]")
PASSWORD_DIGIT = re.compile(r"\d")


def _check_password(value: str) -> str:
    if password_too_long(value):
        raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
    if not PASSWORD_LETTER.search(value) or not PASSWORD_DIGIT.search(value):
        raise ValueError("Password must contain at least one letter and one number")
    return value


def _check_distinct_actions(value: Optional[List[Action]]) -> Optional[List[Action]]:
    if value is not None and len(set(value)) != len(value):
        raise ValueError("Duplicate actions found in array")
    return value


class RequestModel(BaseModel):
    class Config:
        str_strip_whitespace = True
        extra = "forbid"


# ---- Auth ----
class RegisterRequest(RequestModel):
    name: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return _check_password(value)

class LoginRequest(RequestModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)

class RefreshRequest(RequestModel):
    refresh_token: str = Field(..., min_length=1)

class LogoutRequest(RequestModel):
    refresh_token: str = Field(..., min_length=1)

class ForgotPasswordRequest(RequestModel):
    email: EmailStr

class ResetPasswordRequest(RequestModel):
    password: str = Field(..., min_length=8, max_length=72)

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return _check_password(value)

class TokenOut(BaseModel):
    token: str
    expires: datetime

class AuthTokensOut(BaseModel):
    access: TokenOut
    refresh: TokenOut


# ---- Role ----
class RoleCreate(RequestModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=255)

class RoleUpdate(RequestModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=255)

class RoleOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Permission ----
class PermissionCreate(RequestModel):
    resource: str = Field(..., min_length=3, max_length=50)
    action: List[Action] = Field(..., min_length=1)

    @field_validator("action")
    @classmethod
    def check_distinct(cls, value):
        return _check_distinct_actions(value)

class PermissionUpdate(RequestModel):
    resource: Optional[str] = Field(None, min_length=3, max_length=50)
    action: Optional[List[Action]] = Field(None, min_length=1)

    @field_validator("action")
    @classmethod
    def check_distinct(cls, value):
        return _check_distinct_actions(value)

class PermissionActions(RequestModel):
    actions: List[Action] = Field(..., min_length=1)

class PermissionOut(BaseModel):
    id: int
    resource: str
    action: List[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Role permission ----
class RolePermissionCreate(RequestModel):
    role: int = Field(..., ge=1, le=MAX_ID)
    permission: int = Field(..., ge=1, le=MAX_ID)

class RolePermissionUpdate(RequestModel):
    role: Optional[int] = Field(None, ge=1, le=MAX_ID)
    permission: Optional[int] = Field(None, ge=1, le=MAX_ID)

class RolePermissionOut(BaseModel):
    id: int
    role_id: int
    permission_id: int
    role: Optional[RoleOut] = None
    permission: Optional[PermissionOut] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- User ----
class UserCreate(RequestModel):
    name: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    role: int = Field(..., ge=1, le=MAX_ID)
    status: UserStatus = UserStatus.Pending
    is_email_verified: bool = False

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return _check_password(value)

class UserUpdate(RequestModel):
    name: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8, max_length=72)
    role: Optional[int] = Field(None, ge=1, le=MAX_ID)
    status: Optional[UserStatus] = None
    is_email_verified: Optional[bool] = None

    @field_validator("password")
    @classmethod
    def check_password(cls, value: Optional[str]) -> Optional[str]:
        return _check_password(value) if value is not None else value

class UserOut(BaseModel):
    id: int
    name: str
    email: str
    role_id: int
    role: Optional[RoleOut] = None
    status: UserStatus
    employee_id: Optional[int] = None
    is_email_verified: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class AuthOut(BaseModel):
    user: UserOut
    tokens: AuthTokensOut


# ---- Employee ----
class EmployeeCreate(RequestModel):
    user_id: int = Field(..., ge=1, le=MAX_ID)
    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str = Field(..., min_length=2, max_length=50)
    job_title: str = Field(..., min_length=1, max_length=100)
    phone_number: Optional[str] = Field(None, max_length=30)
    date_of_hire: Optional[date] = None

class EmployeeUpdate(RequestModel):
    user_id: Optional[int] = Field(None, ge=1, le=MAX_ID)
    first_name: Optional[str] = Field(None, min_length=2, max_length=50)
    last_name: Optional[str] = Field(None, min_length=2, max_length=50)
    job_title: Optional[str] = Field(None, min_length=1, max_length=100)
    phone_number: Optional[str] = Field(None, max_length=30)
    date_of_hire: Optional[date] = None

class EmployeeOut(BaseModel):
    id: int
    user_id: int
    first_name: str
    last_name: str
    job_title: str
    phone_number: Optional[str] = None
    date_of_hire: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Resource catalogue ----
class ResourceOut(BaseModel):
    name: str
    path: str
    methods: List[str]
    actions: List[str]
