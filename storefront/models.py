# storefront/models.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for API payloads whose JSON keys are camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class User(BaseModel):
    id: str
    email: str
    password_hash: str
    salt: str
    role: str = "user"


class Principal(BaseModel):
    """The authenticated caller, as carried in the access token."""

    id: str
    email: str
    role: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class LoginResponse(BaseModel):
    message: str = "Login successful"
    token: str
    user: Principal


class HealthResponse(BaseModel):
    status: str = "OK"
    timestamp: datetime


class CacheFlushResponse(BaseModel):
    message: str = "Cache flushed successfully"
    flushed: int
    timestamp: datetime
