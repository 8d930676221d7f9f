"""Pydantic schemas for the register/login/me endpoints.

Learn: Request fields are Optional on purpose. An absent or empty
email/password is the core's MissingField outcome (400 with a stable
message), not a framework-level 422. Response models use camelCase
aliases to keep the wire format clients already expect (userId,
issuedAt, ...).
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class Credentials(BaseModel):
    """Body of POST /login.

    No length limit here: an overlong email is just an unknown one.
    """

    email: Optional[str] = None
    password: Optional[str] = None


class Registration(Credentials):
    """Body of POST /register. The email must fit the users.email column."""

    email: Optional[str] = Field(None, max_length=255)


class MessageResponse(BaseModel):
    message: str


class RegisterResponse(BaseModel):
    message: str = "User registered successfully"
    user_id: uuid.UUID = Field(serialization_alias="userId")


class UserRead(BaseModel):
    id: uuid.UUID
    email: str


class LoginResponse(BaseModel):
    message: str = "Login successful"
    token: str
    user: UserRead


class MeResponse(BaseModel):
    id: str
    email: str
    issued_at: datetime = Field(serialization_alias="issuedAt")
    expires_at: datetime = Field(serialization_alias="expiresAt")
