"""
Pydantic schemas for authentication endpoints (register and login).

Pydantic validates incoming data automatically: if a required field is
missing or too long, FastAPI returns a 422 error naming the field before
our code even runs.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from wallet.schemas.user import Email, UserResponse, Username


class RegisterRequest(BaseModel):
    """Request body for POST /auth/register."""
    username: Username
    email: Email
    password: str = Field(min_length=6)


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""
    email: EmailStr
    password: str


class AuthResponse(BaseModel):
    """Response body for successful login/registration, contains the JWT."""
    token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserResponse
