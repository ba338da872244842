"""
Pydantic schemas for User-related requests and responses.

hashed_password is never included in any response schema.
"""

import uuid
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, EmailStr, Field

Username = Annotated[str, Field(min_length=1, max_length=64)]
Email = Annotated[EmailStr, Field(max_length=255)]


class UserResponse(BaseModel):
    """Public representation of a User (never includes password hash)."""
    id: uuid.UUID
    username: str
    email: EmailStr
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserUpdateRequest(BaseModel):
    """Request body for PUT /users/me. Omitted fields are left unchanged."""
    username: Username | None = None
    email: Email | None = None
