"""
Users router — the authenticated user's own profile.

Endpoints:
  GET    /users/me  — Profile
  PUT    /users/me  — Change username and/or email
  DELETE /users/me  — Close the wallet (soft-deletes the user and accounts)
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from wallet.clock import Clock, get_clock
from wallet.database import get_db
from wallet.dependencies import get_current_user
from wallet.models.user import User
from wallet.schemas.user import UserResponse, UserUpdateRequest
from wallet.services import user_service

router = APIRouter()


@router.get("/me", response_model=UserResponse, summary="Get your profile")
async def get_me(user: User = Depends(get_current_user)):
    return user


@router.put("/me", response_model=UserResponse, summary="Update your profile")
async def update_me(
    request: UserUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Change the username and/or email. Omitted fields are left unchanged.
    Returns 409 if the new value is already taken by another user.
    """
    return await user_service.update_user(
        db, user.id, username=request.username, email=request.email
    )


@router.delete(
    "/me",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete your user",
)
async def delete_me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Soft-delete the user and every account they own. The token stops
    working immediately; transaction history is preserved.
    """
    await user_service.delete_user(db, user.id, now=clock())
