"""
Authentication router — registration, login and the current identity.

Register and login are the only public (unauthenticated) endpoints in the
API. Everything else requires a valid JWT token.

Endpoints:
  POST /auth/register  — Create a user (plus main account) and get a token
  POST /auth/login     — Authenticate and get a token
  GET  /auth/me        — The user the token belongs to

Plaintext passwords exist only in memory during request processing; they
are hashed before any database operation and never logged.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from wallet.database import get_db
from wallet.dependencies import get_current_user
from wallet.models.user import User
from wallet.schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from wallet.schemas.user import UserResponse
from wallet.services import auth_service

router = APIRouter()


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a new wallet user.

    Creates the User and its main account ("Main Account", balance 0.00) in
    a single atomic transaction, and returns a JWT so the user is logged in
    immediately.

    - **username**: 1-64 characters, unique
    - **email**: Valid email, unique
    - **password**: Minimum 6 characters
    """
    user, token, expires_at = await auth_service.register(
        db=db,
        username=request.username,
        email=request.email,
        password=request.password,
    )
    return AuthResponse(
        token=token, expires_at=expires_at, user=UserResponse.model_validate(user)
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Authenticate and get a token",
)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate with email and password.

    Returns a JWT bearer token that must be included in the Authorization
    header for all subsequent requests:

        Authorization: Bearer <token>
    """
    user, token, expires_at = await auth_service.login(
        db=db,
        email=request.email,
        password=request.password,
    )
    return AuthResponse(
        token=token, expires_at=expires_at, user=UserResponse.model_validate(user)
    )


@router.get("/me", response_model=UserResponse, summary="Current user")
async def me(user: User = Depends(get_current_user)):
    return user
