"""
Authentication service — registration and login business logic.

Registration flow:
  1. Check that username and email are both unused
  2. Hash the password with Argon2id
  3. Create the User and its main Account ("Main Account", balance 0.00)
     in the same database transaction
  4. Return a JWT token so the user is immediately logged in

Login flow:
  1. Look up a live (not soft-deleted) user by email
  2. Verify password against stored hash
  3. Return a JWT token

Login returns the same error for "wrong password", "email not found" and
"user deleted" to prevent user enumeration.
"""

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wallet.exceptions import DuplicateUserError, InvalidCredentialsError
from wallet.models.account import Account
from wallet.models.components import CoreDetailsComponent
from wallet.models.user import User
from wallet.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

MAIN_ACCOUNT_NAME = "Main Account"


async def ensure_unique(
    db: AsyncSession,
    username: str | None = None,
    email: str | None = None,
    exclude_user: User | None = None,
) -> None:
    """
    Raise DuplicateUserError if `username` or `email` belongs to another user.

    Soft-deleted users still hold their username and email (the columns are
    UNIQUE), so they are included in the check.
    """
    checks = [("username", User.username, username), ("email", User.email, email)]
    for field, column, value in checks:
        if value is None:
            continue
        query = select(User.id).where(column == value)
        if exclude_user is not None:
            query = query.where(User.id != exclude_user.id)
        result = await db.execute(query)
        if result.first() is not None:
            raise DuplicateUserError(field, value)


async def register(
    db: AsyncSession,
    username: str,
    email: str,
    password: str,
) -> tuple[User, str, datetime]:
    """
    Register a new user together with their main account.

    Returns:
        Tuple of (User instance, JWT token string, token expiry).

    Raises:
        DuplicateUserError: If the username or email is already registered.
    """
    await ensure_unique(db, username=username, email=email)

    user = User(
        username=username,
        email=email,
        hashed_password=hash_password(password),
    )
    db.add(user)
    # Flush to get user.id assigned (needed for the account FK below)
    await db.flush()

    main_account = Account(user_id=user.id, is_main=True)
    main_account.core_details = CoreDetailsComponent(
        name=MAIN_ACCOUNT_NAME,
        balance=Decimal("0.00"),
    )
    db.add(main_account)
    await db.flush()

    logger.info("Registered user %s with main account %s", user.id, main_account.id)

    token, expires_at = create_access_token(data={"sub": str(user.id)})
    return user, token, expires_at


async def login(
    db: AsyncSession,
    email: str,
    password: str,
) -> tuple[User, str, datetime]:
    """
    Authenticate a user and return a JWT token.

    Raises:
        InvalidCredentialsError: If the email is unknown, the password is
                                 wrong, or the user has been deleted.
    """
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    # Same error for every case, so emails can't be enumerated
    if user is None or user.is_deleted:
        raise InvalidCredentialsError()

    if not verify_password(password, user.hashed_password):
        raise InvalidCredentialsError()

    token, expires_at = create_access_token(data={"sub": str(user.id)})
    return user, token, expires_at
