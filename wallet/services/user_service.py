"""
User service — profile reads, updates and soft deletion.

Deleting a user closes the wallet: the user and every live account they own
get the same deletion timestamp. Nothing is physically removed, so the
transaction history stays intact for the other side of each transfer.
"""

import logging
import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wallet.clock import utc_now
from wallet.exceptions import UserNotFoundError
from wallet.models.account import Account
from wallet.models.user import User
from wallet.services.auth_service import ensure_unique

logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    """
    Get a live user by id.

    Raises:
        UserNotFoundError: If the user doesn't exist or was deleted.
    """
    result = await db.execute(
        select(User).where(User.id == user_id).where(User.deleted_at.is_(None))
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise UserNotFoundError(user_id)
    return user


async def update_user(
    db: AsyncSession,
    user_id: uuid.UUID,
    username: str | None = None,
    email: str | None = None,
) -> User:
    """
    Change a user's username and/or email.

    Raises:
        UserNotFoundError: If the user doesn't exist.
        DuplicateUserError: If the new username/email belongs to someone else.
    """
    user = await get_user(db, user_id)
    await ensure_unique(db, username=username, email=email, exclude_user=user)

    if username is not None:
        user.username = username
    if email is not None:
        user.email = email

    await db.flush()
    return user


async def delete_user(
    db: AsyncSession,
    user_id: uuid.UUID,
    now: datetime | None = None,
) -> None:
    """Soft-delete a user and all of their live accounts."""
    now = now or utc_now()
    user = await get_user(db, user_id)

    result = await db.execute(
        select(Account)
        .where(Account.user_id == user_id)
        .where(Account.deleted_at.is_(None))
    )
    for account in result.scalars().all():
        account.mark_deleted(now)

    user.mark_deleted(now)
    await db.flush()
    logger.info("Closed wallet of user %s", user_id)
