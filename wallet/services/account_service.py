"""
Account service — the account aggregate and its components.

This module handles:
  - Account creation with CoreDetails and any optional components
  - Account retrieval (single or list, scoped to the owner)
  - Account updates and soft deletion (main accounts are protected)
  - Attaching, changing and detaching components one at a time

Ownership enforcement:
  Every function takes the caller's `user_id` and refuses to touch accounts
  that belong to someone else (UnauthorizedAccessError). Soft-deleted
  accounts behave as if they don't exist (AccountNotFoundError).

Main account rules:
  - A user has at most one main account (MainAccountError on a second one)
  - A main account can't be renamed, demoted or deleted

Components:
  Changing an attached component updates it in place. Detaching assigns
  None, and the delete-orphan cascade removes the row on flush.
"""

import logging
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wallet.clock import utc_now
from wallet.exceptions import (
    AccountNotFoundError,
    ActivationNotAllowedError,
    MainAccountError,
    UnauthorizedAccessError,
)
from wallet.models.account import Account
from wallet.models.components import (
    ActiveAccountComponent,
    CoreDetailsComponent,
    SavingGoalComponent,
    SpendingLimitComponent,
)
from wallet.schemas.account import (
    ActiveAccountCreate,
    CoreDetailsCreate,
    SavingGoalCreate,
    SpendingLimitCreate,
)
from wallet.services.activation import can_activate

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

async def load_account(
    db: AsyncSession,
    account_id: uuid.UUID,
    for_update: bool = False,
) -> Account:
    """
    Load a live account with all of its components.

    Args:
        for_update: Lock the row (SELECT ... FOR UPDATE) and refresh any
                    copy already in the session. No-op lock on SQLite.

    Raises:
        AccountNotFoundError: If the account doesn't exist or was deleted.
    """
    query = (
        select(Account)
        .where(Account.id == account_id)
        .where(Account.deleted_at.is_(None))
    )
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)

    result = await db.execute(query)
    account = result.scalar_one_or_none()
    if account is None:
        raise AccountNotFoundError(account_id)
    return account


async def get_account(
    db: AsyncSession,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
    for_update: bool = False,
) -> Account:
    """
    Get a single account, verifying ownership.

    Raises:
        AccountNotFoundError: If the account doesn't exist.
        UnauthorizedAccessError: If the account belongs to someone else.
    """
    account = await load_account(db, account_id, for_update=for_update)
    if account.user_id != user_id:
        raise UnauthorizedAccessError("You do not have access to this account")
    return account


async def get_accounts(db: AsyncSession, user_id: uuid.UUID) -> list[Account]:
    """List the user's live accounts, oldest first."""
    result = await db.execute(
        select(Account)
        .where(Account.user_id == user_id)
        .where(Account.deleted_at.is_(None))
        .order_by(Account.created_at)
    )
    return list(result.scalars().all())


async def get_account_ids(db: AsyncSession, user_id: uuid.UUID) -> list[uuid.UUID]:
    """Ids of every account the user has ever owned, deleted ones included."""
    result = await db.execute(select(Account.id).where(Account.user_id == user_id))
    return list(result.scalars().all())


async def _get_main_account(
    db: AsyncSession,
    user_id: uuid.UUID,
) -> Account | None:
    result = await db.execute(
        select(Account)
        .where(Account.user_id == user_id)
        .where(Account.is_main.is_(True))
        .where(Account.deleted_at.is_(None))
    )
    return result.scalars().first()


# ---------------------------------------------------------------------------
# Aggregate lifecycle
# ---------------------------------------------------------------------------

async def create_account(
    db: AsyncSession,
    user_id: uuid.UUID,
    core_details: CoreDetailsCreate,
    is_main: bool = False,
    active_account: ActiveAccountCreate | None = None,
    spending_limit: SpendingLimitCreate | None = None,
    saving_goal: SavingGoalCreate | None = None,
    now: datetime | None = None,
) -> Account:
    """
    Create an account with CoreDetails and any optional components.

    Raises:
        MainAccountError: If is_main is set and the user already has one.
        ActivationNotAllowedError: If an IBAN is given but the activation
                                   policy rejects the account.
    """
    now = now or utc_now()

    if is_main and await _get_main_account(db, user_id) is not None:
        raise MainAccountError(
            "User already has a main account. Only one main account is allowed per user."
        )

    account = Account(id=uuid.uuid4(), user_id=user_id, is_main=is_main)
    account.core_details = CoreDetailsComponent(
        name=core_details.name,
        balance=core_details.balance,
    )

    # Absent components are assigned None explicitly so the new aggregate is
    # fully loaded and never lazy-loads after the flush
    account.active_account = None
    if active_account is not None:
        if not can_activate(account):
            raise ActivationNotAllowedError(account.id)
        account.active_account = ActiveAccountComponent(
            iban=active_account.iban,
            activated_at=now,
        )

    account.spending_limit = (
        _new_spending_limit(spending_limit, now) if spending_limit is not None else None
    )

    account.saving_goal = None
    if saving_goal is not None:
        account.saving_goal = SavingGoalComponent(
            goal_name=saving_goal.goal_name,
            target_amount=saving_goal.target_amount,
        )

    db.add(account)
    await db.flush()
    logger.info("Created account %s for user %s", account.id, user_id)
    return account


async def update_account(
    db: AsyncSession,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
    is_main: bool | None = None,
    name: str | None = None,
) -> Account:
    """
    Update the main flag and/or display name of a non-main account.

    Raises:
        MainAccountError: If the account is the main account, or promoting
                          it would give the user a second main account.
    """
    account = await get_account(db, account_id, user_id)

    if account.is_main:
        raise MainAccountError("Main accounts cannot be modified.")

    if is_main:
        existing = await _get_main_account(db, user_id)
        if existing is not None and existing.id != account.id:
            raise MainAccountError(
                "User already has a main account. Only one main account is allowed per user."
            )
        account.is_main = True

    if name is not None:
        _apply_core_details_name(account, name)

    account.updated_at = utc_now()
    await db.flush()
    return account


async def delete_account(
    db: AsyncSession,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
    now: datetime | None = None,
) -> None:
    """
    Soft-delete a non-main account.

    Raises:
        MainAccountError: If the account is the user's main account.
    """
    account = await get_account(db, account_id, user_id)
    if account.is_main:
        raise MainAccountError("Main accounts cannot be deleted.")

    account.mark_deleted(now)
    await db.flush()
    logger.info("Deleted account %s", account_id)


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------

def _apply_core_details_name(account: Account, name: str) -> CoreDetailsComponent:
    if account.core_details is None:
        account.core_details = CoreDetailsComponent(name=name, balance=Decimal("0.00"))
    else:
        account.core_details.name = name
    return account.core_details


def _new_spending_limit(request: SpendingLimitCreate, now: datetime) -> SpendingLimitComponent:
    return SpendingLimitComponent(
        limit_amount=request.limit_amount,
        timeframe=request.timeframe,
        current_spending=request.current_spending,
        period_start_date=request.period_start_date or now,
    )


async def set_core_details_name(
    db: AsyncSession,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
    name: str,
) -> Account:
    """Rename the account, attaching CoreDetails (balance 0.00) if missing."""
    account = await get_account(db, account_id, user_id)
    _apply_core_details_name(account, name)
    account.updated_at = utc_now()
    await db.flush()
    return account


async def activate_account(
    db: AsyncSession,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
    iban: str,
    now: datetime | None = None,
) -> Account:
    """
    Attach (or change) the account's IBAN.

    The activation instant is set on first activation and kept when only the
    IBAN changes.

    Raises:
        ActivationNotAllowedError: If the activation policy rejects the account.
    """
    now = now or utc_now()
    account = await get_account(db, account_id, user_id)

    if not can_activate(account):
        raise ActivationNotAllowedError(account.id)

    if account.active_account is None:
        account.active_account = ActiveAccountComponent(iban=iban, activated_at=now)
        logger.info("Activated account %s", account.id)
    else:
        account.active_account.iban = iban

    account.updated_at = now
    await db.flush()
    return account


async def deactivate_account(
    db: AsyncSession,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
) -> Account:
    account = await get_account(db, account_id, user_id)
    account.active_account = None
    account.updated_at = utc_now()
    await db.flush()
    return account


async def set_spending_limit(
    db: AsyncSession,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
    spending_limit: SpendingLimitCreate,
    now: datetime | None = None,
) -> Account:
    """
    Attach a spending limit or replace the settings of the existing one.

    Replacing keeps the running counter and period unless the request
    supplies a new period start, in which case the counter starts over
    from `current_spending`.
    """
    now = now or utc_now()
    account = await get_account(db, account_id, user_id, for_update=True)
    existing = account.spending_limit

    if existing is None:
        account.spending_limit = _new_spending_limit(spending_limit, now)
    else:
        existing.limit_amount = spending_limit.limit_amount
        existing.timeframe = spending_limit.timeframe
        if spending_limit.period_start_date is not None:
            existing.period_start_date = spending_limit.period_start_date
            existing.current_spending = spending_limit.current_spending

    account.updated_at = now
    await db.flush()
    return account


async def remove_spending_limit(
    db: AsyncSession,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
) -> Account:
    account = await get_account(db, account_id, user_id, for_update=True)
    account.spending_limit = None
    account.updated_at = utc_now()
    await db.flush()
    return account


async def set_saving_goal(
    db: AsyncSession,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
    saving_goal: SavingGoalCreate,
) -> Account:
    account = await get_account(db, account_id, user_id)

    if account.saving_goal is None:
        account.saving_goal = SavingGoalComponent(
            goal_name=saving_goal.goal_name,
            target_amount=saving_goal.target_amount,
        )
    else:
        account.saving_goal.goal_name = saving_goal.goal_name
        account.saving_goal.target_amount = saving_goal.target_amount

    account.updated_at = utc_now()
    await db.flush()
    return account


async def remove_saving_goal(
    db: AsyncSession,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
) -> Account:
    account = await get_account(db, account_id, user_id)
    account.saving_goal = None
    account.updated_at = utc_now()
    await db.flush()
    return account
