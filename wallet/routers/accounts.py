"""
Accounts router — accounts and their components.

All endpoints require a JWT and are scoped to the caller's own accounts.

Aggregate:
  POST   /accounts                    — Create an account with components
  GET    /accounts                    — List own accounts
  GET    /accounts/{id}               — Get one account
  PUT    /accounts/{id}               — Change main flag / name (non-main only)
  DELETE /accounts/{id}               — Soft-delete (non-main only)

Components:
  PUT    /accounts/{id}/core-details           — Rename
  PUT    /accounts/{id}/activation             — Attach or change the IBAN
  DELETE /accounts/{id}/activation             — Detach the IBAN
  PUT    /accounts/{id}/spending-limit         — Attach or change the limit
  DELETE /accounts/{id}/spending-limit         — Remove the limit
  POST   /accounts/{id}/spending-limit/evaluate — Dry-run a debit
  PUT    /accounts/{id}/saving-goal            — Attach or change the goal
  DELETE /accounts/{id}/saving-goal            — Remove the goal

Transactions of a single account are listed by the transactions router at
GET /accounts/{id}/transactions.
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from wallet.clock import Clock, get_clock
from wallet.database import get_db
from wallet.dependencies import get_current_user
from wallet.models.user import User
from wallet.schemas.account import (
    AccountCreateRequest,
    AccountResponse,
    AccountUpdateRequest,
    ActiveAccountCreate,
    CoreDetailsUpdate,
    SavingGoalCreate,
    SpendingCheckRequest,
    SpendingCheckResponse,
    SpendingLimitCreate,
)
from wallet.services import account_service, spending_limit

router = APIRouter()


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
async def create_account(
    request: AccountCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Create an account. `core_details` is required; `active_account`,
    `spending_limit` and `saving_goal` are optional.

    Returns 409 when `is_main` is set and the user already has a main account.
    """
    return await account_service.create_account(
        db=db,
        user_id=user.id,
        core_details=request.core_details,
        is_main=request.is_main,
        active_account=request.active_account,
        spending_limit=request.spending_limit,
        saving_goal=request.saving_goal,
        now=clock(),
    )


@router.get("", response_model=list[AccountResponse], summary="List your accounts")
async def list_accounts(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await account_service.get_accounts(db, user.id)


@router.get("/{account_id}", response_model=AccountResponse, summary="Get account details")
async def get_account(
    account_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Returns 403 if the account belongs to a different user, or 404 if it
    doesn't exist or was deleted.
    """
    return await account_service.get_account(db, account_id, user.id)


@router.put("/{account_id}", response_model=AccountResponse, summary="Update an account")
async def update_account(
    account_id: uuid.UUID,
    request: AccountUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await account_service.update_account(
        db, account_id, user.id, is_main=request.is_main, name=request.name
    )


@router.delete(
    "/{account_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an account",
)
async def delete_account(
    account_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Soft-delete an account. The main account can't be deleted (409)."""
    await account_service.delete_account(db, account_id, user.id, now=clock())


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------

@router.put(
    "/{account_id}/core-details",
    response_model=AccountResponse,
    summary="Rename an account",
)
async def update_core_details(
    account_id: uuid.UUID,
    request: CoreDetailsUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await account_service.set_core_details_name(db, account_id, user.id, request.name)


@router.put(
    "/{account_id}/activation",
    response_model=AccountResponse,
    summary="Activate an account (attach an IBAN)",
)
async def activate_account(
    account_id: uuid.UUID,
    request: ActiveAccountCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    return await account_service.activate_account(
        db, account_id, user.id, request.iban, now=clock()
    )


@router.delete(
    "/{account_id}/activation",
    response_model=AccountResponse,
    summary="Deactivate an account",
)
async def deactivate_account(
    account_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await account_service.deactivate_account(db, account_id, user.id)


@router.put(
    "/{account_id}/spending-limit",
    response_model=AccountResponse,
    summary="Set a spending limit",
)
async def set_spending_limit(
    account_id: uuid.UUID,
    request: SpendingLimitCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Attach a limit, or change the amount/timeframe of the existing one.
    The running counter is kept unless `period_start_date` is supplied.
    """
    return await account_service.set_spending_limit(
        db, account_id, user.id, request, now=clock()
    )


@router.delete(
    "/{account_id}/spending-limit",
    response_model=AccountResponse,
    summary="Remove the spending limit",
)
async def remove_spending_limit(
    account_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await account_service.remove_spending_limit(db, account_id, user.id)


@router.post(
    "/{account_id}/spending-limit/evaluate",
    response_model=SpendingCheckResponse,
    summary="Check whether a debit would be admitted",
)
async def evaluate_spending(
    account_id: uuid.UUID,
    request: SpendingCheckRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Dry run of the spending limit for a prospective debit of `amount`.
    Nothing is recorded: the counter and period are left untouched.
    An account without a limit admits every amount.
    """
    account = await account_service.get_account(db, account_id, user.id)
    if account.spending_limit is None:
        return SpendingCheckResponse(
            account_id=account.id,
            amount=request.amount,
            admitted=True,
            has_limit=False,
        )

    result = spending_limit.preview(account.spending_limit, request.amount, now=clock())
    return SpendingCheckResponse(
        account_id=account.id,
        amount=request.amount,
        admitted=result.admitted,
        has_limit=True,
        limit_amount=result.limit_amount,
        current_spending=result.current_spending,
        remaining=result.remaining,
        period_start_date=result.period_start_date,
        period_end_date=result.period_end_date,
    )


@router.put(
    "/{account_id}/saving-goal",
    response_model=AccountResponse,
    summary="Set a saving goal",
)
async def set_saving_goal(
    account_id: uuid.UUID,
    request: SavingGoalCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await account_service.set_saving_goal(db, account_id, user.id, request)


@router.delete(
    "/{account_id}/saving-goal",
    response_model=AccountResponse,
    summary="Remove the saving goal",
)
async def remove_saving_goal(
    account_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await account_service.remove_saving_goal(db, account_id, user.id)
