"""
Transactions router — move money and read the ledger.

Endpoints (scoped to the authenticated user's accounts):
  POST   /transactions                      — Create a transaction
  GET    /transactions                      — List transactions, newest first
  GET    /transactions/{id}                 — Get one transaction
  DELETE /transactions/{id}                 — Soft-delete a transaction
  GET    /accounts/{account_id}/transactions — List one account's transactions

Every response carries `timestamp` (UTC) and `local_timestamp` (the same
instant in the user's configured timezone). Balance snapshots are only filled
in for the sides that are your own accounts.
"""

import uuid
from collections.abc import Collection
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from wallet.clock import Clock, get_clock
from wallet.database import get_db
from wallet.dependencies import get_current_user
from wallet.models.transaction import Transaction
from wallet.models.user import User
from wallet.schemas.transaction import TransactionCreateRequest, TransactionResponse
from wallet.services import account_service, timezone_service, transaction_service

router = APIRouter()
account_router = APIRouter()


def _localized(
    txn: Transaction, zone: ZoneInfo, own_account_ids: Collection[uuid.UUID]
) -> TransactionResponse:
    response = TransactionResponse.model_validate(txn)
    # Balance snapshots are only shown for the caller's own side.
    if txn.source_account_id not in own_account_ids:
        response.source_balance_before = None
    if txn.destination_account_id not in own_account_ids:
        response.destination_balance_before = None
    response.local_timestamp = timezone_service.utc_to_zone(txn.timestamp, zone)
    return response


@router.post(
    "",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a transaction",
)
async def create_transaction(
    request: TransactionCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Move money between a source and a destination.

    - **ACCOUNT** sides take `*_account_id`, **IBAN** sides take `*_iban`,
      **SYSTEM** / **SPEND** sides take an optional `*_name`
    - The source account must be yours; external deposits must land in
      one of your accounts
    - Debits are rejected with 422 for insufficient funds or when the
      source account's spending limit would be exceeded

    Amounts are decimals with at most two fractional digits.
    """
    txn = await transaction_service.create_transaction(
        db=db,
        user_id=user.id,
        source_type=request.source_type,
        source_account_id=request.source_account_id,
        source_iban=request.source_iban,
        source_name=request.source_name,
        destination_type=request.destination_type,
        destination_account_id=request.destination_account_id,
        destination_iban=request.destination_iban,
        destination_name=request.destination_name,
        amount=request.amount,
        description=request.description,
        timestamp=request.timestamp,
        now=clock(),
    )
    zone = await timezone_service.get_timezone_info(db, user.id)
    own_account_ids = await account_service.get_account_ids(db, user.id)
    return _localized(txn, zone, own_account_ids)


@router.get(
    "",
    response_model=list[TransactionResponse],
    summary="List your transactions",
)
async def list_transactions(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    List transactions touching any of your accounts, newest first.

    Use `limit` and `offset` for pagination.
    """
    txns = await transaction_service.get_transactions(db, user.id, limit=limit, offset=offset)
    zone = await timezone_service.get_timezone_info(db, user.id)
    own_account_ids = set(await account_service.get_account_ids(db, user.id))
    return [_localized(txn, zone, own_account_ids) for txn in txns]


@router.get(
    "/{transaction_id}",
    response_model=TransactionResponse,
    summary="Get a transaction",
)
async def get_transaction(
    transaction_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    txn = await transaction_service.get_transaction(db, transaction_id, user.id)
    zone = await timezone_service.get_timezone_info(db, user.id)
    own_account_ids = await account_service.get_account_ids(db, user.id)
    return _localized(txn, zone, own_account_ids)


@router.delete(
    "/{transaction_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a transaction",
)
async def delete_transaction(
    transaction_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Soft-delete a transaction. It disappears from listings; balances are
    not changed.
    """
    await transaction_service.delete_transaction(db, transaction_id, user.id, now=clock())


@account_router.get(
    "/{account_id}/transactions",
    response_model=list[TransactionResponse],
    summary="List transactions for an account",
)
async def list_account_transactions(
    account_id: uuid.UUID,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    txns = await transaction_service.get_account_transactions(
        db, account_id, user.id, limit=limit, offset=offset
    )
    zone = await timezone_service.get_timezone_info(db, user.id)
    own_account_ids = set(await account_service.get_account_ids(db, user.id))
    return [_localized(txn, zone, own_account_ids) for txn in txns]
