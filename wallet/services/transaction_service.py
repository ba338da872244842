"""
Transaction service — applies money movements to account balances.

THIS IS WHERE BALANCES CHANGE. CoreDetails.balance and
SpendingLimitComponent.current_spending are only ever modified here, inside
the caller's database transaction (get_db commits or rolls back as a unit).

create_transaction() runs these steps in order:
  1. Validate the source/destination descriptors
  2. Lock every involved account, in sorted id order
  3. Check ownership, CoreDetails presence and IBAN activation
  4. Check the source balance (InsufficientFundsError)
  5. Evaluate the source's spending limit (SpendingLimitExceededError)
  6. Snapshot balances, apply debit/credit, insert the ledger entry

Locking:
  Accounts are selected with FOR UPDATE before the spending limit is rolled
  and checked, so two concurrent debits against one account are serialized
  and can't both pass admission against a stale counter. Locks are always
  taken in sorted id order so opposite-direction transfers can't deadlock.
  On SQLite the lock is a no-op; its single-writer transactions give the
  same isolation for a single process.

Descriptor rules (exactly one field per side, matching the type):
  ACCOUNT -> *_account_id     IBAN -> *_iban     SYSTEM / SPEND -> *_name

Ownership:
  - An ACCOUNT source must belong to the caller; its destination may be
    anyone's account (transfers between users).
  - When money comes from outside (IBAN or SYSTEM), the destination
    account must belong to the caller.
  - At least one side must be an account.
"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from wallet.clock import utc_now
from wallet.exceptions import (
    InsufficientFundsError,
    SpendingLimitExceededError,
    TransactionNotFoundError,
    UnauthorizedAccessError,
    ValidationError,
)
from wallet.models.account import Account
from wallet.models.transaction import DestinationType, SourceType, Transaction
from wallet.services import account_service, spending_limit

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def validate_descriptors(
    source_type: SourceType,
    source_account_id: uuid.UUID | None,
    source_iban: str | None,
    source_name: str | None,
    destination_type: DestinationType,
    destination_account_id: uuid.UUID | None,
    destination_iban: str | None,
    destination_name: str | None,
) -> None:
    """
    Check that each descriptor populates exactly the field its type calls for.

    Raises:
        ValidationError: Naming the first offending field.
    """
    sides = [
        (
            "source",
            source_type.value,
            {
                "account_id": source_account_id,
                "iban": source_iban or None,
                "name": source_name or None,
            },
            {SourceType.ACCOUNT.value: "account_id", SourceType.IBAN.value: "iban",
             SourceType.SYSTEM.value: "name"},
        ),
        (
            "destination",
            destination_type.value,
            {
                "account_id": destination_account_id,
                "iban": destination_iban or None,
                "name": destination_name or None,
            },
            {DestinationType.ACCOUNT.value: "account_id", DestinationType.IBAN.value: "iban",
             DestinationType.SPEND.value: "name"},
        ),
    ]

    for side, type_value, fields, required_by_type in sides:
        required = required_by_type[type_value]
        # Names on SYSTEM/SPEND are optional labels, defaulted by the caller
        if required != "name" and fields[required] is None:
            raise ValidationError(
                f"{side}_{required}",
                f"{side}_{required} is required when {side}_type is {type_value}",
            )
        for field, value in fields.items():
            if field != required and value is not None:
                raise ValidationError(
                    f"{side}_{field}",
                    f"{side}_{field} must be empty when {side}_type is {type_value}",
                )

    if source_type != SourceType.ACCOUNT and destination_type != DestinationType.ACCOUNT:
        raise ValidationError("source_type", "A transaction must involve at least one account")

    if (
        source_type == SourceType.ACCOUNT
        and destination_type == DestinationType.ACCOUNT
        and source_account_id == destination_account_id
    ):
        raise ValidationError(
            "destination_account_id", "Cannot transfer money to the same account"
        )


async def _lock_accounts(
    db: AsyncSession,
    account_ids: list[uuid.UUID],
) -> dict[uuid.UUID, Account]:
    """Lock and load the given accounts in a consistent (sorted) order."""
    locked = {}
    for account_id in sorted(account_ids):
        locked[account_id] = await account_service.load_account(db, account_id, for_update=True)
    return locked


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps from clients are taken as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _require_balance_holder(account: Account, field: str) -> None:
    if account.core_details is None:
        raise ValidationError(field, "Account does not have core details configured")


def _require_active(account: Account, field: str) -> None:
    if account.active_account is None:
        raise ValidationError(field, "Account must be activated to transact with an IBAN")


async def create_transaction(
    db: AsyncSession,
    user_id: uuid.UUID,
    source_type: SourceType,
    destination_type: DestinationType,
    amount: Decimal,
    source_account_id: uuid.UUID | None = None,
    source_iban: str | None = None,
    source_name: str | None = None,
    destination_account_id: uuid.UUID | None = None,
    destination_iban: str | None = None,
    destination_name: str | None = None,
    description: str = "",
    timestamp: datetime | None = None,
    now: datetime | None = None,
) -> Transaction:
    """
    Apply a movement of money and record it in the ledger.

    Args:
        db: Database session.
        user_id: The authenticated caller.
        amount: Positive amount, at most two fractional digits.
        timestamp: When the money moved; defaults to `now`.
        now: Evaluation instant for the spending limit; defaults to UTC now.

    Returns:
        The created Transaction.

    Raises:
        ValidationError: Bad descriptors, a non-positive or sub-cent amount,
                         or an account missing CoreDetails / activation.
        AccountNotFoundError: A referenced account doesn't exist.
        UnauthorizedAccessError: The caller doesn't own the debited account
                                 (or the credited one for external deposits).
        InsufficientFundsError: The source balance is lower than the amount.
        SpendingLimitExceededError: The source's spending limit rejects it.
    """
    now = now or utc_now()

    if amount <= 0:
        raise ValidationError("amount", "Transaction amount must be greater than zero")
    if amount != amount.quantize(CENT):
        raise ValidationError("amount", "Transaction amount has more than two decimal places")
    amount = amount.quantize(CENT)

    validate_descriptors(
        source_type, source_account_id, source_iban, source_name,
        destination_type, destination_account_id, destination_iban, destination_name,
    )
    if source_type == SourceType.SYSTEM:
        source_name = source_name or "System"
    if destination_type == DestinationType.SPEND:
        destination_name = destination_name or "Spend"

    involved = [i for i in (source_account_id, destination_account_id) if i is not None]
    accounts = await _lock_accounts(db, involved)
    source = accounts.get(source_account_id) if source_account_id else None
    destination = accounts.get(destination_account_id) if destination_account_id else None

    if source is not None:
        if source.user_id != user_id:
            raise UnauthorizedAccessError("You do not have access to the source account")
        _require_balance_holder(source, "source_account_id")
        if destination_type == DestinationType.IBAN:
            _require_active(source, "source_account_id")

    if destination is not None:
        if source is None and destination.user_id != user_id:
            raise UnauthorizedAccessError("You do not have access to the destination account")
        _require_balance_holder(destination, "destination_account_id")
        if source_type == SourceType.IBAN:
            _require_active(destination, "destination_account_id")

    if source is not None:
        if source.core_details.balance < amount:
            raise InsufficientFundsError(
                account_id=source.id,
                requested=amount,
                available=source.core_details.balance,
            )

        evaluation = spending_limit.evaluate(source, amount, now)
        if not evaluation.admitted:
            limit = evaluation.component
            logger.info(
                "Spending limit rejected %s from account %s (%s of %s spent)",
                amount, source.id, limit.current_spending, limit.limit_amount,
            )
            raise SpendingLimitExceededError(
                account_id=source.id,
                requested=amount,
                limit_amount=limit.limit_amount,
                current_spending=limit.current_spending,
            )

    txn = Transaction(
        source_type=source_type,
        source_account_id=source_account_id,
        source_iban=source_iban,
        source_name=source_name,
        destination_type=destination_type,
        destination_account_id=destination_account_id,
        destination_iban=destination_iban,
        destination_name=destination_name,
        amount=amount,
        description=description,
        timestamp=_as_utc(timestamp) if timestamp else now,
        source_balance_before=source.core_details.balance if source else None,
        destination_balance_before=destination.core_details.balance if destination else None,
    )

    if source is not None:
        source.core_details.balance = source.core_details.balance - amount
        source.updated_at = now
    if destination is not None:
        destination.core_details.balance = destination.core_details.balance + amount
        destination.updated_at = now

    db.add(txn)
    await db.flush()
    logger.info(
        "Transaction %s: %s %s -> %s", txn.id, amount, source_type.value, destination_type.value
    )
    return txn


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def _touching(account_ids: list[uuid.UUID]):
    return or_(
        Transaction.source_account_id.in_(account_ids),
        Transaction.destination_account_id.in_(account_ids),
    )


async def get_transactions(
    db: AsyncSession,
    user_id: uuid.UUID,
    limit: int = 50,
    offset: int = 0,
) -> list[Transaction]:
    """List live transactions touching any of the user's accounts, newest first."""
    account_ids = await account_service.get_account_ids(db, user_id)
    if not account_ids:
        return []

    result = await db.execute(
        select(Transaction)
        .where(_touching(account_ids))
        .where(Transaction.deleted_at.is_(None))
        .order_by(Transaction.timestamp.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def get_account_transactions(
    db: AsyncSession,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
    limit: int = 50,
    offset: int = 0,
) -> list[Transaction]:
    """List live transactions for one of the user's accounts, newest first."""
    await account_service.get_account(db, account_id, user_id)

    result = await db.execute(
        select(Transaction)
        .where(_touching([account_id]))
        .where(Transaction.deleted_at.is_(None))
        .order_by(Transaction.timestamp.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def get_transaction(
    db: AsyncSession,
    transaction_id: uuid.UUID,
    user_id: uuid.UUID,
) -> Transaction:
    """
    Get a single live transaction that touches one of the user's accounts.

    Raises:
        TransactionNotFoundError: If it doesn't exist, was deleted, or
                                  doesn't involve the user's accounts.
    """
    account_ids = await account_service.get_account_ids(db, user_id)

    result = await db.execute(
        select(Transaction)
        .where(Transaction.id == transaction_id)
        .where(Transaction.deleted_at.is_(None))
    )
    txn = result.scalar_one_or_none()

    if txn is None or (
        txn.source_account_id not in account_ids
        and txn.destination_account_id not in account_ids
    ):
        raise TransactionNotFoundError(transaction_id)
    return txn


async def delete_transaction(
    db: AsyncSession,
    transaction_id: uuid.UUID,
    user_id: uuid.UUID,
    now: datetime | None = None,
) -> None:
    """
    Soft-delete a transaction. Balances are not touched: to undo the money
    movement, create an offsetting transaction.

    Only the party that sent the money may delete the entry: the owner of
    the source account, or of the destination when the money came from an
    IBAN or SYSTEM source.

    Raises:
        TransactionNotFoundError: If the user can't see the transaction.
        UnauthorizedAccessError: If the user is only the receiving party.
    """
    txn = await get_transaction(db, transaction_id, user_id)
    account_ids = await account_service.get_account_ids(db, user_id)
    if txn.source_type == SourceType.ACCOUNT:
        owning_account_id = txn.source_account_id
    else:
        owning_account_id = txn.destination_account_id
    if owning_account_id not in account_ids:
        raise UnauthorizedAccessError("Only the sender can delete this transaction")

    txn.mark_deleted(now)
    await db.flush()
    logger.info("Deleted transaction %s", transaction_id)
