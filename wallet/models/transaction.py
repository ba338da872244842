"""
Transaction model — an append-only ledger entry for one movement of money.

Each transaction has a source and a destination descriptor:

  source_type        populated field
  -----------        ---------------
  ACCOUNT            source_account_id   (one of our accounts)
  IBAN               source_iban         (an external bank account)
  SYSTEM             source_name         (e.g. "Salary", "Initial deposit")

  destination_type   populated field
  ----------------   ---------------
  ACCOUNT            destination_account_id
  IBAN               destination_iban
  SPEND              destination_name    (e.g. "Groceries")

Exactly one field per descriptor is set, consistent with its type. This is
checked in transaction_service before anything is written.

Balance snapshots:
  source_balance_before / destination_balance_before record the CoreDetails
  balance of each involved account immediately before the transaction was
  applied. They are NULL for sides that aren't one of our accounts.

Immutability:
  There is no update path. A mistaken transaction is corrected by creating
  an offsetting one; soft-deleting only hides it from listings.
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from wallet.clock import utc_now
from wallet.database import Base, UTCDateTime
from wallet.models.mixins import SoftDeleteMixin, TimestampMixin


class SourceType(str, enum.Enum):
    ACCOUNT = "ACCOUNT"
    IBAN = "IBAN"
    SYSTEM = "SYSTEM"


class DestinationType(str, enum.Enum):
    ACCOUNT = "ACCOUNT"
    IBAN = "IBAN"
    SPEND = "SPEND"


class Transaction(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "transactions"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_positive_amount"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # --- Source descriptor ---
    source_type: Mapped[SourceType] = mapped_column(
        Enum(SourceType),
        nullable=False,
    )
    source_account_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=True,
        index=True,
    )
    source_iban: Mapped[str | None] = mapped_column(String(34), nullable=True)
    source_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # --- Destination descriptor ---
    destination_type: Mapped[DestinationType] = mapped_column(
        Enum(DestinationType),
        nullable=False,
    )
    destination_account_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=True,
        index=True,
    )
    destination_iban: Mapped[str | None] = mapped_column(String(34), nullable=True)
    destination_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Always positive; direction comes from the descriptors
    amount: Mapped[Decimal] = mapped_column(
        Numeric(18, 2),
        nullable=False,
    )

    description: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        default="",
    )

    # When the money moved (may differ from created_at for back-dated entries)
    timestamp: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utc_now,
        nullable=False,
        index=True,
    )

    source_balance_before: Mapped[Decimal | None] = mapped_column(
        Numeric(18, 2),
        nullable=True,
    )
    destination_balance_before: Mapped[Decimal | None] = mapped_column(
        Numeric(18, 2),
        nullable=True,
    )
