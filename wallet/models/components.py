"""
Account components — optional attribute bundles attached to an Account.

An Account is a bare identity (owner, main flag, deletion record). Everything
else is a component that may or may not be present:

  CoreDetailsComponent    — display name and balance
  ActiveAccountComponent  — IBAN and activation instant; presence means the
                            account can transact with external IBANs
  SpendingLimitComponent  — capped spend counter over a recurring period
  SavingGoalComponent     — descriptive savings target

Presence is meaningful: no SpendingLimitComponent means "no limit", not
"limit of zero". Components are independent data, not subtypes of Account.
Each one uses the Account's id as its own primary key (1:1 by shared key),
so a component can never be attached to two accounts or exist twice.

Money columns are Numeric(18, 2): fixed-point with two fractional digits,
handled as Decimal in Python.
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wallet.database import Base, UTCDateTime
from wallet.models.mixins import TimestampMixin


class LimitTimeframe(str, enum.Enum):
    """Length of the window a spending limit is measured over."""
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class CoreDetailsComponent(TimestampMixin, Base):
    __tablename__ = "core_details_components"

    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id"),
        primary_key=True,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    # Only the transaction workflow changes this after creation
    balance: Mapped[Decimal] = mapped_column(
        Numeric(18, 2),
        nullable=False,
        default=Decimal("0.00"),
    )

    account: Mapped["Account"] = relationship(back_populates="core_details")


class ActiveAccountComponent(TimestampMixin, Base):
    __tablename__ = "active_account_components"

    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id"),
        primary_key=True,
    )

    # Longest IBANs are 34 characters
    iban: Mapped[str] = mapped_column(
        String(34),
        nullable=False,
    )

    activated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
    )

    account: Mapped["Account"] = relationship(back_populates="active_account")


class SpendingLimitComponent(TimestampMixin, Base):
    __tablename__ = "spending_limit_components"

    __table_args__ = (
        CheckConstraint("limit_amount >= 0", name="ck_spending_limit_non_negative"),
        CheckConstraint("current_spending >= 0", name="ck_spending_current_non_negative"),
    )

    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id"),
        primary_key=True,
    )

    limit_amount: Mapped[Decimal] = mapped_column(
        Numeric(18, 2),
        nullable=False,
    )

    timeframe: Mapped[LimitTimeframe] = mapped_column(
        Enum(LimitTimeframe),
        nullable=False,
    )

    # Reset to zero whenever the period rolls over (see services/spending_limit.py)
    current_spending: Mapped[Decimal] = mapped_column(
        Numeric(18, 2),
        nullable=False,
        default=Decimal("0.00"),
    )

    period_start_date: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
    )

    account: Mapped["Account"] = relationship(back_populates="spending_limit")


class SavingGoalComponent(TimestampMixin, Base):
    __tablename__ = "saving_goal_components"

    __table_args__ = (
        CheckConstraint("target_amount >= 0", name="ck_saving_goal_non_negative"),
    )

    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id"),
        primary_key=True,
    )

    goal_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    target_amount: Mapped[Decimal] = mapped_column(
        Numeric(18, 2),
        nullable=False,
    )

    account: Mapped["Account"] = relationship(back_populates="saving_goal")
