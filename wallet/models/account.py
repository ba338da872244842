"""
Account model — the aggregate root of the wallet.

An Account on its own only knows who owns it, whether it is the user's main
account, and whether it has been soft-deleted. Name, balance, IBAN, spending
limit and saving goal live in optional components (see components.py).

Component relationships:
  - loaded eagerly with selectin, so the aggregate is complete after a single
    `select(Account)` without lazy loads in async code
  - cascade="all, delete-orphan": assigning None to a component detaches it
    and removes its row in the same flush

Main account:
  Every user gets one main account at registration. It can't be modified or
  deleted, and a user can't have two (enforced in account_service).
"""

import uuid

from sqlalchemy import Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wallet.database import Base
from wallet.models.components import (
    ActiveAccountComponent,
    CoreDetailsComponent,
    SavingGoalComponent,
    SpendingLimitComponent,
)
from wallet.models.mixins import SoftDeleteMixin, TimestampMixin


class Account(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    is_main: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    # --- Relationships ---
    user: Mapped["User"] = relationship(
        back_populates="accounts",
    )

    core_details: Mapped[CoreDetailsComponent | None] = relationship(
        back_populates="account",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    active_account: Mapped[ActiveAccountComponent | None] = relationship(
        back_populates="account",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    spending_limit: Mapped[SpendingLimitComponent | None] = relationship(
        back_populates="account",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    saving_goal: Mapped[SavingGoalComponent | None] = relationship(
        back_populates="account",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )
