"""
User model — the owner of a wallet.

A User logs in with email + password and owns:
  - zero or more Accounts (one of them flagged as the main account)
  - zero or one UserSettings document (created lazily on first use)

Users are never hard-deleted. Closing a wallet sets the deletion record
(`deleted_at`); deleted users can no longer authenticate and are hidden
from every lookup.

The password is stored as an Argon2id hash, never in plaintext.
"""

import uuid

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wallet.database import Base
from wallet.models.mixins import SoftDeleteMixin, TimestampMixin


class User(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    username: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
    )

    # Login identifier
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # --- Relationships ---
    accounts: Mapped[list["Account"]] = relationship(
        back_populates="user",
    )

    settings: Mapped["UserSettings"] = relationship(
        back_populates="user",
        uselist=False,
    )
