"""
UserSettings model — one free-form JSON document per user.

The document is stored as serialized JSON text. There is no schema: keys are
interpreted lazily by typed accessors in settings_service (e.g. "timezone").
The whole document is rewritten on every change, so a reader never sees a
partially applied update.
"""

import uuid

from sqlalchemy import ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wallet.database import Base
from wallet.models.mixins import TimestampMixin

EMPTY_DOCUMENT = "{}"


class UserSettings(TimestampMixin, Base):
    __tablename__ = "user_settings"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # UNIQUE enforces one document per user
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        unique=True,
        nullable=False,
    )

    settings_json: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default=EMPTY_DOCUMENT,
    )

    user: Mapped["User"] = relationship(
        back_populates="settings",
    )
