"""
Column mixins shared by the ORM models.

TimestampMixin
  created_at / updated_at audit columns, set by the ORM.

SoftDeleteMixin
  A single nullable `deleted_at` column is the whole deletion record.
  `is_deleted` is derived from it (in Python and in SQL), so a row can
  never be "deleted without a timestamp" or "timestamped but live".
"""

from datetime import datetime

from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import Mapped, mapped_column

from wallet.clock import utc_now
from wallet.database import UTCDateTime


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utc_now,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )


class SoftDeleteMixin:
    # NULL while the record is live
    deleted_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime,
        nullable=True,
        default=None,
    )

    @hybrid_property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @is_deleted.inplace.expression
    @classmethod
    def _is_deleted_expression(cls):
        return cls.deleted_at.is_not(None)

    def mark_deleted(self, now: datetime | None = None) -> None:
        """Soft-delete the record. Deleting twice keeps the first timestamp."""
        if self.deleted_at is None:
            self.deleted_at = now or utc_now()
