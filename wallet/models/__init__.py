"""
SQLAlchemy ORM models package.

All models are imported here so that:
  1. Base.metadata knows every table before create_all runs
  2. Other modules can import from wallet.models directly
"""

from wallet.models.user import User  # noqa: F401
from wallet.models.user_settings import UserSettings  # noqa: F401
from wallet.models.components import (  # noqa: F401
    ActiveAccountComponent,
    CoreDetailsComponent,
    LimitTimeframe,
    SavingGoalComponent,
    SpendingLimitComponent,
)
from wallet.models.account import Account  # noqa: F401
from wallet.models.transaction import DestinationType, SourceType, Transaction  # noqa: F401
