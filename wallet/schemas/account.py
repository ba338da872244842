"""
Pydantic schemas for Account endpoints and account components.

Monetary amounts are Decimals with at most two fractional digits. In JSON
responses they are rendered as strings (e.g. "80.00") so no precision is
lost on the way to the client.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, Field

from wallet.models.components import LimitTimeframe

Money = Annotated[Decimal, Field(ge=0, max_digits=18, decimal_places=2)]
PositiveMoney = Annotated[Decimal, Field(gt=0, max_digits=18, decimal_places=2)]


# ---------------------------------------------------------------------------
# Component requests
# ---------------------------------------------------------------------------

class CoreDetailsCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    balance: Money = Decimal("0.00")


class CoreDetailsUpdate(BaseModel):
    """Only the name is editable; the balance moves through transactions."""
    name: str = Field(min_length=1, max_length=100)


class ActiveAccountCreate(BaseModel):
    iban: str = Field(min_length=1, max_length=34)


class SpendingLimitCreate(BaseModel):
    limit_amount: Money
    timeframe: LimitTimeframe
    current_spending: Money = Decimal("0.00")
    period_start_date: datetime | None = Field(
        None, description="Start of the first period (defaults to now)"
    )


class SavingGoalCreate(BaseModel):
    goal_name: str = Field(min_length=1, max_length=200)
    target_amount: Money


class AccountCreateRequest(BaseModel):
    """Request body for POST /accounts."""
    is_main: bool = False
    core_details: CoreDetailsCreate
    active_account: ActiveAccountCreate | None = None
    spending_limit: SpendingLimitCreate | None = None
    saving_goal: SavingGoalCreate | None = None


class AccountUpdateRequest(BaseModel):
    """Request body for PUT /accounts/{id}. Omitted fields are left unchanged."""
    is_main: bool | None = None
    name: str | None = Field(None, min_length=1, max_length=100)


class SpendingCheckRequest(BaseModel):
    amount: PositiveMoney


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class CoreDetailsResponse(BaseModel):
    name: str
    balance: Decimal

    model_config = {"from_attributes": True}


class ActiveAccountResponse(BaseModel):
    iban: str
    activated_at: datetime

    model_config = {"from_attributes": True}


class SpendingLimitResponse(BaseModel):
    limit_amount: Decimal
    timeframe: LimitTimeframe
    current_spending: Decimal
    period_start_date: datetime

    model_config = {"from_attributes": True}


class SavingGoalResponse(BaseModel):
    goal_name: str
    target_amount: Decimal

    model_config = {"from_attributes": True}


class AccountResponse(BaseModel):
    """An account with whichever components are attached (absent ones are null)."""
    id: uuid.UUID
    user_id: uuid.UUID
    is_main: bool
    created_at: datetime
    updated_at: datetime
    is_deleted: bool
    deleted_at: datetime | None
    core_details: CoreDetailsResponse | None
    active_account: ActiveAccountResponse | None
    spending_limit: SpendingLimitResponse | None
    saving_goal: SavingGoalResponse | None

    model_config = {"from_attributes": True}


class SpendingCheckResponse(BaseModel):
    """Result of a dry-run spending evaluation. Nothing is persisted."""
    account_id: uuid.UUID
    amount: Decimal
    admitted: bool
    has_limit: bool
    limit_amount: Decimal | None = None
    current_spending: Decimal | None = None
    remaining: Decimal | None = None
    period_start_date: datetime | None = None
    period_end_date: datetime | None = None
