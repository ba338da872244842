"""
Pydantic schemas for Transaction endpoints.

Field lengths and the positive amount are checked here. Whether the
populated descriptor fields match source_type / destination_type is checked
in transaction_service, so the rule also holds for callers that skip HTTP.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from wallet.models.transaction import DestinationType, SourceType
from wallet.schemas.account import PositiveMoney


class TransactionCreateRequest(BaseModel):
    """Request body for POST /transactions."""
    source_type: SourceType
    source_account_id: uuid.UUID | None = None
    source_iban: str | None = Field(None, max_length=34)
    source_name: str | None = Field(None, max_length=255)

    destination_type: DestinationType
    destination_account_id: uuid.UUID | None = None
    destination_iban: str | None = Field(None, max_length=34)
    destination_name: str | None = Field(None, max_length=255)

    amount: PositiveMoney
    description: str = Field("", max_length=500)
    timestamp: datetime | None = Field(
        None, description="When the money moved (defaults to now)"
    )


class TransactionResponse(BaseModel):
    """
    Public representation of a transaction.

    `timestamp` is UTC. `local_timestamp` is the same instant in the
    requesting user's configured timezone.
    """
    id: uuid.UUID
    source_type: SourceType
    source_account_id: uuid.UUID | None
    source_iban: str | None
    source_name: str | None
    destination_type: DestinationType
    destination_account_id: uuid.UUID | None
    destination_iban: str | None
    destination_name: str | None
    amount: Decimal
    description: str
    timestamp: datetime
    local_timestamp: datetime | None = None
    source_balance_before: Decimal | None
    destination_balance_before: Decimal | None
    created_at: datetime
    updated_at: datetime
    is_deleted: bool
    deleted_at: datetime | None

    model_config = {"from_attributes": True}
