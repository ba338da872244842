"""
Custom exception classes and FastAPI exception handlers.

The service layer raises domain-specific errors (like InsufficientFundsError)
without importing HTTP concepts. The handlers registered here translate them
into HTTP responses with a consistent body:

    {"detail": "...", "error_type": "...", ...extra fields}

Exception hierarchy:
    WalletAPIError (base)
    ├── ValidationError             — a field violates its constraint (422)
    ├── NotFoundError               — referenced record doesn't exist (404)
    │   ├── UserNotFoundError
    │   ├── AccountNotFoundError
    │   └── TransactionNotFoundError
    ├── UnauthorizedAccessError     — caller doesn't own the resource (403)
    ├── DuplicateUserError          — username or email already taken (409)
    ├── MainAccountError            — main-account rule violated (409)
    ├── InvalidCredentialsError     — bad email/password (401)
    ├── InsufficientFundsError      — debit larger than balance (422)
    ├── SpendingLimitExceededError  — debit rejected by the spending limit (422)
    └── ActivationNotAllowedError   — account not eligible for an IBAN (422)

Not everything is an exception: a malformed settings document or an unknown
timezone name is recovered where it is read and never reaches this module.
"""

import uuid
from decimal import Decimal

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class WalletAPIError(Exception):
    """Base exception for all Wallet API domain errors."""

    status_code: int = 400
    error_type: str = "wallet_error"

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)

    def extra(self) -> dict:
        """Additional fields merged into the JSON error body."""
        return {}


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------

class ValidationError(WalletAPIError):
    """
    Raised when a write violates a field constraint before reaching storage.

    Attributes:
        field: Name of the offending field (e.g. "source_iban", "timezone").
    """

    status_code = 422
    error_type = "validation_error"

    def __init__(self, field: str, detail: str):
        self.field = field
        super().__init__(detail)

    def extra(self) -> dict:
        return {"field": self.field}


class NotFoundError(WalletAPIError):
    status_code = 404
    error_type = "not_found"


class UserNotFoundError(NotFoundError):
    error_type = "user_not_found"

    def __init__(self, user_id: uuid.UUID):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class AccountNotFoundError(NotFoundError):
    error_type = "account_not_found"

    def __init__(self, account_id: uuid.UUID):
        self.account_id = account_id
        super().__init__(f"Account {account_id} not found")


class TransactionNotFoundError(NotFoundError):
    error_type = "transaction_not_found"

    def __init__(self, transaction_id: uuid.UUID):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction {transaction_id} not found")


class UnauthorizedAccessError(WalletAPIError):
    """Raised when a user attempts to access a resource they don't own."""

    status_code = 403
    error_type = "unauthorized_access"

    def __init__(self, detail: str = "You do not have access to this resource"):
        super().__init__(detail)


class DuplicateUserError(WalletAPIError):
    """Raised when a username or email is already registered."""

    status_code = 409
    error_type = "duplicate_user"

    def __init__(self, field: str, value: str):
        self.field = field
        super().__init__(f"{field.capitalize()} {value} is already registered")

    def extra(self) -> dict:
        return {"field": self.field}


class MainAccountError(WalletAPIError):
    """Raised when an operation would break the one-immutable-main-account rule."""

    status_code = 409
    error_type = "main_account"


class InvalidCredentialsError(WalletAPIError):
    """Raised when login credentials are incorrect."""

    status_code = 401
    error_type = "invalid_credentials"

    def __init__(self):
        super().__init__("Invalid email or password")


class InsufficientFundsError(WalletAPIError):
    """
    Raised when a debit would take the source balance below zero.

    Attributes:
        account_id: The account that lacks sufficient funds.
        requested: The amount the user tried to move.
        available: The current balance of the account.
    """

    status_code = 422
    error_type = "insufficient_funds"

    def __init__(self, account_id: uuid.UUID, requested: Decimal, available: Decimal):
        self.account_id = account_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient funds: requested {requested:.2f}, available {available:.2f}"
        )

    def extra(self) -> dict:
        return {"requested": f"{self.requested:.2f}", "available": f"{self.available:.2f}"}


class SpendingLimitExceededError(WalletAPIError):
    """Raised by the transaction workflow when the spending limit rejects a debit."""

    status_code = 422
    error_type = "spending_limit_exceeded"

    def __init__(
        self,
        account_id: uuid.UUID,
        requested: Decimal,
        limit_amount: Decimal,
        current_spending: Decimal,
    ):
        self.account_id = account_id
        self.requested = requested
        self.limit_amount = limit_amount
        self.current_spending = current_spending
        super().__init__(
            f"Spending limit exceeded: requested {requested:.2f}, "
            f"remaining {limit_amount - current_spending:.2f} of {limit_amount:.2f}"
        )

    def extra(self) -> dict:
        return {
            "requested": f"{self.requested:.2f}",
            "limit_amount": f"{self.limit_amount:.2f}",
            "current_spending": f"{self.current_spending:.2f}",
        }


class ActivationNotAllowedError(WalletAPIError):
    """Raised when the activation policy rejects an account."""

    status_code = 422
    error_type = "activation_not_allowed"

    def __init__(self, account_id: uuid.UUID):
        self.account_id = account_id
        super().__init__(f"Account {account_id} is not eligible for activation")


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register the domain exception handler with the FastAPI application.

    Every WalletAPIError subclass carries its own status code and
    error_type, so a single handler covers the whole hierarchy.

    This is called once during app creation in main.py.
    """

    @app.exception_handler(WalletAPIError)
    async def wallet_error_handler(
        request: Request, exc: WalletAPIError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "error_type": exc.error_type,
                **exc.extra(),
            },
        )
