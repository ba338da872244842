"""
Spending limit evaluation — decides whether a debit fits under an account's limit.

A SpendingLimitComponent tracks how much has been spent in the current
period. Before any debit is judged, the period is rolled forward:

    boundary = period_start_date + one timeframe step
    if now >= boundary:
        current_spending  = 0
        period_start_date = the latest boundary <= now

DAILY and WEEKLY are fixed 1- and 7-day steps. MONTHLY and YEARLY are
calendar steps (dateutil's relativedelta), always measured from the
original anchor so a period starting on the 31st lands on the last day of
short months instead of drifting to the 28th forever.

The period start advances to a boundary, never to "now": a daily limit
anchored at 08:00 keeps resetting at 08:00.

Admission:
    admitted  iff  current_spending + amount <= limit_amount

An admitted amount is added to current_spending. A rejected one leaves the
counter alone. This module never touches balances and does no I/O; the
caller (transaction_service) locks the account row, evaluates, and applies
the debit in the same database transaction.

An account without a SpendingLimitComponent has no limit: every debit is
admitted and nothing is tracked.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from wallet.clock import utc_now
from wallet.exceptions import ValidationError
from wallet.models.account import Account
from wallet.models.components import LimitTimeframe, SpendingLimitComponent

_FIXED_STEPS = {
    LimitTimeframe.DAILY: timedelta(days=1),
    LimitTimeframe.WEEKLY: timedelta(days=7),
}

_CALENDAR_STEPS = {
    LimitTimeframe.MONTHLY: relativedelta(months=1),
    LimitTimeframe.YEARLY: relativedelta(years=1),
}


@dataclass
class SpendingEvaluation:
    """Outcome of evaluating one debit against an account's spending limit."""
    admitted: bool
    component: SpendingLimitComponent | None
    period_reset: bool = False


@dataclass(frozen=True)
class SpendingPreview:
    """What an evaluation would decide, without changing the component."""
    admitted: bool
    limit_amount: Decimal
    current_spending: Decimal
    remaining: Decimal
    period_start_date: datetime
    period_end_date: datetime


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def period_step(timeframe: LimitTimeframe) -> timedelta | relativedelta:
    """Length of one period for the given timeframe."""
    if timeframe in _FIXED_STEPS:
        return _FIXED_STEPS[timeframe]
    return _CALENDAR_STEPS[timeframe]


def current_period_start(
    period_start: datetime,
    timeframe: LimitTimeframe,
    now: datetime,
) -> datetime:
    """
    Return the start of the period that contains `now`.

    Equal to `period_start` while the first period hasn't elapsed. A `now`
    earlier than `period_start` (clock skew, back-dated start) also keeps
    the current start.
    """
    start = _as_utc(period_start)
    now = _as_utc(now)
    step = period_step(timeframe)

    if now < start + step:
        return start

    if isinstance(step, timedelta):
        return start + step * ((now - start) // step)

    periods = 1
    while start + step * (periods + 1) <= now:
        periods += 1
    return start + step * periods


def period_end(period_start: datetime, timeframe: LimitTimeframe) -> datetime:
    """Boundary at which the period beginning at `period_start` ends."""
    return _as_utc(period_start) + period_step(timeframe)


def roll_period(component: SpendingLimitComponent, now: datetime | None = None) -> bool:
    """
    Advance the component's period so it contains `now`.

    Returns True if a boundary was crossed (counter reset), False otherwise.
    """
    now = now or utc_now()
    new_start = current_period_start(component.period_start_date, component.timeframe, now)
    if new_start == _as_utc(component.period_start_date):
        return False

    component.period_start_date = new_start
    component.current_spending = Decimal("0.00")
    return True


def admits(limit_amount: Decimal, current_spending: Decimal, amount: Decimal) -> bool:
    """The admission rule on its own: the limit is inclusive."""
    return current_spending + amount <= limit_amount


def _check_amount(amount: Decimal) -> None:
    if amount <= 0:
        raise ValidationError("amount", "Debit amount must be greater than zero")
    if amount != amount.quantize(Decimal("0.01")):
        raise ValidationError("amount", "Debit amount has more than two decimal places")


def evaluate(
    account: Account,
    amount: Decimal,
    now: datetime | None = None,
) -> SpendingEvaluation:
    """
    Judge a prospective debit of `amount` against the account's spending limit.

    Rolls the period first, then applies the admission rule. When admitted,
    `current_spending` is increased by `amount` on the (mutated) component.

    Args:
        account: The source account, with its components loaded.
        amount: Positive debit amount.
        now: Evaluation instant; defaults to the current UTC time.

    Returns:
        SpendingEvaluation with the decision and the updated component
        (None when the account has no spending limit).

    Raises:
        ValidationError: If amount is not positive.
    """
    _check_amount(amount)
    component = account.spending_limit
    if component is None:
        return SpendingEvaluation(admitted=True, component=None)

    reset = roll_period(component, now)
    if not admits(component.limit_amount, component.current_spending, amount):
        return SpendingEvaluation(admitted=False, component=component, period_reset=reset)

    component.current_spending = component.current_spending + amount
    return SpendingEvaluation(admitted=True, component=component, period_reset=reset)


def preview(
    component: SpendingLimitComponent,
    amount: Decimal,
    now: datetime | None = None,
) -> SpendingPreview:
    """Dry-run of evaluate() for a single component. Nothing is mutated."""
    _check_amount(amount)
    now = now or utc_now()

    start = current_period_start(component.period_start_date, component.timeframe, now)
    if start == _as_utc(component.period_start_date):
        spent = component.current_spending
    else:
        spent = Decimal("0.00")

    return SpendingPreview(
        admitted=admits(component.limit_amount, spent, amount),
        limit_amount=component.limit_amount,
        current_spending=spent,
        remaining=max(component.limit_amount - spent, Decimal("0.00")),
        period_start_date=start,
        period_end_date=period_end(start, component.timeframe),
    )
