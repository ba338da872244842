"""
Tests for spending limit evaluation.

These tests exercise the evaluator directly on unsaved ORM objects:
  - The admission rule is inclusive (current + amount <= limit)
  - A rejected debit leaves the counter untouched
  - Periods roll over to the latest boundary, not to "now"
  - Monthly and yearly periods follow the calendar
  - Accounts without a limit admit everything
  - preview() never mutates the component
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from wallet.exceptions import ValidationError
from wallet.models.account import Account
from wallet.models.components import LimitTimeframe, SpendingLimitComponent
from wallet.services import spending_limit

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def make_limit(limit="100.00", spent="0.00", timeframe=LimitTimeframe.DAILY, start=NOW):
    return SpendingLimitComponent(
        limit_amount=Decimal(limit),
        timeframe=timeframe,
        current_spending=Decimal(spent),
        period_start_date=start,
    )


def make_account(component=None):
    account = Account(is_main=False)
    account.spending_limit = component
    return account


class TestAdmission:

    def test_debit_up_to_the_limit_is_admitted(self):
        account = make_account(make_limit(spent="80.00"))

        result = spending_limit.evaluate(account, Decimal("20.00"), NOW)

        assert result.admitted is True
        assert account.spending_limit.current_spending == Decimal("100.00")

    def test_one_cent_over_the_limit_is_rejected(self):
        account = make_account(make_limit(spent="80.00"))

        result = spending_limit.evaluate(account, Decimal("20.01"), NOW)

        assert result.admitted is False
        assert account.spending_limit.current_spending == Decimal("80.00")

    def test_successive_debits_accumulate(self):
        account = make_account(make_limit(limit="50.00"))

        assert spending_limit.evaluate(account, Decimal("30.00"), NOW).admitted
        assert spending_limit.evaluate(account, Decimal("20.00"), NOW).admitted
        assert not spending_limit.evaluate(account, Decimal("0.01"), NOW).admitted
        assert account.spending_limit.current_spending == Decimal("50.00")

    def test_zero_limit_rejects_everything(self):
        account = make_account(make_limit(limit="0.00"))
        assert not spending_limit.evaluate(account, Decimal("0.01"), NOW).admitted

    def test_no_limit_admits_any_amount(self):
        account = make_account(None)

        result = spending_limit.evaluate(account, Decimal("1000000.00"), NOW)

        assert result.admitted is True
        assert result.component is None

    @pytest.mark.parametrize(
        "amount", [Decimal("0"), Decimal("-5.00"), Decimal("0.004"), Decimal("1.001")]
    )
    def test_invalid_amount(self, amount):
        with pytest.raises(ValidationError) as exc_info:
            spending_limit.evaluate(make_account(make_limit()), amount, NOW)
        assert exc_info.value.field == "amount"


class TestPeriodRollover:

    def test_daily_period_resets_after_a_day(self):
        start = NOW - timedelta(hours=30)
        account = make_account(make_limit(spent="90.00", start=start))

        result = spending_limit.evaluate(account, Decimal("50.00"), NOW)

        assert result.admitted is True
        assert result.period_reset is True
        component = account.spending_limit
        assert component.period_start_date == start + timedelta(days=1)
        assert component.current_spending == Decimal("50.00")

    def test_daily_period_keeps_counter_within_the_day(self):
        start = NOW - timedelta(hours=23, minutes=59)
        account = make_account(make_limit(spent="90.00", start=start))

        result = spending_limit.evaluate(account, Decimal("20.00"), NOW)

        assert result.admitted is False
        assert result.period_reset is False
        assert account.spending_limit.period_start_date == start

    def test_boundary_instant_starts_a_new_period(self):
        start = NOW - timedelta(days=1)
        component = make_limit(spent="100.00", start=start)

        assert spending_limit.roll_period(component, NOW) is True
        assert component.period_start_date == NOW
        assert component.current_spending == Decimal("0.00")

    def test_several_elapsed_periods_land_on_latest_boundary(self):
        start = NOW - timedelta(days=3, hours=5)
        component = make_limit(spent="10.00", start=start)

        spending_limit.roll_period(component, NOW)

        assert component.period_start_date == start + timedelta(days=3)

    def test_weekly_period(self):
        start = NOW - timedelta(days=15)
        component = make_limit(timeframe=LimitTimeframe.WEEKLY, spent="10.00", start=start)

        spending_limit.roll_period(component, NOW)

        assert component.period_start_date == start + timedelta(days=14)

    def test_monthly_period_follows_the_calendar(self):
        start = datetime(2024, 1, 31, 9, 0, tzinfo=timezone.utc)
        now = datetime(2024, 3, 31, 10, 0, tzinfo=timezone.utc)
        component = make_limit(timeframe=LimitTimeframe.MONTHLY, spent="10.00", start=start)

        spending_limit.roll_period(component, now)

        assert component.period_start_date == datetime(2024, 3, 31, 9, 0, tzinfo=timezone.utc)

    def test_monthly_period_in_a_short_month(self):
        start = datetime(2024, 1, 31, tzinfo=timezone.utc)
        now = datetime(2024, 3, 1, tzinfo=timezone.utc)
        component = make_limit(timeframe=LimitTimeframe.MONTHLY, spent="10.00", start=start)

        spending_limit.roll_period(component, now)

        assert component.period_start_date == datetime(2024, 2, 29, tzinfo=timezone.utc)

    def test_yearly_period(self):
        start = datetime(2022, 6, 1, tzinfo=timezone.utc)
        component = make_limit(timeframe=LimitTimeframe.YEARLY, spent="10.00", start=start)

        spending_limit.roll_period(component, NOW)

        assert component.period_start_date == datetime(2023, 6, 1, tzinfo=timezone.utc)

    def test_start_in_the_future_keeps_the_period(self):
        start = NOW + timedelta(days=2)
        component = make_limit(spent="10.00", start=start)

        assert spending_limit.roll_period(component, NOW) is False
        assert component.current_spending == Decimal("10.00")

    def test_naive_start_is_treated_as_utc(self):
        start = (NOW - timedelta(hours=30)).replace(tzinfo=None)
        component = make_limit(spent="10.00", start=start)

        spending_limit.roll_period(component, NOW)

        assert component.period_start_date == NOW - timedelta(hours=6)


class TestPreview:

    def test_preview_does_not_mutate(self):
        start = NOW - timedelta(hours=30)
        component = make_limit(spent="90.00", start=start)

        result = spending_limit.preview(component, Decimal("50.00"), NOW)

        assert result.admitted is True
        assert result.current_spending == Decimal("0.00")
        assert result.remaining == Decimal("100.00")
        assert result.period_start_date == start + timedelta(days=1)
        assert result.period_end_date == start + timedelta(days=2)
        assert component.current_spending == Decimal("90.00")
        assert component.period_start_date == start

    def test_preview_reports_remaining(self):
        component = make_limit(spent="80.00")

        result = spending_limit.preview(component, Decimal("20.01"), NOW)

        assert result.admitted is False
        assert result.remaining == Decimal("20.00")
