from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List

from backend.currency_conversion import RateProvider, coerce_amount, convert_amount
from backend.date_range import MONTH_NAMES, shift_month
from backend.records import Expense, Income, IncomeFrequency

ZERO = Decimal("0")
TRAILING_DAYS = 90
TRAILING_MONTHS = Decimal("3")
DEFAULT_TAX_RATE = Decimal("0.2")
EXPENSE_GROWTH = Decimal("1.1")

MONTHLY_FACTORS = {
    "weekly": Decimal("52") / Decimal("12"),
    "biweekly": Decimal("26") / Decimal("12"),
    "monthly": Decimal("1"),
    "quarterly": Decimal("1") / Decimal("3"),
    "annually": Decimal("1") / Decimal("12"),
    "one-time": ZERO,
}


@dataclass(frozen=True)
class MonthlyProjection:
    month: str
    month_start: date
    amount: Decimal


def predict_income(
    incomes: Iterable[Income],
    months: int,
    today: date,
    currency: str,
    rate_provider: RateProvider | None = None,
) -> List[MonthlyProjection]:
    if months <= 0:
        raise ValueError("months must be greater than zero.")

    monthly_total = ZERO
    for income in incomes:
        frequency = IncomeFrequency.validate(income.frequency)
        converted = convert_amount(
            income.amount, income.currency, currency, rate_provider=rate_provider
        )
        monthly_total += converted * MONTHLY_FACTORS[frequency]

    return _repeat_for_months(monthly_total, months, today)


def forecast_expenses(
    expenses: Iterable[Expense],
    months: int,
    today: date,
    currency: str,
    rate_provider: RateProvider | None = None,
) -> List[MonthlyProjection]:
    """Project the trailing three-month average spend onto upcoming months."""
    if months <= 0:
        raise ValueError("months must be greater than zero.")
    average = _trailing_monthly_average(expenses, today, currency, rate_provider)
    return _repeat_for_months(average, months, today)


def predict_future_expenses(
    expenses: Iterable[Expense],
    today: date,
    currency: str,
    growth: Decimal = EXPENSE_GROWTH,
    rate_provider: RateProvider | None = None,
) -> Decimal:
    """Next month's spend: the trailing monthly average plus ``growth``."""
    if coerce_amount(growth) < ZERO:
        raise ValueError("growth must not be negative.")
    average = _trailing_monthly_average(expenses, today, currency, rate_provider)
    return average * coerce_amount(growth)


def _trailing_monthly_average(
    expenses: Iterable[Expense],
    today: date,
    currency: str,
    rate_provider: RateProvider | None,
) -> Decimal:
    window_start = today - timedelta(days=TRAILING_DAYS)
    recent_total = ZERO
    for expense in expenses:
        if window_start <= expense.date <= today:
            recent_total += convert_amount(
                expense.amount, expense.currency, currency, rate_provider=rate_provider
            )
    return recent_total / TRAILING_MONTHS


def estimate_tax(income: Decimal, tax_rate: Decimal = DEFAULT_TAX_RATE) -> Decimal:
    if coerce_amount(tax_rate) < ZERO:
        raise ValueError("tax_rate must not be negative.")
    return coerce_amount(income) * coerce_amount(tax_rate)


def _repeat_for_months(amount: Decimal, months: int, today: date) -> List[MonthlyProjection]:
    projections: List[MonthlyProjection] = []
    for offset in range(months):
        start = shift_month(today, offset)
        projections.append(
            MonthlyProjection(
                month=f"{MONTH_NAMES[start.month - 1]} {start.year}",
                month_start=start,
                amount=amount,
            )
        )
    return projections
