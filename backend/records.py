from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from backend.currency_conversion import validate_currency
from backend.date_range import DateParseError, parse_record_date

ZERO = Decimal("0")


class BudgetPeriod:
    values = {"daily", "weekly", "monthly", "yearly"}

    @classmethod
    def validate(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in cls.values:
            raise ValueError("Invalid budget period.")
        return normalized


class IncomeFrequency:
    values = {"one-time", "weekly", "biweekly", "monthly", "quarterly", "annually"}
    aliases = {
        "onetime": "one-time",
        "once": "one-time",
        "byweekly": "biweekly",
        "yearly": "annually",
        "annual": "annually",
    }

    @classmethod
    def validate(cls, value: str) -> str:
        normalized = value.strip().lower()
        compact = "".join(ch for ch in normalized if ch.isalnum())
        if normalized not in cls.values:
            normalized = cls.aliases.get(compact, compact)
        if normalized not in cls.values:
            raise ValueError("Invalid income frequency.")
        return normalized


@dataclass(frozen=True)
class Expense:
    id: Any
    description: str
    amount: Decimal
    currency: str
    category: str
    date: date
    sub_category: Optional[str] = None
    time: Optional[str] = None
    paid_to: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class Budget:
    id: Any
    category: str
    amount: Decimal
    currency: str
    period: str
    start_date: date
    end_date: date
    sub_category: Optional[str] = None


@dataclass(frozen=True)
class Income:
    id: Any
    source: str
    amount: Decimal
    currency: str
    frequency: str
    category: str
    date: date
    is_recurring: bool = False
    recurring_interval: Optional[str] = None


@dataclass(frozen=True)
class Goal:
    id: Any
    name: str
    target_amount: Decimal
    current_amount: Decimal
    currency: str
    start_date: date
    due_date: date
    monthly_contribution: Optional[Decimal] = None
    interest_rate: Optional[Decimal] = None
    milestones: tuple[str, ...] = ()


def expense_from_mapping(row: Mapping[str, Any]) -> Expense:
    amount = _require_amount(row, "amount")
    if amount < ZERO:
        raise ValueError("Expense amount must not be negative.")
    return Expense(
        id=row.get("id"),
        description=_clean_text(row.get("description")) or "",
        amount=amount,
        currency=validate_currency(_require(row, "currency")),
        category=_require_text(row, "category"),
        date=_require_date(row, "date"),
        sub_category=_clean_text(row.get("sub_category")),
        time=_clean_text(row.get("time")),
        paid_to=_clean_text(row.get("paid_to")),
        notes=_clean_text(row.get("notes")),
    )


def budget_from_mapping(row: Mapping[str, Any]) -> Budget:
    amount = _require_amount(row, "amount")
    if amount < ZERO:
        raise ValueError("Budget amount must not be negative.")
    start_date = _require_date(row, "start_date")
    end_date = _require_date(row, "end_date")
    if start_date > end_date:
        raise ValueError("Budget start_date must be on or before end_date.")
    return Budget(
        id=row.get("id"),
        category=_require_text(row, "category"),
        amount=amount,
        currency=validate_currency(_require(row, "currency")),
        period=BudgetPeriod.validate(row.get("period") or "monthly"),
        start_date=start_date,
        end_date=end_date,
        sub_category=_clean_text(row.get("sub_category")),
    )


def income_from_mapping(row: Mapping[str, Any]) -> Income:
    amount = _require_amount(row, "amount")
    if amount < ZERO:
        raise ValueError("Income amount must not be negative.")
    return Income(
        id=row.get("id"),
        source=_require_text(row, "source"),
        amount=amount,
        currency=validate_currency(_require(row, "currency")),
        frequency=IncomeFrequency.validate(row.get("frequency") or "one-time"),
        category=_clean_text(row.get("category")) or "Other",
        date=_require_date(row, "date"),
        is_recurring=bool(row.get("is_recurring") or False),
        recurring_interval=_clean_text(row.get("recurring_interval")),
    )


def goal_from_mapping(row: Mapping[str, Any]) -> Goal:
    target_amount = _require_amount(row, "target_amount")
    current_amount = _optional_amount(row, "current_amount") or ZERO
    if current_amount < ZERO:
        raise ValueError("Goal current_amount must not be negative.")
    start_date = _require_date(row, "start_date")
    due_date = _require_date(row, "due_date")
    if start_date > due_date:
        raise ValueError("Goal start_date must be on or before due_date.")
    milestones = row.get("milestones") or ()
    if isinstance(milestones, str):
        milestones = milestones.split("\n")
    return Goal(
        id=row.get("id"),
        name=_require_text(row, "name"),
        target_amount=target_amount,
        current_amount=current_amount,
        currency=validate_currency(_require(row, "currency")),
        start_date=start_date,
        due_date=due_date,
        monthly_contribution=_optional_amount(row, "monthly_contribution"),
        interest_rate=_optional_amount(row, "interest_rate"),
        milestones=tuple(item.strip() for item in milestones if item and item.strip()),
    )


def _require(row: Mapping[str, Any], key: str) -> Any:
    value = row.get(key)
    if value is None:
        raise ValueError(f"Missing required field: {key}.")
    return value


def _require_text(row: Mapping[str, Any], key: str) -> str:
    value = _clean_text(row.get(key))
    if not value:
        raise ValueError(f"Missing required field: {key}.")
    return value


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    cleaned = str(value).strip()
    return cleaned or None


def _require_amount(row: Mapping[str, Any], key: str) -> Decimal:
    value = _optional_amount(row, key)
    if value is None:
        raise ValueError(f"Missing required field: {key}.")
    return value


def _optional_amount(row: Mapping[str, Any], key: str) -> Optional[Decimal]:
    value = row.get(key)
    if value is None or value == "":
        return None
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount for {key}.") from exc
    if not amount.is_finite():
        raise ValueError(f"Invalid amount for {key}.")
    return amount


def _require_date(row: Mapping[str, Any], key: str) -> date:
    value = _require(row, key)
    try:
        return parse_record_date(value)
    except DateParseError as exc:
        raise ValueError(f"Invalid date for {key}: {exc.value!r}.") from exc
