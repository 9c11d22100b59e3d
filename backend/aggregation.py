from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Mapping, Optional, Sequence

from backend.currency_conversion import RateProvider, coerce_amount, convert_amount
from backend.date_range import filter_by_date_range, parse_record_date
from backend.records import Budget, Expense, Goal, Income

ZERO = Decimal("0")
HUNDRED = Decimal("100")
MONTH_LABELS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


@dataclass(frozen=True)
class BudgetAdherence:
    category: str
    budgeted: Decimal
    spent: Decimal
    adherence_percentage: Optional[Decimal]
    remaining: Decimal
    currency: str


@dataclass(frozen=True)
class GoalProgress:
    goal: Goal
    expected_progress: Decimal
    actual_progress: Decimal
    progress_percentage: Decimal
    is_on_track: bool


@dataclass(frozen=True)
class FinancialSummary:
    currency: str
    total_expenses: Decimal
    total_income: Decimal
    total_budget: Decimal
    remaining_budget: Decimal
    savings_rate: Decimal
    expenses_by_category: dict[str, Decimal] = field(default_factory=dict)
    expenses_by_month: dict[str, Decimal] = field(default_factory=dict)
    budget_adherence: List[BudgetAdherence] = field(default_factory=list)
    goal_progress: List[GoalProgress] = field(default_factory=list)
    budget_count: int = 0
    goal_count: int = 0
    income_count: int = 0


def total_amount(
    records: Iterable[Expense | Budget | Income],
    target_currency: str,
    rate_provider: RateProvider | None = None,
) -> Decimal:
    total = ZERO
    for record in records:
        total += convert_amount(
            record.amount, record.currency, target_currency, rate_provider=rate_provider
        )
    return total


def total_income(
    incomes: Iterable[Income],
    target_currency: str,
    start_date: date | None = None,
    end_date: date | None = None,
    rate_provider: RateProvider | None = None,
) -> Decimal:
    selected = [
        income
        for income in incomes
        if (start_date is None or income.date >= start_date)
        and (end_date is None or income.date <= end_date)
    ]
    return total_amount(selected, target_currency, rate_provider=rate_provider)


def expenses_by_category(
    records: Iterable[Expense],
    target_currency: str,
    rate_provider: RateProvider | None = None,
) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = {}
    for record in records:
        converted = convert_amount(
            record.amount, record.currency, target_currency, rate_provider=rate_provider
        )
        totals[record.category] = totals.get(record.category, ZERO) + converted
    return totals


def expenses_by_month(
    records: Iterable[Expense],
    target_currency: str,
    rate_provider: RateProvider | None = None,
) -> dict[str, Decimal]:
    """Group converted amounts by short month name of each record's UTC date."""
    totals: dict[str, Decimal] = {}
    for record in records:
        month = MONTH_LABELS[parse_record_date(record.date).month - 1]
        converted = convert_amount(
            record.amount, record.currency, target_currency, rate_provider=rate_provider
        )
        totals[month] = totals.get(month, ZERO) + converted
    return totals


def budget_adherence(
    budgets: Iterable[Budget],
    spent_by_category: Mapping[str, Decimal],
    currency: str,
    rate_provider: RateProvider | None = None,
) -> List[BudgetAdherence]:
    """Compare each budget with spending already expressed in ``currency``."""
    results: List[BudgetAdherence] = []
    for budget in budgets:
        budgeted = convert_amount(
            budget.amount, budget.currency, currency, rate_provider=rate_provider
        )
        spent = coerce_amount(spent_by_category.get(budget.category, ZERO))
        if budgeted == ZERO:
            percentage = None
        else:
            percentage = spent / budgeted * HUNDRED
        results.append(
            BudgetAdherence(
                category=budget.category,
                budgeted=budgeted,
                spent=spent,
                adherence_percentage=percentage,
                remaining=budgeted - spent,
                currency=currency,
            )
        )
    return results


def goal_progress(goals: Iterable[Goal], today: date) -> List[GoalProgress]:
    results: List[GoalProgress] = []
    for goal in goals:
        target = coerce_amount(goal.target_amount)
        current = coerce_amount(goal.current_amount)
        total_days = (goal.due_date - goal.start_date).days

        if total_days <= 0 or today >= goal.due_date:
            expected = target
            is_on_track = current >= target
        else:
            days_elapsed = min(max((today - goal.start_date).days, 0), total_days)
            expected = Decimal(days_elapsed) / Decimal(total_days) * target
            is_on_track = current >= expected

        results.append(
            GoalProgress(
                goal=goal,
                expected_progress=expected,
                actual_progress=current,
                progress_percentage=_progress_percentage(current, target),
                is_on_track=is_on_track,
            )
        )
    return results


def savings_rate(total_income: Decimal, total_expenses: Decimal) -> Decimal:
    income = coerce_amount(total_income)
    expenses = coerce_amount(total_expenses)
    if income <= ZERO:
        return ZERO
    return (income - expenses) / income * HUNDRED


def remaining_budget(
    budgets: Iterable[Budget],
    expenses: Iterable[Expense],
    currency: str,
    rate_provider: RateProvider | None = None,
) -> Decimal:
    return total_amount(budgets, currency, rate_provider=rate_provider) - total_amount(
        expenses, currency, rate_provider=rate_provider
    )


def top_category(by_category: Mapping[str, Decimal]) -> Optional[tuple[str, Decimal]]:
    if not by_category:
        return None
    return max(by_category.items(), key=lambda item: item[1])


def summarize(
    expenses: Sequence[Expense],
    budgets: Sequence[Budget],
    goals: Sequence[Goal],
    incomes: Sequence[Income],
    currency: str,
    today: date,
    rate_provider: RateProvider | None = None,
) -> FinancialSummary:
    expense_total = total_amount(expenses, currency, rate_provider=rate_provider)
    income_total = total_amount(incomes, currency, rate_provider=rate_provider)
    budget_total = total_amount(budgets, currency, rate_provider=rate_provider)
    by_category = expenses_by_category(expenses, currency, rate_provider=rate_provider)
    return FinancialSummary(
        currency=currency,
        total_expenses=expense_total,
        total_income=income_total,
        total_budget=budget_total,
        remaining_budget=budget_total - expense_total,
        savings_rate=savings_rate(income_total, expense_total),
        expenses_by_category=by_category,
        expenses_by_month=expenses_by_month(expenses, currency, rate_provider=rate_provider),
        budget_adherence=budget_adherence(
            budgets, by_category, currency, rate_provider=rate_provider
        ),
        goal_progress=goal_progress(goals, today),
        budget_count=len(budgets),
        goal_count=len(goals),
        income_count=len(incomes),
    )


def _progress_percentage(current: Decimal, target: Decimal) -> Decimal:
    if target <= ZERO:
        return HUNDRED
    percentage = current / target * HUNDRED
    return max(ZERO, min(HUNDRED, percentage))


@dataclass(frozen=True)
class FinancialData:
    currency: str
    expenses: List[Expense]
    total_expenses: Decimal
    total_budget: Decimal
    remaining_budget: Decimal


def financial_data(
    expenses: Iterable[Expense],
    budgets: Iterable[Budget],
    start_date: date,
    end_date: date,
    selected_categories: Sequence[str],
    currency: str,
    rate_provider: RateProvider | None = None,
) -> FinancialData:
    """Windowed, category-filtered expenses restated in ``currency``.

    An empty ``selected_categories`` keeps every category. Budgets are
    filtered by category only, not by date.
    """
    wanted = set(selected_categories)
    selected = [
        expense
        for expense in filter_by_date_range(expenses, start_date, end_date, "expenses")
        if not wanted or expense.category in wanted
    ]
    converted = [
        replace(
            expense,
            amount=convert_amount(
                expense.amount, expense.currency, currency, rate_provider=rate_provider
            ),
            currency=currency,
        )
        for expense in selected
    ]
    expense_total = sum((expense.amount for expense in converted), ZERO)
    budget_total = total_amount(
        [budget for budget in budgets if not wanted or budget.category in wanted],
        currency,
        rate_provider=rate_provider,
    )
    return FinancialData(
        currency=currency,
        expenses=converted,
        total_expenses=expense_total,
        total_budget=budget_total,
        remaining_budget=budget_total - expense_total,
    )
