"""Rule-based insight and recommendation text.

Each table is an ordered list of ``Rule`` entries. Evaluation walks a table
front to back and keeps the message of every rule whose predicate matches,
so output order always follows table order.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, List, Mapping, Optional, Sequence

from backend.aggregation import (
    HUNDRED,
    MONTH_LABELS,
    ZERO,
    BudgetAdherence,
    FinancialSummary,
    GoalProgress,
    top_category,
)
from backend.currency_conversion import coerce_amount
from backend.records import Goal

MIN_CATEGORY_COUNT = 5
BUDGET_WARNING_RATIO = Decimal("0.9")
TARGET_SAVINGS_RATE = Decimal("20")
STRONG_SAVINGS_RATE = Decimal("30")


@dataclass(frozen=True)
class InsightFigures:
    """Aggregate figures a rule table can look at."""

    total_expenses: Decimal = ZERO
    total_income: Decimal = ZERO
    total_budget: Decimal = ZERO
    savings_rate: Decimal = ZERO
    expenses_by_category: Mapping[str, Decimal] = field(default_factory=dict)
    budget_adherence: Sequence[BudgetAdherence] = ()
    goal_progress: Sequence[GoalProgress] = ()
    goals: Sequence[Goal] = ()
    budget_count: int = 0
    income_count: int = 0

    @property
    def top_category(self) -> Optional[tuple[str, Decimal]]:
        return top_category(self.expenses_by_category)

    @property
    def budget_savings_ratio(self) -> Optional[Decimal]:
        if self.total_budget <= ZERO:
            return None
        return (self.total_budget - self.total_expenses) / self.total_budget

    @property
    def over_budget(self) -> List[BudgetAdherence]:
        return [
            item
            for item in self.budget_adherence
            if item.adherence_percentage is not None and item.adherence_percentage > HUNDRED
        ]

    @property
    def off_track_goals(self) -> List[GoalProgress]:
        return [item for item in self.goal_progress if not item.is_on_track]

    @property
    def unmet_goals(self) -> List[Goal]:
        return [goal for goal in self.goals if goal.current_amount < goal.target_amount]

    @property
    def next_goal(self) -> Optional[Goal]:
        if not self.goals:
            return None
        return min(self.goals, key=lambda goal: goal.due_date)

    @classmethod
    def from_summary(cls, summary: FinancialSummary) -> "InsightFigures":
        return cls(
            total_expenses=summary.total_expenses,
            total_income=summary.total_income,
            total_budget=summary.total_budget,
            savings_rate=summary.savings_rate,
            expenses_by_category=summary.expenses_by_category,
            budget_adherence=summary.budget_adherence,
            goal_progress=summary.goal_progress,
            goals=[item.goal for item in summary.goal_progress],
            budget_count=summary.budget_count,
            income_count=summary.income_count,
        )


@dataclass(frozen=True)
class Rule:
    predicate: Callable[[InsightFigures], bool]
    message: Callable[[InsightFigures], str]


def _text(value: str) -> Callable[[InsightFigures], str]:
    return lambda figures: value


def _top_category_share(figures: InsightFigures) -> str:
    name, amount = figures.top_category
    share = amount / figures.total_expenses * HUNDRED
    return (
        f"Your highest expense category is {name}, accounting for "
        f"{share:.2f}% of your total expenses."
    )


def _next_goal_due(figures: InsightFigures) -> str:
    goal = figures.next_goal
    return f'Your next financial goal "{goal.name}" is due on {_display_date(goal.due_date)}.'


DASHBOARD_INSIGHTS: List[Rule] = [
    Rule(
        lambda f: f.savings_rate < ZERO,
        _text(
            "You're currently spending more than you're earning. Consider reviewing "
            "your expenses to find areas where you can cut back."
        ),
    ),
    Rule(
        lambda f: ZERO <= f.savings_rate < TARGET_SAVINGS_RATE,
        _text(
            "Your current savings rate is below 20%. Try to increase your savings "
            "to build a stronger financial foundation."
        ),
    ),
    Rule(
        lambda f: TARGET_SAVINGS_RATE <= f.savings_rate < STRONG_SAVINGS_RATE,
        _text("Great job! You're saving more than 20% of your income."),
    ),
    Rule(
        lambda f: f.savings_rate >= STRONG_SAVINGS_RATE,
        _text(
            "Excellent! You're saving 30% or more of your income, which puts you "
            "in a strong financial position."
        ),
    ),
    Rule(
        lambda f: f.top_category is not None and f.total_expenses > ZERO,
        _top_category_share,
    ),
    Rule(
        lambda f: bool(f.over_budget),
        lambda f: (
            f"You're over budget in {len(f.over_budget)} "
            f"{_plural(len(f.over_budget), 'category', 'categories')}."
        ),
    ),
    Rule(
        lambda f: bool(f.off_track_goals),
        lambda f: (
            f"{len(f.off_track_goals)} of your financial goals "
            f"{_plural(len(f.off_track_goals), 'is', 'are')} off track."
        ),
    ),
    Rule(lambda f: f.next_goal is not None, _next_goal_due),
]

DASHBOARD_RECOMMENDATIONS: List[Rule] = [
    Rule(
        lambda f: f.savings_rate < TARGET_SAVINGS_RATE,
        _text(
            "Aim to save at least 20% of your income. Look for areas where you "
            "can reduce expenses."
        ),
    ),
    Rule(
        lambda f: f.top_category is not None,
        lambda f: (
            "Consider ways to reduce spending in your highest expense category: "
            f"{f.top_category[0]}."
        ),
    ),
    Rule(
        lambda f: f.budget_count == 0,
        _text(
            "Set up budgets for your main expense categories to better track and "
            "control your spending."
        ),
    ),
    Rule(
        lambda f: not f.goals,
        _text("Set some financial goals to give direction to your saving and spending habits."),
    ),
    Rule(
        lambda f: f.income_count == 0,
        _text("Make sure to track all your income sources for a complete financial picture."),
    ),
]

REPORT_INSIGHTS: List[Rule] = [
    Rule(
        lambda f: f.total_expenses > f.total_budget,
        _text(
            "Your total expenses exceed your budget. It's recommended to review your "
            "spending habits and identify areas where you can cut back."
        ),
    ),
    Rule(
        lambda f: f.total_expenses <= f.total_budget,
        _text(
            "You're staying within your budget, which is excellent financial "
            "management. Keep up the good work!"
        ),
    ),
    Rule(
        lambda f: f.budget_savings_ratio is not None
        and f.budget_savings_ratio > Decimal("0.2"),
        _text(
            "Your savings rate is over 20%, which is a strong financial position. "
            "Consider investing some of these savings for long-term growth."
        ),
    ),
    Rule(
        lambda f: f.budget_savings_ratio is not None
        and ZERO < f.budget_savings_ratio <= Decimal("0.2"),
        _text(
            "You have a positive savings rate, but there's room for improvement. Try "
            "to increase your savings to at least 20% of your income."
        ),
    ),
    Rule(
        lambda f: f.top_category is not None,
        lambda f: (
            f"Your highest expense category is {f.top_category[0]}. Consider if there "
            "are ways to optimize spending in this area."
        ),
    ),
]

REPORT_RECOMMENDATIONS: List[Rule] = [
    Rule(
        lambda f: f.total_expenses > f.total_budget * BUDGET_WARNING_RATIO,
        _text(
            "You're close to exceeding your budget. It's advisable to review your "
            "non-essential expenses and consider reducing them."
        ),
    ),
    Rule(
        lambda f: bool(f.unmet_goals),
        lambda f: (
            f"You have {len(f.unmet_goals)} savings "
            f"{_plural(len(f.unmet_goals), 'goal', 'goals')} that "
            f"{_plural(len(f.unmet_goals), 'is', 'are')} not yet met. Consider "
            "allocating more funds to these goals if possible."
        ),
    ),
    Rule(
        lambda f: len(f.expenses_by_category) < MIN_CATEGORY_COUNT,
        _text(
            "Your expenses are categorized into only a few categories. For better "
            "financial management, consider breaking down your expenses into more "
            "detailed categories."
        ),
    ),
]


def evaluate_rules(rules: Iterable[Rule], figures: InsightFigures) -> List[str]:
    return [rule.message(figures) for rule in rules if rule.predicate(figures)]


def generate_insights(figures: InsightFigures) -> List[str]:
    return evaluate_rules(DASHBOARD_INSIGHTS, figures)


def generate_recommendations(figures: InsightFigures) -> List[str]:
    return evaluate_rules(DASHBOARD_RECOMMENDATIONS, figures)


def report_insights(figures: InsightFigures) -> List[str]:
    return evaluate_rules(REPORT_INSIGHTS, figures)


def report_recommendations(figures: InsightFigures) -> List[str]:
    return evaluate_rules(REPORT_RECOMMENDATIONS, figures)


def join_messages(messages: Iterable[str], separator: str = " ") -> str:
    return separator.join(messages)


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def _display_date(value: date) -> str:
    return f"{MONTH_LABELS[value.month - 1]} {value.day}, {value.year}"


SAVING_SUGGESTIONS = {
    "reduce": "Consider reducing expenses in non-essential categories.",
    "save": "Try to save at least 20% of your income each month.",
    "keep": "Great job managing your finances! Keep it up!",
}


def saving_suggestion(total_income: Decimal, total_expenses: Decimal) -> str:
    """One headline suggestion from the expense ratio and net savings."""
    income = coerce_amount(total_income)
    expenses = coerce_amount(total_expenses)
    if expenses > income * BUDGET_WARNING_RATIO:
        return SAVING_SUGGESTIONS["reduce"]
    if income - expenses < income * TARGET_SAVINGS_RATE / HUNDRED:
        return SAVING_SUGGESTIONS["save"]
    return SAVING_SUGGESTIONS["keep"]
