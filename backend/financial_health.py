from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import List

from backend.aggregation import HUNDRED, ZERO, FinancialSummary
from backend.insights import InsightFigures, Rule, evaluate_rules

SAVINGS_POINTS = Decimal("30")
CASHFLOW_POINTS = Decimal("20")
BUDGET_POINTS = Decimal("25")
GOAL_POINTS = Decimal("25")


@dataclass(frozen=True)
class Badge:
    title: str
    description: str


@dataclass(frozen=True)
class HealthReport:
    score: int
    tips: List[str] = field(default_factory=list)
    badges: List[Badge] = field(default_factory=list)


def health_score(summary: FinancialSummary) -> int:
    score = min(SAVINGS_POINTS, summary.savings_rate)

    if summary.total_income > ZERO:
        cashflow_ratio = max(
            ZERO, (summary.total_income - summary.total_expenses) / summary.total_income
        )
        score += min(CASHFLOW_POINTS, cashflow_ratio * CASHFLOW_POINTS)

    if summary.budget_adherence:
        within = [
            item
            for item in summary.budget_adherence
            if item.adherence_percentage is None or item.adherence_percentage <= HUNDRED
        ]
        score += Decimal(len(within)) / Decimal(len(summary.budget_adherence)) * BUDGET_POINTS

    if summary.goal_progress:
        on_track = [item for item in summary.goal_progress if item.is_on_track]
        score += Decimal(len(on_track)) / Decimal(len(summary.goal_progress)) * GOAL_POINTS

    bounded = max(ZERO, min(HUNDRED, score))
    return int(bounded.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


HEALTH_TIPS: List[Rule] = [
    Rule(
        lambda f: f.savings_rate < Decimal("20"),
        lambda f: "Try to increase your savings rate to at least 20% of your income.",
    ),
    Rule(
        lambda f: f.total_expenses > f.total_income * Decimal("0.7"),
        lambda f: "Your expenses are high relative to your income. Look for areas to cut back.",
    ),
    Rule(
        lambda f: bool(f.over_budget),
        lambda f: (
            f"You're over budget in {len(f.over_budget)} categories. "
            "Review your spending in these areas."
        ),
    ),
    Rule(
        lambda f: bool(f.off_track_goals),
        lambda f: (
            f"You have {len(f.off_track_goals)} financial goals that are off track. "
            "Consider adjusting your strategy or increasing contributions."
        ),
    ),
]


def _all_budgets_under(figures: InsightFigures, ceiling: Decimal) -> bool:
    return all(
        item.adherence_percentage is None or item.adherence_percentage <= ceiling
        for item in figures.budget_adherence
    )


def _all_goals_on_track(figures: InsightFigures) -> bool:
    return all(item.is_on_track for item in figures.goal_progress)


def earned_badges(figures: InsightFigures, score: int) -> List[Badge]:
    candidates = [
        (
            figures.savings_rate >= Decimal("30"),
            Badge("Super Saver", "Saving 30% or more of your income"),
        ),
        (
            figures.total_expenses <= figures.total_income * Decimal("0.4"),
            Badge("Frugal Master", "Spending less than 40% of your income"),
        ),
        (
            _all_budgets_under(figures, Decimal("90")),
            Badge("Budget Guru", "All budget categories under 90% spent"),
        ),
        (
            _all_goals_on_track(figures),
            Badge("Goal Crusher", "All financial goals on track"),
        ),
        (
            score >= 90,
            Badge("Financial Wellness", "Overall financial health score of 90+"),
        ),
        (
            figures.savings_rate >= Decimal("50"),
            Badge("FIRE Enthusiast", "Saving 50% or more of your income"),
        ),
        (
            _all_budgets_under(figures, Decimal("80")) and _all_goals_on_track(figures),
            Badge("Financial Zen Master", "Perfect budgeting and goal tracking"),
        ),
    ]
    return [badge for earned, badge in candidates if earned]


def assess_health(summary: FinancialSummary) -> HealthReport:
    figures = InsightFigures.from_summary(summary)
    score = health_score(summary)
    return HealthReport(
        score=score,
        tips=evaluate_rules(HEALTH_TIPS, figures),
        badges=earned_badges(figures, score),
    )


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str


EXPENSE_TRACKER_COUNT = 10
BUDGET_MASTER_COUNT = 5
SUPER_SAVER_AMOUNT = Decimal("1000")


def check_achievements(
    expense_count: int, budget_count: int, net_savings: Decimal
) -> List[Achievement]:
    """Milestones for record keeping and savings, in a fixed order.

    ``net_savings`` is income minus expenses in the caller's currency.
    """
    candidates = [
        (
            expense_count >= EXPENSE_TRACKER_COUNT,
            Achievement("TRACK_10", "Expense Tracker", "Tracked 10 expenses"),
        ),
        (
            budget_count >= BUDGET_MASTER_COUNT,
            Achievement("BUDGET_5", "Budget Master", "Created 5 budget categories"),
        ),
        (
            net_savings >= SUPER_SAVER_AMOUNT,
            Achievement("SAVE_1000", "Super Saver", "Saved 1,000 or more"),
        ),
    ]
    return [achievement for earned, achievement in candidates if earned]
