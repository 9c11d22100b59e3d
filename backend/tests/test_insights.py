import unittest
from datetime import date
from decimal import Decimal

from backend.aggregation import BudgetAdherence, summarize
from backend.insights import (
    InsightFigures,
    generate_insights,
    generate_recommendations,
    join_messages,
    report_insights,
    report_recommendations,
    saving_suggestion,
)
from backend.records import Goal


def make_goal(name: str, current: str, due: date) -> Goal:
    return Goal(
        id=None,
        name=name,
        target_amount=Decimal("1000"),
        current_amount=Decimal(current),
        currency="USD",
        start_date=date(2024, 1, 1),
        due_date=due,
    )


class DashboardInsightTests(unittest.TestCase):
    def test_overspending_message(self) -> None:
        insights = generate_insights(InsightFigures(savings_rate=Decimal("-5")))

        self.assertTrue(insights[0].startswith("You're currently spending more than you're earning."))

    def test_savings_bands_are_exclusive(self) -> None:
        cases = {
            Decimal("10"): "below 20%",
            Decimal("20"): "Great job!",
            Decimal("30"): "Excellent!",
        }
        for rate, fragment in cases.items():
            with self.subTest(rate=rate):
                insights = generate_insights(InsightFigures(savings_rate=rate))
                self.assertEqual(len(insights), 1)
                self.assertIn(fragment, insights[0])

    def test_top_category_share(self) -> None:
        figures = InsightFigures(
            savings_rate=Decimal("25"),
            total_expenses=Decimal("200"),
            expenses_by_category={"Food": Decimal("150"), "Fun": Decimal("50")},
        )

        insights = generate_insights(figures)

        self.assertIn(
            "Your highest expense category is Food, accounting for 75.00% of your total expenses.",
            insights,
        )

    def test_over_budget_count(self) -> None:
        adherence = [
            BudgetAdherence("Food", Decimal("100"), Decimal("120"), Decimal("120"), Decimal("-20"), "USD"),
            BudgetAdherence("Rent", Decimal("100"), Decimal("90"), Decimal("90"), Decimal("10"), "USD"),
        ]

        insights = generate_insights(InsightFigures(savings_rate=Decimal("25"), budget_adherence=adherence))

        self.assertIn("You're over budget in 1 category.", insights)

    def test_next_goal_due_date(self) -> None:
        figures = InsightFigures(
            savings_rate=Decimal("25"),
            goals=[
                make_goal("Holiday", "0", date(2025, 7, 1)),
                make_goal("Laptop", "0", date(2024, 9, 15)),
            ],
        )

        insights = generate_insights(figures)

        self.assertEqual(insights[-1], 'Your next financial goal "Laptop" is due on Sep 15, 2024.')

    def test_recommendations_for_empty_account(self) -> None:
        recommendations = generate_recommendations(InsightFigures())

        self.assertEqual(len(recommendations), 4)
        self.assertTrue(recommendations[0].startswith("Aim to save at least 20%"))
        self.assertIn("Set up budgets", recommendations[1])

    def test_insights_from_summary_follow_rule_order(self) -> None:
        summary = summarize([], [], [make_goal("Fund", "0", date(2024, 12, 31))], [], "USD", date(2024, 6, 1))

        insights = generate_insights(InsightFigures.from_summary(summary))

        self.assertIn("below 20%", insights[0])
        self.assertEqual(insights[1], "1 of your financial goals is off track.")


class ReportInsightTests(unittest.TestCase):
    def test_within_budget_with_strong_savings(self) -> None:
        figures = InsightFigures(
            total_expenses=Decimal("500"),
            total_budget=Decimal("1000"),
            expenses_by_category={"Food": Decimal("500")},
        )

        insights = report_insights(figures)

        self.assertEqual(len(insights), 3)
        self.assertIn("staying within your budget", insights[0])
        self.assertIn("over 20%", insights[1])
        self.assertIn("Food", insights[2])

    def test_over_budget_report(self) -> None:
        figures = InsightFigures(total_expenses=Decimal("1200"), total_budget=Decimal("1000"))

        self.assertIn("exceed your budget", report_insights(figures)[0])
        self.assertIn("close to exceeding", report_recommendations(figures)[0])

    def test_unmet_goals_and_few_categories(self) -> None:
        figures = InsightFigures(
            total_budget=Decimal("100"),
            goals=[make_goal("A", "10", date(2024, 5, 1)), make_goal("B", "1000", date(2024, 6, 1))],
        )

        recommendations = report_recommendations(figures)

        self.assertEqual(len(recommendations), 2)
        self.assertIn("You have 1 savings goal that is not yet met.", recommendations[0])
        self.assertIn("only a few categories", recommendations[1])

    def test_join_messages(self) -> None:
        self.assertEqual(join_messages(["One.", "Two."]), "One. Two.")
        self.assertEqual(join_messages([]), "")


class SavingSuggestionTests(unittest.TestCase):
    def test_high_expense_ratio_suggests_cutting_back(self) -> None:
        self.assertEqual(
            saving_suggestion(Decimal("1000"), Decimal("950")),
            "Consider reducing expenses in non-essential categories.",
        )

    def test_low_savings_suggests_saving_twenty_percent(self) -> None:
        self.assertEqual(
            saving_suggestion(Decimal("1000"), Decimal("850")),
            "Try to save at least 20% of your income each month.",
        )

    def test_healthy_finances(self) -> None:
        self.assertEqual(
            saving_suggestion(Decimal("1000"), Decimal("800")),
            "Great job managing your finances! Keep it up!",
        )

    def test_no_income_with_spending(self) -> None:
        self.assertIn("reducing expenses", saving_suggestion(Decimal("0"), Decimal("10")))


if __name__ == "__main__":
    unittest.main()
