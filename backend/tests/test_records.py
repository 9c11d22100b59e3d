import unittest
from datetime import date
from decimal import Decimal

from backend.currency_conversion import UnknownCurrencyError
from backend.records import (
    IncomeFrequency,
    budget_from_mapping,
    expense_from_mapping,
    goal_from_mapping,
    income_from_mapping,
)


class RecordBuilderTests(unittest.TestCase):
    def test_expense_is_normalized(self) -> None:
        expense = expense_from_mapping(
            {
                "id": 4,
                "description": "  Lunch ",
                "amount": "12.40",
                "currency": "eur",
                "category": "Food",
                "date": "2024-03-05",
                "notes": "   ",
            }
        )

        self.assertEqual(expense.description, "Lunch")
        self.assertEqual(expense.amount, Decimal("12.40"))
        self.assertEqual(expense.currency, "EUR")
        self.assertEqual(expense.date, date(2024, 3, 5))
        self.assertIsNone(expense.notes)

    def test_expense_rejects_bad_values(self) -> None:
        base = {"amount": "1", "currency": "USD", "category": "Food", "date": "2024-01-01"}
        for key, value in (
            ("amount", "-1"),
            ("amount", "abc"),
            ("amount", "NaN"),
            ("category", " "),
            ("date", "yesterday"),
        ):
            with self.subTest(key=key, value=value):
                with self.assertRaises(ValueError):
                    expense_from_mapping({**base, key: value})

    def test_unknown_currency_is_rejected(self) -> None:
        with self.assertRaises(UnknownCurrencyError):
            expense_from_mapping(
                {"amount": "1", "currency": "XYZ", "category": "Food", "date": "2024-01-01"}
            )

    def test_budget_period_and_dates(self) -> None:
        budget = budget_from_mapping(
            {
                "category": "Rent",
                "amount": 900,
                "currency": "USD",
                "period": "Monthly",
                "start_date": "2024-01-01",
                "end_date": "2024-01-31",
            }
        )
        self.assertEqual(budget.period, "monthly")

        with self.assertRaises(ValueError):
            budget_from_mapping(
                {
                    "category": "Rent",
                    "amount": 900,
                    "currency": "USD",
                    "start_date": "2024-02-01",
                    "end_date": "2024-01-31",
                }
            )

    def test_income_frequency_aliases(self) -> None:
        self.assertEqual(IncomeFrequency.validate("Bi-Weekly"), "biweekly")
        self.assertEqual(IncomeFrequency.validate("yearly"), "annually")
        self.assertEqual(IncomeFrequency.validate("One Time"), "one-time")
        with self.assertRaises(ValueError):
            IncomeFrequency.validate("hourly")

        income = income_from_mapping(
            {"source": "Job", "amount": "10", "currency": "USD", "date": "2024-01-01"}
        )
        self.assertEqual(income.frequency, "one-time")
        self.assertEqual(income.category, "Other")
        self.assertFalse(income.is_recurring)

    def test_goal_milestones_from_text(self) -> None:
        goal = goal_from_mapping(
            {
                "name": "House",
                "target_amount": "50000",
                "currency": "USD",
                "start_date": "2024-01-01",
                "due_date": "2026-01-01",
                "milestones": "Save 10k\n\nSave 25k\n",
            }
        )

        self.assertEqual(goal.milestones, ("Save 10k", "Save 25k"))
        self.assertEqual(goal.current_amount, Decimal("0"))
        self.assertIsNone(goal.monthly_contribution)


if __name__ == "__main__":
    unittest.main()
