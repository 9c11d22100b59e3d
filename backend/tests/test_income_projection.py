import unittest
from datetime import date
from decimal import Decimal

from backend.income_projection import (
    estimate_tax,
    forecast_expenses,
    predict_future_expenses,
    predict_income,
)
from backend.records import Expense, Income


def make_income(amount: str, frequency: str, currency: str = "USD") -> Income:
    return Income(
        id=1,
        source="Employer",
        amount=Decimal(amount),
        currency=currency,
        frequency=frequency,
        category="Salary",
        date=date(2024, 1, 1),
    )


def make_expense(amount: str, when: date) -> Expense:
    return Expense(
        id=1,
        description="Groceries",
        amount=Decimal(amount),
        currency="USD",
        category="Food",
        date=when,
    )


class IncomeProjectionTests(unittest.TestCase):
    def test_monthly_income_repeats_for_each_month(self) -> None:
        projections = predict_income(
            [make_income("3000", "monthly")],
            months=3,
            today=date(2024, 11, 15),
            currency="USD",
        )

        self.assertEqual(
            [entry.month for entry in projections],
            ["November 2024", "December 2024", "January 2025"],
        )
        self.assertTrue(all(entry.amount == Decimal("3000") for entry in projections))

    def test_frequencies_are_scaled_to_monthly(self) -> None:
        projections = predict_income(
            [make_income("1200", "annually"), make_income("300", "quarterly")],
            months=1,
            today=date(2024, 1, 1),
            currency="USD",
        )

        self.assertEqual(projections[0].amount, Decimal("200"))

    def test_one_time_income_is_not_projected(self) -> None:
        projections = predict_income(
            [make_income("500", "one-time")],
            months=2,
            today=date(2024, 1, 1),
            currency="USD",
        )

        self.assertEqual([entry.amount for entry in projections], [Decimal("0"), Decimal("0")])

    def test_income_is_converted_into_target_currency(self) -> None:
        projections = predict_income(
            [make_income("100", "monthly")],
            months=1,
            today=date(2024, 1, 1),
            currency="EUR",
        )

        self.assertEqual(projections[0].amount, Decimal("85"))

    def test_rejects_non_positive_horizon(self) -> None:
        with self.assertRaises(ValueError):
            predict_income([], months=0, today=date(2024, 1, 1), currency="USD")

    def test_expense_forecast_uses_trailing_ninety_days(self) -> None:
        today = date(2024, 6, 30)
        expenses = [
            make_expense("300", date(2024, 6, 1)),
            make_expense("300", date(2024, 4, 15)),
            make_expense("900", date(2024, 1, 1)),
        ]

        projections = forecast_expenses(expenses, months=2, today=today, currency="USD")

        self.assertEqual(len(projections), 2)
        self.assertEqual(projections[0].amount, Decimal("200"))

    def test_future_expenses_add_ten_percent_to_trailing_average(self) -> None:
        today = date(2024, 6, 30)
        expenses = [
            make_expense("300", date(2024, 6, 1)),
            make_expense("300", date(2024, 4, 15)),
            make_expense("900", date(2024, 1, 1)),
        ]

        prediction = predict_future_expenses(expenses, today, "USD")

        self.assertEqual(prediction, Decimal("220"))

    def test_future_expenses_without_history(self) -> None:
        self.assertEqual(predict_future_expenses([], date(2024, 6, 30), "USD"), Decimal("0"))

    def test_future_expenses_rejects_negative_growth(self) -> None:
        with self.assertRaises(ValueError):
            predict_future_expenses([], date(2024, 6, 30), "USD", growth=Decimal("-1"))

    def test_estimate_tax_defaults_to_twenty_percent(self) -> None:
        self.assertEqual(estimate_tax(Decimal("1000")), Decimal("200.0"))

    def test_estimate_tax_rejects_negative_rate(self) -> None:
        with self.assertRaises(ValueError):
            estimate_tax(Decimal("1000"), Decimal("-0.1"))


if __name__ == "__main__":
    unittest.main()
