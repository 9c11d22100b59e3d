import unittest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from backend.date_range import (
    DateParseError,
    filter_by_date_range,
    get_date_range_for_report_type,
    parse_record_date,
)
from backend.records import Budget, Expense, Goal, Income


def make_expense(when) -> Expense:
    return Expense(
        id=None,
        description="",
        amount=Decimal("1"),
        currency="USD",
        category="Food",
        date=when,
    )


class ParseRecordDateTests(unittest.TestCase):
    def test_accepts_iso_strings(self) -> None:
        self.assertEqual(parse_record_date("2024-02-29"), date(2024, 2, 29))
        self.assertEqual(parse_record_date("2024-02-29T23:10:00"), date(2024, 2, 29))

    def test_aware_datetimes_are_read_in_utc(self) -> None:
        late_evening = datetime(2024, 3, 31, 22, 0, tzinfo=timezone(timedelta(hours=-5)))

        self.assertEqual(parse_record_date(late_evening), date(2024, 4, 1))
        self.assertEqual(parse_record_date("2024-03-31T22:00:00Z"), date(2024, 3, 31))

    def test_rejects_garbage(self) -> None:
        for value in ("", "31/03/2024", "not a date", 20240331, None):
            with self.subTest(value=value):
                with self.assertRaises(DateParseError):
                    parse_record_date(value)


class FilterByDateRangeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.records = [
            make_expense(date(2024, 1, 31)),
            make_expense(date(2024, 2, 1)),
            make_expense(date(2024, 2, 15)),
            make_expense(date(2024, 2, 29)),
            make_expense(date(2024, 3, 1)),
        ]

    def test_bounds_are_inclusive(self) -> None:
        selected = filter_by_date_range(
            self.records, date(2024, 2, 1), date(2024, 2, 29), "expenses"
        )

        self.assertEqual([record.date for record in selected], [
            date(2024, 2, 1),
            date(2024, 2, 15),
            date(2024, 2, 29),
        ])

    def test_result_is_subset_in_input_order(self) -> None:
        selected = filter_by_date_range(self.records, "2024-01-01", "2024-12-31", "expenses")

        self.assertEqual(selected, self.records)

    def test_goals_are_matched_on_due_date(self) -> None:
        goal = Goal(
            id=1,
            name="Car",
            target_amount=Decimal("5000"),
            current_amount=Decimal("0"),
            currency="USD",
            start_date=date(2023, 1, 1),
            due_date=date(2024, 6, 30),
        )

        self.assertEqual(
            filter_by_date_range([goal], date(2024, 6, 1), date(2024, 6, 30), "goals"),
            [goal],
        )
        self.assertEqual(
            filter_by_date_range([goal], date(2023, 1, 1), date(2023, 12, 31), "goals"),
            [],
        )

    def test_budgets_are_matched_on_start_date(self) -> None:
        budgets = [
            Budget(1, "Rent", Decimal("900"), "USD", "monthly", date(2024, 1, 15), date(2024, 2, 14)),
            Budget(2, "Food", Decimal("300"), "USD", "monthly", date(2024, 2, 1), date(2024, 2, 29)),
            Budget(3, "Fun", Decimal("50"), "USD", "monthly", date(2024, 2, 29), date(2024, 3, 31)),
            Budget(4, "Gym", Decimal("40"), "USD", "monthly", date(2024, 3, 1), date(2024, 3, 31)),
        ]

        selected = filter_by_date_range(budgets, date(2024, 2, 1), date(2024, 2, 29), "budgets")

        # Budget 1 overlaps the window but starts before it.
        self.assertEqual([budget.id for budget in selected], [2, 3])

    def test_income_is_matched_on_date(self) -> None:
        incomes = [
            Income(index, "Job", Decimal("100"), "USD", "monthly", "Salary", when)
            for index, when in enumerate(
                [date(2024, 1, 31), date(2024, 2, 1), date(2024, 2, 29), date(2024, 3, 1)]
            )
        ]

        selected = filter_by_date_range(incomes, date(2024, 2, 1), date(2024, 2, 29), " Income ")

        self.assertEqual([item.date for item in selected], [date(2024, 2, 1), date(2024, 2, 29)])

    def test_unknown_kind_raises(self) -> None:
        with self.assertRaises(ValueError):
            filter_by_date_range(self.records, date(2024, 1, 1), date(2024, 2, 1), "transfers")

    def test_reversed_range_raises(self) -> None:
        with self.assertRaises(ValueError):
            filter_by_date_range(self.records, date(2024, 3, 1), date(2024, 2, 1), "expenses")

    def test_unparseable_record_date_raises(self) -> None:
        with self.assertRaises(DateParseError):
            filter_by_date_range(
                [make_expense("someday")], date(2024, 1, 1), date(2024, 2, 1), "expenses"
            )


class ReportTypeRangeTests(unittest.TestCase):
    def test_weekly_runs_sunday_to_saturday(self) -> None:
        # 2024-05-15 is a Wednesday.
        self.assertEqual(
            get_date_range_for_report_type("weekly", date(2024, 5, 15)),
            (date(2024, 5, 12), date(2024, 5, 18)),
        )

    def test_weekly_on_sunday_starts_same_day(self) -> None:
        self.assertEqual(
            get_date_range_for_report_type("weekly", date(2024, 5, 12)),
            (date(2024, 5, 12), date(2024, 5, 18)),
        )

    def test_monthly_covers_calendar_month(self) -> None:
        self.assertEqual(
            get_date_range_for_report_type("monthly", date(2024, 2, 10)),
            (date(2024, 2, 1), date(2024, 2, 29)),
        )

    def test_quarterly_covers_calendar_quarter(self) -> None:
        self.assertEqual(
            get_date_range_for_report_type("quarterly", date(2024, 11, 3)),
            (date(2024, 10, 1), date(2024, 12, 31)),
        )

    def test_yearly_covers_calendar_year(self) -> None:
        self.assertEqual(
            get_date_range_for_report_type("yearly", date(2024, 7, 4)),
            (date(2024, 1, 1), date(2024, 12, 31)),
        )

    def test_unknown_type_falls_back_to_month(self) -> None:
        self.assertEqual(
            get_date_range_for_report_type("fortnightly", date(2023, 4, 20)),
            (date(2023, 4, 1), date(2023, 4, 30)),
        )


if __name__ == "__main__":
    unittest.main()
