import io
import tempfile
import unittest
from datetime import date
from decimal import Decimal
from pathlib import Path

from openpyxl import load_workbook

from backend.records import Budget, Expense, Goal
from backend.report_export import (
    EXCEL_FILENAME,
    NO_EXPENSES_TEXT,
    PDF_FILENAME,
    ReportSnapshot,
    build_report_data,
    export_financial_report,
    export_to_excel,
    export_to_pdf,
    render_excel,
)


def sample_snapshot() -> ReportSnapshot:
    return ReportSnapshot(
        expenses=[
            Expense(1, "Groceries", Decimal("80"), "USD", "Food", date(2024, 5, 3)),
            Expense(2, "Dinner", Decimal("17"), "EUR", "Food", date(2024, 5, 20)),
            Expense(3, "Bus pass", Decimal("60"), "USD", "Transport", date(2024, 5, 9)),
            Expense(4, "Old rent", Decimal("900"), "USD", "Housing", date(2024, 4, 1)),
        ],
        budgets=[
            Budget(1, "Food", Decimal("150"), "USD", "monthly", date(2024, 5, 1), date(2024, 5, 31)),
        ],
        goals=[
            Goal(
                1,
                "Vacation",
                Decimal("2000"),
                Decimal("500"),
                "USD",
                date(2024, 1, 1),
                date(2024, 5, 31),
            ),
        ],
    )


class BuildReportDataTests(unittest.TestCase):
    def test_totals_are_recomputed_from_window(self) -> None:
        data = build_report_data(
            sample_snapshot(), "USD", date(2024, 5, 1), date(2024, 5, 31), "monthly"
        )

        self.assertEqual(data.total_expenses, Decimal("160"))
        self.assertEqual(data.total_budget, Decimal("150"))
        self.assertEqual(data.budget_performance, Decimal("-10"))
        rows = {row.category: row for row in data.category_rows}
        self.assertEqual(set(rows), {"Food", "Transport"})
        self.assertEqual(rows["Food"].actual, Decimal("100"))
        self.assertEqual(rows["Food"].difference, Decimal("-50"))
        self.assertEqual(rows["Transport"].budget, Decimal("0"))
        self.assertEqual(data.goal_rows[0].progress, Decimal("0.25"))
        self.assertIn("exceed your budget", data.insights[0])

    def test_empty_window_has_zero_overview(self) -> None:
        data = build_report_data(
            sample_snapshot(), "USD", date(2020, 1, 1), date(2020, 1, 31), "monthly"
        )

        self.assertEqual(data.total_expenses, Decimal("0"))
        self.assertEqual(data.category_rows, [])
        self.assertEqual(data.goal_rows, [])

    def test_date_range_label(self) -> None:
        data = build_report_data(ReportSnapshot(), "USD", "2024-05-01", "2024-05-31", "monthly")

        self.assertEqual(data.date_range_label, "May 1, 2024 - May 31, 2024")


class ExportTests(unittest.TestCase):
    def test_pdf_export_returns_pdf_bytes(self) -> None:
        result = export_to_pdf(
            sample_snapshot(), "USD", date(2024, 5, 1), date(2024, 5, 31), "monthly"
        )

        self.assertTrue(result.ok)
        self.assertEqual(result.filename, PDF_FILENAME)
        self.assertEqual(result.message, "Comprehensive PDF summary exported successfully!")
        self.assertTrue(result.content.startswith(b"%PDF"))

    def test_pdf_export_of_empty_snapshot_succeeds(self) -> None:
        result = export_to_pdf(ReportSnapshot(), "GBP", date(2024, 5, 1), date(2024, 5, 31), "monthly")

        self.assertTrue(result.ok)

    def test_excel_export_layout(self) -> None:
        result = export_to_excel(
            sample_snapshot(), "USD", date(2024, 5, 1), date(2024, 5, 31), "monthly"
        )

        self.assertTrue(result.ok)
        self.assertEqual(result.filename, EXCEL_FILENAME)
        sheet = load_workbook(io.BytesIO(result.content)).active
        self.assertEqual(sheet.title, "Financial Summary")
        self.assertEqual(sheet["A1"].value, "Comprehensive Financial Summary")
        self.assertTrue(sheet["A1"].font.bold)
        self.assertEqual(sheet["A1"].fill.fgColor.rgb, "00DDDDDD")
        self.assertEqual(sheet.column_dimensions["A"].width, 20)
        self.assertEqual(sheet.column_dimensions["E"].width, 15)
        values = [row[0] for row in sheet.iter_rows(values_only=True)]
        self.assertIn("Total Expenses", values)
        self.assertIn("Savings Goals", values)

    def test_excel_render_without_expenses(self) -> None:
        data = build_report_data(ReportSnapshot(), "USD", date(2024, 5, 1), date(2024, 5, 31), "monthly")
        sheet = load_workbook(io.BytesIO(render_excel(data))).active

        overview = {row[0]: row[1] for row in sheet.iter_rows(values_only=True) if row and row[0]}
        self.assertEqual(overview["Total Expenses"], 0)
        self.assertNotIn(NO_EXPENSES_TEXT, overview)

    def test_unknown_currency_becomes_error_result(self) -> None:
        result = export_to_pdf(sample_snapshot(), "XYZ", date(2024, 5, 1), date(2024, 5, 31), "monthly")

        self.assertFalse(result.ok)
        self.assertEqual(result.kind, "error")
        self.assertTrue(result.message.startswith("Error exporting PDF: "))
        self.assertIsNone(result.content)

    def test_excel_error_message(self) -> None:
        result = export_to_excel(sample_snapshot(), "USD", "not-a-date", "2024-05-31", "monthly")

        self.assertFalse(result.ok)
        self.assertTrue(result.message.startswith("Error exporting Excel file: "))

    def test_export_writes_file_when_directory_given(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            result = export_to_excel(
                sample_snapshot(),
                "USD",
                date(2024, 5, 1),
                date(2024, 5, 31),
                "monthly",
                output_dir=tmp,
            )

            self.assertTrue(result.ok)
            self.assertEqual((Path(tmp) / EXCEL_FILENAME).read_bytes(), result.content)


class ExportDispatchTests(unittest.TestCase):
    def test_dispatches_on_export_type(self) -> None:
        pdf = export_financial_report(sample_snapshot(), "USD", "monthly", "pdf", today=date(2024, 5, 15))
        excel = export_financial_report(sample_snapshot(), "USD", "monthly", "EXCEL", today=date(2024, 5, 15))

        self.assertEqual(pdf.filename, PDF_FILENAME)
        self.assertEqual(excel.filename, EXCEL_FILENAME)

    def test_invalid_export_type(self) -> None:
        result = export_financial_report(sample_snapshot(), "USD", "monthly", "csv")

        self.assertEqual(result.kind, "error")
        self.assertEqual(result.message, "Invalid export type specified")


if __name__ == "__main__":
    unittest.main()
