"""PDF and Excel summaries of a financial snapshot.

Both exporters filter the snapshot to the requested window and recompute
every total from the filtered records; totals computed elsewhere are never
passed in. Failures are logged and returned as an error ``ExportResult`` so
callers can show a message instead of crashing.
"""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import List, Optional, Sequence
from xml.sax.saxutils import escape

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from backend.aggregation import (
    HUNDRED,
    MONTH_LABELS,
    ZERO,
    expenses_by_category,
    goal_progress,
    total_amount,
)
from backend.currency_conversion import (
    RateProvider,
    convert_amount,
    format_currency,
    format_percentage,
    validate_currency,
)
from backend.date_range import (
    MONTH_NAMES,
    filter_by_date_range,
    get_date_range_for_report_type,
    parse_record_date,
)
from backend.insights import InsightFigures, report_insights, report_recommendations
from backend.records import Budget, Expense, Goal, Income

logger = logging.getLogger(__name__)

REPORT_TITLE = "Comprehensive Financial Summary"
PDF_FILENAME = "comprehensive_financial_summary.pdf"
EXCEL_FILENAME = "comprehensive_financial_summary.xlsx"
SHEET_TITLE = "Financial Summary"
EXCEL_COLUMN_WIDTHS = (20, 15, 15, 15, 15)
CENT = Decimal("0.01")

OVERVIEW_HEADER = ("Metric", "Value")
CATEGORY_HEADER = ("Category", "Actual Expense", "% of Total", "Budget", "Difference")
GOAL_HEADER = ("Goal", "Current Amount", "Target Amount", "Progress", "Due Date")
NO_EXPENSES_TEXT = "No expense data available for the selected date range"
NO_GOALS_TEXT = "No savings goals data available for the selected date range"

HEADER_BLUE = colors.Color(41 / 255, 128 / 255, 185 / 255)
STRIPE_GREY = colors.Color(240 / 255, 240 / 255, 240 / 255)
HEADER_FILL = PatternFill(fill_type="solid", start_color="DDDDDD", end_color="DDDDDD")
HEADER_FONT = Font(bold=True, color="000000")


@dataclass(frozen=True)
class ReportSnapshot:
    expenses: Sequence[Expense] = ()
    budgets: Sequence[Budget] = ()
    goals: Sequence[Goal] = ()
    income: Sequence[Income] = ()


@dataclass(frozen=True)
class ExportResult:
    kind: str
    message: str
    filename: Optional[str] = None
    content: Optional[bytes] = None

    @property
    def ok(self) -> bool:
        return self.kind == "success"


@dataclass(frozen=True)
class CategoryRow:
    category: str
    actual: Decimal
    share: Decimal
    budget: Decimal
    difference: Decimal


@dataclass(frozen=True)
class GoalRow:
    name: str
    current: Decimal
    target: Decimal
    progress: Decimal
    due_date: date


@dataclass(frozen=True)
class ReportData:
    currency: str
    start_date: date
    end_date: date
    period_label: str
    total_expenses: Decimal
    total_budget: Decimal
    category_rows: List[CategoryRow] = field(default_factory=list)
    goal_rows: List[GoalRow] = field(default_factory=list)
    insights: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    @property
    def budget_performance(self) -> Decimal:
        return self.total_budget - self.total_expenses

    @property
    def date_range_label(self) -> str:
        return f"{_long_date(self.start_date)} - {_long_date(self.end_date)}"


def build_report_data(
    snapshot: ReportSnapshot,
    currency: str,
    start_date: date | str,
    end_date: date | str,
    period_label: str,
    rate_provider: RateProvider | None = None,
) -> ReportData:
    currency = validate_currency(currency, rate_provider)
    start = parse_record_date(start_date)
    end = parse_record_date(end_date)

    budgets = filter_by_date_range(snapshot.budgets, start, end, "budgets")
    expenses = filter_by_date_range(snapshot.expenses, start, end, "expenses")
    goals = filter_by_date_range(snapshot.goals, start, end, "goals")

    total_expenses = total_amount(expenses, currency, rate_provider=rate_provider)
    total_budget = total_amount(budgets, currency, rate_provider=rate_provider)
    by_category = expenses_by_category(expenses, currency, rate_provider=rate_provider)

    budget_by_category: dict[str, Decimal] = {}
    for budget in budgets:
        budget_by_category.setdefault(
            budget.category,
            convert_amount(budget.amount, budget.currency, currency, rate_provider=rate_provider),
        )

    category_rows = []
    for category, actual in by_category.items():
        budgeted = budget_by_category.get(category, ZERO)
        category_rows.append(
            CategoryRow(
                category=category,
                actual=actual,
                share=actual / total_expenses if total_expenses > ZERO else ZERO,
                budget=budgeted,
                difference=actual - budgeted,
            )
        )

    goal_rows = [
        GoalRow(
            name=item.goal.name,
            current=convert_amount(
                item.goal.current_amount, item.goal.currency, currency, rate_provider=rate_provider
            ),
            target=convert_amount(
                item.goal.target_amount, item.goal.currency, currency, rate_provider=rate_provider
            ),
            progress=item.progress_percentage / HUNDRED,
            due_date=item.goal.due_date,
        )
        for item in goal_progress(goals, end)
    ]

    figures = InsightFigures(
        total_expenses=total_expenses,
        total_budget=total_budget,
        expenses_by_category=by_category,
        goals=goals,
        budget_count=len(budgets),
    )
    return ReportData(
        currency=currency,
        start_date=start,
        end_date=end,
        period_label=period_label,
        total_expenses=total_expenses,
        total_budget=total_budget,
        category_rows=category_rows,
        goal_rows=goal_rows,
        insights=report_insights(figures),
        recommendations=report_recommendations(figures),
    )


def export_to_pdf(
    snapshot: ReportSnapshot,
    currency: str,
    start_date: date | str,
    end_date: date | str,
    period_label: str,
    rate_provider: RateProvider | None = None,
    output_dir: str | Path | None = None,
) -> ExportResult:
    try:
        data = build_report_data(
            snapshot, currency, start_date, end_date, period_label, rate_provider
        )
        content = render_pdf(data)
        _save(content, PDF_FILENAME, output_dir)
    except Exception as exc:
        logger.exception("Error exporting PDF")
        return ExportResult(kind="error", message=f"Error exporting PDF: {exc}")
    logger.info(
        "Exported PDF summary for %s (%d categories, %d goals)",
        data.date_range_label,
        len(data.category_rows),
        len(data.goal_rows),
    )
    return ExportResult(
        kind="success",
        message="Comprehensive PDF summary exported successfully!",
        filename=PDF_FILENAME,
        content=content,
    )


def export_to_excel(
    snapshot: ReportSnapshot,
    currency: str,
    start_date: date | str,
    end_date: date | str,
    period_label: str,
    rate_provider: RateProvider | None = None,
    output_dir: str | Path | None = None,
) -> ExportResult:
    try:
        data = build_report_data(
            snapshot, currency, start_date, end_date, period_label, rate_provider
        )
        content = render_excel(data)
        _save(content, EXCEL_FILENAME, output_dir)
    except Exception as exc:
        logger.exception("Error exporting Excel")
        return ExportResult(kind="error", message=f"Error exporting Excel file: {exc}")
    logger.info("Exported Excel summary for %s", data.date_range_label)
    return ExportResult(
        kind="success",
        message="Comprehensive Excel summary exported successfully!",
        filename=EXCEL_FILENAME,
        content=content,
    )


def export_financial_report(
    snapshot: ReportSnapshot,
    currency: str,
    report_type: str,
    export_type: str,
    today: date | None = None,
    rate_provider: RateProvider | None = None,
    output_dir: str | Path | None = None,
) -> ExportResult:
    start_date, end_date = get_date_range_for_report_type(report_type, today or date.today())
    normalized = (export_type or "").strip().lower()
    if normalized == "pdf":
        exporter = export_to_pdf
    elif normalized == "excel":
        exporter = export_to_excel
    else:
        return ExportResult(kind="error", message="Invalid export type specified")
    return exporter(
        snapshot,
        currency,
        start_date,
        end_date,
        report_type,
        rate_provider=rate_provider,
        output_dir=output_dir,
    )


def render_pdf(data: ReportData) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=10 * mm,
        rightMargin=10 * mm,
        topMargin=10 * mm,
        bottomMargin=15 * mm,
        title=REPORT_TITLE,
    )
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "BandTitle", parent=styles["Title"], textColor=colors.white, fontSize=18, spaceAfter=4
    )
    subtitle_style = ParagraphStyle(
        "BandSubtitle", parent=styles["Normal"], textColor=colors.white, alignment=1
    )
    section_style = styles["Heading2"]
    note_style = ParagraphStyle("Note", parent=styles["Italic"], fontSize=10)
    bullet_style = ParagraphStyle("Bullet", parent=styles["Normal"], leftIndent=5 * mm)

    header_band = Table(
        [
            [Paragraph(REPORT_TITLE, title_style)],
            [Paragraph(escape(_subtitle(data)), subtitle_style)],
        ],
        colWidths=[doc.width],
    )
    header_band.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, -1), HEADER_BLUE),
                ("TOPPADDING", (0, 0), (-1, -1), 6),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
            ]
        )
    )

    story = [header_band, Spacer(1, 8 * mm)]

    story.append(Paragraph("Financial Overview", section_style))
    overview_rows = [
        ["Total Expenses", format_currency(data.total_expenses, data.currency)],
        ["Total Budget", format_currency(data.total_budget, data.currency)],
        ["Budget Performance", format_currency(data.budget_performance, data.currency)],
    ]
    story.append(_pdf_table(OVERVIEW_HEADER, overview_rows))
    story.append(Spacer(1, 6 * mm))

    story.append(Paragraph("Expense Categories and Budgets", section_style))
    if data.category_rows:
        category_rows = [
            [
                row.category,
                format_currency(row.actual, data.currency),
                format_percentage(row.share),
                format_currency(row.budget, data.currency),
                format_currency(row.difference, data.currency),
            ]
            for row in data.category_rows
        ]
        story.append(_pdf_table(CATEGORY_HEADER, category_rows))
    else:
        story.append(Paragraph(NO_EXPENSES_TEXT, note_style))
    story.append(Spacer(1, 6 * mm))

    story.append(Paragraph("Savings Goals", section_style))
    if data.goal_rows:
        goal_rows = [
            [
                row.name,
                format_currency(row.current, data.currency),
                format_currency(row.target, data.currency),
                format_percentage(row.progress),
                _short_date(row.due_date),
            ]
            for row in data.goal_rows
        ]
        story.append(_pdf_table(GOAL_HEADER, goal_rows))
    else:
        story.append(Paragraph(NO_GOALS_TEXT, note_style))
    story.append(Spacer(1, 6 * mm))

    story.append(Paragraph("Insights and Recommendations", section_style))
    story.append(Paragraph("Insights:", styles["Heading3"]))
    story.extend(Paragraph(f"• {escape(text)}", bullet_style) for text in data.insights)
    story.append(Paragraph("Recommendations:", styles["Heading3"]))
    story.extend(
        Paragraph(f"• {escape(text)}", bullet_style) for text in data.recommendations
    )

    doc.build(story)
    return buffer.getvalue()


def render_excel(data: ReportData) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE

    sheet.append([REPORT_TITLE, ""])
    _style_header_row(sheet, sheet.max_row)
    sheet.append(
        [
            f"Date Range: {data.date_range_label}",
            f"Currency: {data.currency}",
            f"Report Type: {data.period_label}",
        ]
    )
    sheet.append([])

    sheet.append(["Financial Overview", ""])
    _style_header_row(sheet, sheet.max_row)
    sheet.append(["Total Expenses", _money(data.total_expenses)])
    sheet.append(["Total Budget", _money(data.total_budget)])
    sheet.append(["Budget Performance", _money(data.budget_performance)])
    for row_index in range(sheet.max_row - 2, sheet.max_row + 1):
        sheet.cell(row=row_index, column=2).number_format = "#,##0.00"
    sheet.append([])

    sheet.append(["Expense Categories and Budgets"])
    sheet.append(list(CATEGORY_HEADER))
    _style_header_row(sheet, sheet.max_row)
    for row in data.category_rows:
        sheet.append(
            [
                row.category,
                _money(row.actual),
                row.share,
                _money(row.budget),
                _money(row.difference),
            ]
        )
        _apply_formats(sheet, sheet.max_row, {2: "#,##0.00", 3: "0.0%", 4: "#,##0.00", 5: "#,##0.00"})
    sheet.append([])

    sheet.append(["Savings Goals"])
    sheet.append(list(GOAL_HEADER))
    _style_header_row(sheet, sheet.max_row)
    for row in data.goal_rows:
        sheet.append(
            [row.name, _money(row.current), _money(row.target), row.progress, _short_date(row.due_date)]
        )
        _apply_formats(sheet, sheet.max_row, {2: "#,##0.00", 3: "#,##0.00", 4: "0.0%"})
    sheet.append([])

    sheet.append(["Insights and Recommendations", ""])
    _style_header_row(sheet, sheet.max_row)
    sheet.append(["Insights", "\n".join(data.insights)])
    sheet.append(["Recommendations", "\n".join(data.recommendations)])
    for row_index in (sheet.max_row - 1, sheet.max_row):
        sheet.cell(row=row_index, column=2).alignment = Alignment(wrap_text=True, vertical="top")

    for index, width in enumerate(EXCEL_COLUMN_WIDTHS, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = width

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def _pdf_table(header: Sequence[str], rows: List[List[str]]) -> Table:
    table = Table([list(header)] + rows, hAlign="LEFT", repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), HEADER_BLUE),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("TEXTCOLOR", (0, 1), (-1, -1), colors.Color(60 / 255, 60 / 255, 60 / 255)),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, STRIPE_GREY]),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.black),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
            ]
        )
    )
    return table


def _style_header_row(sheet, row_index: int) -> None:
    for cell in sheet[row_index]:
        if cell.value in (None, ""):
            continue
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center")


def _apply_formats(sheet, row_index: int, formats: dict[int, str]) -> None:
    for column, number_format in formats.items():
        sheet.cell(row=row_index, column=column).number_format = number_format


def _save(content: bytes, filename: str, output_dir: str | Path | None) -> None:
    if output_dir is None:
        return
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    (directory / filename).write_bytes(content)


def _subtitle(data: ReportData) -> str:
    return (
        f"Date Range: {data.date_range_label} | Currency: {data.currency} | "
        f"Report Type: {data.period_label}"
    )


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT)


def _long_date(value: date) -> str:
    return f"{MONTH_NAMES[value.month - 1]} {value.day}, {value.year}"


def _short_date(value: date) -> str:
    return f"{MONTH_LABELS[value.month - 1]} {value.day}, {value.year}"
