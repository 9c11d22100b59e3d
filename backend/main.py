import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable

import bcrypt
from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from sqlalchemy import Table, insert, select, update
from sqlalchemy.exc import IntegrityError

from backend.aggregation import (
    budget_adherence,
    expenses_by_category,
    financial_data,
    goal_progress,
    summarize,
    total_amount,
)
from backend.config import Settings
from backend.currency_conversion import (
    DEFAULT_PROVIDER,
    convert_amount,
    get_exchange_rate,
    list_currencies,
    validate_currency,
)
from backend.database import Database, budgets, categories, expenses, goals, income, users
from backend.date_range import (
    REPORT_TYPES,
    filter_by_date_range,
    get_date_range_for_report_type,
    month_end,
    month_start,
)
from backend.financial_health import assess_health, check_achievements
from backend.income_projection import forecast_expenses, predict_future_expenses, predict_income
from backend.insights import (
    InsightFigures,
    generate_insights,
    generate_recommendations,
    join_messages,
    saving_suggestion,
)
from backend.logger import setup_logger
from backend.records import (
    budget_from_mapping,
    expense_from_mapping,
    goal_from_mapping,
    income_from_mapping,
)
from backend.report_export import (
    ReportSnapshot,
    export_financial_report,
    export_to_excel,
    export_to_pdf,
)

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_CATEGORIES = [
    "Food",
    "Housing",
    "Transportation",
    "Utilities",
    "Entertainment",
    "Healthcare",
    "Shopping",
    "Other",
]

EXPORT_MEDIA_TYPES = {
    "pdf": "application/pdf",
    "excel": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    setup_logger("backend", settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = Database(settings.database_url)
        database.create_all()
        app.state.database = database
        try:
            yield
        finally:
            database.dispose()
            logger.info("Database connections closed")

    app = FastAPI(title="Finance Tracker API", lifespan=lifespan)
    app.state.settings = settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


class CredentialsPayload(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: int
    email: str
    created_at: datetime | None = None


class UserSettingsPayload(BaseModel):
    preferred_currency: str | None = None


class UserSettingsResponse(BaseModel):
    id: int
    email: str
    preferred_currency: str


class CategoryPayload(BaseModel):
    name: str

    @classmethod
    def validate_payload(cls, payload: "CategoryPayload") -> "CategoryPayload":
        payload.name = payload.name.strip()
        if not payload.name:
            raise ValueError("Category name required.")
        return payload


class CategoryResponse(BaseModel):
    id: int
    user_id: int
    name: str
    created_at: datetime | None = None


class ExpensePayload(BaseModel):
    description: str = ""
    amount: Decimal
    currency: str | None = None
    category: str
    sub_category: str | None = None
    date: date
    time: str | None = None
    paid_to: str | None = None
    notes: str | None = None


class ExpenseResponse(ExpensePayload):
    id: int
    user_id: int
    currency: str


class BudgetPayload(BaseModel):
    category: str
    sub_category: str | None = None
    amount: Decimal
    currency: str | None = None
    period: str = "monthly"
    start_date: date
    end_date: date


class BudgetResponse(BudgetPayload):
    id: int
    user_id: int
    currency: str


class IncomePayload(BaseModel):
    source: str
    amount: Decimal
    currency: str | None = None
    frequency: str = "one-time"
    category: str = "Other"
    date: date
    is_recurring: bool = False
    recurring_interval: str | None = None


class IncomeResponse(IncomePayload):
    id: int
    user_id: int
    currency: str


class GoalPayload(BaseModel):
    name: str
    target_amount: Decimal
    current_amount: Decimal = Decimal("0")
    currency: str | None = None
    start_date: date
    due_date: date
    monthly_contribution: Decimal | None = None
    interest_rate: Decimal | None = None
    milestones: list[str] = []


class GoalResponse(GoalPayload):
    id: int
    user_id: int
    currency: str


class CurrencyResponse(BaseModel):
    code: str
    symbol: str
    rate: Decimal


class ConversionResponse(BaseModel):
    amount: Decimal
    from_currency: str
    to_currency: str
    rate: Decimal
    converted_amount: Decimal


class SummaryResponse(BaseModel):
    currency: str
    start_date: date | None = None
    end_date: date | None = None
    total_expenses: Decimal
    total_income: Decimal
    total_budget: Decimal
    remaining_budget: Decimal
    savings_rate: Decimal
    expenses_by_category: dict[str, Decimal]
    expenses_by_month: dict[str, Decimal]


class BudgetAdherenceResponse(BaseModel):
    category: str
    budgeted: Decimal
    spent: Decimal
    adherence_percentage: Decimal | None = None
    remaining: Decimal
    currency: str


class GoalProgressResponse(BaseModel):
    goal_id: int
    name: str
    due_date: date
    expected_progress: Decimal
    actual_progress: Decimal
    progress_percentage: Decimal
    is_on_track: bool


class InsightsResponse(BaseModel):
    insights: list[str]
    recommendations: list[str]
    insights_text: str
    recommendations_text: str


class BadgeResponse(BaseModel):
    title: str
    description: str


class HealthResponse(BaseModel):
    score: int
    tips: list[str]
    badges: list[BadgeResponse]
    start_date: date
    end_date: date


class ForecastEntry(BaseModel):
    month: str
    projected_income: Decimal
    projected_expenses: Decimal


class ExpensePredictionResponse(BaseModel):
    currency: str
    predicted_monthly_expenses: Decimal


class SavingSuggestionResponse(BaseModel):
    currency: str
    total_income: Decimal
    total_expenses: Decimal
    suggestion: str


class AchievementResponse(BaseModel):
    id: str
    title: str
    description: str


class FinancialDataResponse(BaseModel):
    currency: str
    start_date: date
    end_date: date
    categories: list[str]
    expenses: list[ExpenseResponse]
    total_expenses: Decimal
    total_budget: Decimal
    remaining_budget: Decimal


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_user_id(
    x_user_id: str | None = Header(None, alias="x-user-id"),
    database: Database = Depends(get_database),
) -> int:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing user identity.")
    try:
        user_id = int(x_user_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid user identity.") from exc
    with database.begin() as conn:
        result = conn.execute(select(users.c.id).where(users.c.id == user_id))
        if not result.first():
            raise HTTPException(status_code=404, detail="User not found.")
    return user_id


def resolve_currency(
    value: str | None, database: Database, user_id: int, settings: Settings
) -> str:
    if value:
        try:
            return validate_currency(value)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
    with database.begin() as conn:
        preferred = conn.execute(
            select(users.c.preferred_currency).where(users.c.id == user_id)
        ).scalar_one_or_none()
    if preferred:
        try:
            return validate_currency(preferred)
        except ValueError:
            logger.warning("User %s has an invalid preferred currency %r", user_id, preferred)
    return settings.default_currency


def ensure_default_categories(conn, user_id: int) -> None:
    existing = conn.execute(
        select(categories.c.id).where(categories.c.user_id == user_id).limit(1)
    ).first()
    if existing:
        return
    conn.execute(
        insert(categories),
        [{"user_id": user_id, "name": name} for name in DEFAULT_CATEGORIES],
    )


def category_in_use(conn, user_id: int, name: str) -> bool:
    for table in (expenses, budgets):
        match = conn.execute(
            select(table.c.id)
            .where(table.c.user_id == user_id, table.c.category == name)
            .limit(1)
        ).first()
        if match:
            return True
    return False


def load_records(conn, table: Table, builder: Callable, user_id: int) -> list:
    rows = conn.execute(
        select(table).where(table.c.user_id == user_id).order_by(table.c.id.asc())
    ).mappings().all()
    records = []
    for row in rows:
        try:
            records.append(builder(row))
        except ValueError as exc:
            logger.warning("Skipping invalid %s row %s: %s", table.name, row["id"], exc)
    return records


def load_snapshot(database: Database, user_id: int) -> ReportSnapshot:
    with database.begin() as conn:
        return ReportSnapshot(
            expenses=load_records(conn, expenses, expense_from_mapping, user_id),
            budgets=load_records(conn, budgets, budget_from_mapping, user_id),
            goals=load_records(conn, goals, goal_from_mapping, user_id),
            income=load_records(conn, income, income_from_mapping, user_id),
        )


def window_records(
    snapshot: ReportSnapshot, start_date: date | None, end_date: date | None
) -> tuple[list, list]:
    if start_date is None and end_date is None:
        return list(snapshot.expenses), list(snapshot.income)
    start = start_date or date.min
    end = end_date or date.max
    if start > end:
        raise HTTPException(status_code=400, detail="Start date must be on or before end date.")
    return (
        filter_by_date_range(snapshot.expenses, start, end, "expenses"),
        filter_by_date_range(snapshot.income, start, end, "income"),
    )


def build_record(builder: Callable, payload: BaseModel, currency: str) -> Any:
    values = payload.model_dump()
    values["currency"] = values.get("currency") or currency
    try:
        return builder(values)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def record_values(record: Any) -> dict:
    values = asdict(record)
    values.pop("id")
    if "milestones" in values:
        values["milestones"] = "\n".join(values["milestones"]) or None
    return values


def insert_record(database: Database, table: Table, user_id: int, record: Any) -> dict:
    stmt = insert(table).values(user_id=user_id, **record_values(record)).returning(*table.c)
    with database.begin() as conn:
        row = conn.execute(stmt).mappings().first()
    if not row:
        raise HTTPException(status_code=500, detail=f"Failed to create {table.name} record.")
    return row


def update_record(
    database: Database, table: Table, user_id: int, record_id: int, record: Any, label: str
) -> dict:
    stmt = (
        update(table)
        .where(table.c.id == record_id, table.c.user_id == user_id)
        .values(**record_values(record))
        .returning(*table.c)
    )
    with database.begin() as conn:
        row = conn.execute(stmt).mappings().first()
    if not row:
        raise HTTPException(status_code=404, detail=f"{label} not found.")
    return row


def delete_record(
    database: Database, table: Table, user_id: int, record_id: int, label: str
) -> dict:
    with database.begin() as conn:
        result = conn.execute(
            table.delete().where(table.c.id == record_id, table.c.user_id == user_id)
        )
    if result.rowcount == 0:
        raise HTTPException(status_code=404, detail=f"{label} not found.")
    return {"status": "deleted"}


def list_records(
    database: Database, table: Table, builder: Callable, user_id: int
) -> list:
    with database.begin() as conn:
        return load_records(conn, table, builder, user_id)


def to_response(model: type[BaseModel], record: Any, user_id: int) -> BaseModel:
    return model(user_id=user_id, **asdict(record))


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.post("/auth/signup", response_model=UserResponse)
def signup(
    payload: CredentialsPayload,
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> UserResponse:
    email = payload.email.strip().lower()
    if not email or not payload.password:
        raise HTTPException(status_code=400, detail="Email and password required.")
    hashed_password = hash_password(payload.password)

    stmt = (
        insert(users)
        .values(
            email=email,
            hashed_password=hashed_password,
            preferred_currency=settings.default_currency,
        )
        .returning(users.c.id, users.c.email, users.c.created_at)
    )
    try:
        with database.begin() as conn:
            row = conn.execute(stmt).mappings().first()
            if row:
                ensure_default_categories(conn, row["id"])
    except IntegrityError as exc:
        raise HTTPException(status_code=409, detail="Email already exists.") from exc

    if not row:
        raise HTTPException(status_code=500, detail="Failed to create user.")
    logger.info("Created user %s", row["id"])
    return UserResponse(id=row["id"], email=row["email"], created_at=row["created_at"])


@router.post("/auth/login", response_model=UserResponse)
def login(
    payload: CredentialsPayload, database: Database = Depends(get_database)
) -> UserResponse:
    email = payload.email.strip().lower()
    with database.begin() as conn:
        row = conn.execute(select(users).where(users.c.email == email)).mappings().first()

    if not row or not verify_password(payload.password, row["hashed_password"]):
        raise HTTPException(status_code=401, detail="Invalid credentials.")

    return UserResponse(id=row["id"], email=row["email"], created_at=row["created_at"])


@router.get("/users/me/settings", response_model=UserSettingsResponse)
def get_user_settings(
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> UserSettingsResponse:
    with database.begin() as conn:
        row = conn.execute(select(users).where(users.c.id == user_id)).mappings().first()
    return UserSettingsResponse(
        id=row["id"],
        email=row["email"],
        preferred_currency=resolve_currency(None, database, user_id, settings),
    )


@router.put("/users/me/settings", response_model=UserSettingsResponse)
def update_user_settings(
    payload: UserSettingsPayload,
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
) -> UserSettingsResponse:
    if payload.preferred_currency is None:
        raise HTTPException(status_code=400, detail="Preferred currency required.")
    try:
        normalized_currency = validate_currency(payload.preferred_currency)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    with database.begin() as conn:
        row = conn.execute(
            update(users)
            .where(users.c.id == user_id)
            .values(preferred_currency=normalized_currency)
            .returning(users.c.id, users.c.email, users.c.preferred_currency)
        ).mappings().first()
    return UserSettingsResponse(
        id=row["id"],
        email=row["email"],
        preferred_currency=row["preferred_currency"],
    )


@router.get("/currencies", response_model=list[CurrencyResponse])
def currencies() -> list[CurrencyResponse]:
    return [
        CurrencyResponse(
            code=currency.code,
            symbol=currency.symbol,
            rate=DEFAULT_PROVIDER.get_rate(currency.code),
        )
        for currency in list_currencies()
    ]


@router.get("/currency/convert", response_model=ConversionResponse)
def convert(
    amount: Decimal = Query(...),
    from_currency: str = Query(..., alias="from"),
    to_currency: str = Query(..., alias="to"),
) -> ConversionResponse:
    try:
        converted = convert_amount(amount, from_currency, to_currency)
        rate = get_exchange_rate(from_currency, to_currency)
        source = validate_currency(from_currency)
        target = validate_currency(to_currency)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return ConversionResponse(
        amount=amount,
        from_currency=source,
        to_currency=target,
        rate=rate,
        converted_amount=converted,
    )


@router.get("/categories", response_model=list[CategoryResponse])
def list_categories(
    user_id: int = Depends(get_user_id), database: Database = Depends(get_database)
) -> list[CategoryResponse]:
    with database.begin() as conn:
        ensure_default_categories(conn, user_id)
        rows = conn.execute(
            select(categories)
            .where(categories.c.user_id == user_id)
            .order_by(categories.c.name.asc(), categories.c.id.asc())
        ).mappings().all()
    return [
        CategoryResponse(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            created_at=row["created_at"],
        )
        for row in rows
    ]


@router.post("/categories", response_model=CategoryResponse)
def create_category(
    payload: CategoryPayload,
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
) -> CategoryResponse:
    try:
        payload = CategoryPayload.validate_payload(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    stmt = (
        insert(categories)
        .values(user_id=user_id, name=payload.name)
        .returning(
            categories.c.id,
            categories.c.user_id,
            categories.c.name,
            categories.c.created_at,
        )
    )
    try:
        with database.begin() as conn:
            row = conn.execute(stmt).mappings().first()
    except IntegrityError as exc:
        raise HTTPException(status_code=409, detail="Category already exists.") from exc

    if not row:
        raise HTTPException(status_code=500, detail="Failed to create category.")
    return CategoryResponse(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        created_at=row["created_at"],
    )


@router.delete("/categories/{category_id}")
def delete_category(
    category_id: int,
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
) -> dict:
    with database.begin() as conn:
        row = conn.execute(
            select(categories.c.id, categories.c.name).where(
                categories.c.id == category_id, categories.c.user_id == user_id
            )
        ).mappings().first()
        if not row:
            raise HTTPException(status_code=404, detail="Category not found.")
        if category_in_use(conn, user_id, row["name"]):
            raise HTTPException(status_code=409, detail="Category is in use.")
        conn.execute(
            categories.delete().where(
                categories.c.id == category_id, categories.c.user_id == user_id
            )
        )
    return {"status": "deleted"}


@router.get("/expenses", response_model=list[ExpenseResponse])
def list_expenses(
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
) -> list[ExpenseResponse]:
    snapshot = ReportSnapshot(
        expenses=list_records(database, expenses, expense_from_mapping, user_id)
    )
    selected, _ = window_records(snapshot, start_date, end_date)
    return [to_response(ExpenseResponse, record, user_id) for record in selected]


@router.post("/expenses", response_model=ExpenseResponse)
def create_expense(
    payload: ExpensePayload,
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> ExpenseResponse:
    currency = resolve_currency(payload.currency, database, user_id, settings)
    record = build_record(expense_from_mapping, payload, currency)
    row = insert_record(database, expenses, user_id, record)
    return to_response(ExpenseResponse, expense_from_mapping(row), user_id)


@router.put("/expenses/{expense_id}", response_model=ExpenseResponse)
def update_expense(
    expense_id: int,
    payload: ExpensePayload,
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> ExpenseResponse:
    currency = resolve_currency(payload.currency, database, user_id, settings)
    record = build_record(expense_from_mapping, payload, currency)
    row = update_record(database, expenses, user_id, expense_id, record, "Expense")
    return to_response(ExpenseResponse, expense_from_mapping(row), user_id)


@router.delete("/expenses/{expense_id}")
def delete_expense(
    expense_id: int,
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
) -> dict:
    return delete_record(database, expenses, user_id, expense_id, "Expense")


@router.get("/budgets", response_model=list[BudgetResponse])
def list_budgets(
    user_id: int = Depends(get_user_id), database: Database = Depends(get_database)
) -> list[BudgetResponse]:
    records = list_records(database, budgets, budget_from_mapping, user_id)
    return [to_response(BudgetResponse, record, user_id) for record in records]


@router.post("/budgets", response_model=BudgetResponse)
def create_budget(
    payload: BudgetPayload,
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> BudgetResponse:
    currency = resolve_currency(payload.currency, database, user_id, settings)
    record = build_record(budget_from_mapping, payload, currency)
    row = insert_record(database, budgets, user_id, record)
    return to_response(BudgetResponse, budget_from_mapping(row), user_id)


@router.put("/budgets/{budget_id}", response_model=BudgetResponse)
def update_budget(
    budget_id: int,
    payload: BudgetPayload,
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> BudgetResponse:
    currency = resolve_currency(payload.currency, database, user_id, settings)
    record = build_record(budget_from_mapping, payload, currency)
    row = update_record(database, budgets, user_id, budget_id, record, "Budget")
    return to_response(BudgetResponse, budget_from_mapping(row), user_id)


@router.delete("/budgets/{budget_id}")
def delete_budget(
    budget_id: int,
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
) -> dict:
    return delete_record(database, budgets, user_id, budget_id, "Budget")


@router.get("/income", response_model=list[IncomeResponse])
def list_income(
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
) -> list[IncomeResponse]:
    snapshot = ReportSnapshot(income=list_records(database, income, income_from_mapping, user_id))
    _, selected = window_records(snapshot, start_date, end_date)
    return [to_response(IncomeResponse, record, user_id) for record in selected]


@router.post("/income", response_model=IncomeResponse)
def create_income(
    payload: IncomePayload,
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> IncomeResponse:
    currency = resolve_currency(payload.currency, database, user_id, settings)
    record = build_record(income_from_mapping, payload, currency)
    row = insert_record(database, income, user_id, record)
    return to_response(IncomeResponse, income_from_mapping(row), user_id)


@router.put("/income/{income_id}", response_model=IncomeResponse)
def update_income(
    income_id: int,
    payload: IncomePayload,
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> IncomeResponse:
    currency = resolve_currency(payload.currency, database, user_id, settings)
    record = build_record(income_from_mapping, payload, currency)
    row = update_record(database, income, user_id, income_id, record, "Income")
    return to_response(IncomeResponse, income_from_mapping(row), user_id)


@router.delete("/income/{income_id}")
def delete_income(
    income_id: int,
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
) -> dict:
    return delete_record(database, income, user_id, income_id, "Income")


@router.get("/goals", response_model=list[GoalResponse])
def list_goals(
    user_id: int = Depends(get_user_id), database: Database = Depends(get_database)
) -> list[GoalResponse]:
    records = list_records(database, goals, goal_from_mapping, user_id)
    return [to_response(GoalResponse, record, user_id) for record in records]


@router.post("/goals", response_model=GoalResponse)
def create_goal(
    payload: GoalPayload,
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> GoalResponse:
    currency = resolve_currency(payload.currency, database, user_id, settings)
    record = build_record(goal_from_mapping, payload, currency)
    row = insert_record(database, goals, user_id, record)
    return to_response(GoalResponse, goal_from_mapping(row), user_id)


@router.put("/goals/{goal_id}", response_model=GoalResponse)
def update_goal(
    goal_id: int,
    payload: GoalPayload,
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> GoalResponse:
    currency = resolve_currency(payload.currency, database, user_id, settings)
    record = build_record(goal_from_mapping, payload, currency)
    row = update_record(database, goals, user_id, goal_id, record, "Goal")
    return to_response(GoalResponse, goal_from_mapping(row), user_id)


@router.delete("/goals/{goal_id}")
def delete_goal(
    goal_id: int,
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
) -> dict:
    return delete_record(database, goals, user_id, goal_id, "Goal")


@router.get("/reports/summary", response_model=SummaryResponse)
def report_summary(
    currency: str | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> SummaryResponse:
    target_currency = resolve_currency(currency, database, user_id, settings)
    snapshot = load_snapshot(database, user_id)
    expense_items, income_items = window_records(snapshot, start_date, end_date)
    summary = summarize(
        expense_items,
        snapshot.budgets,
        snapshot.goals,
        income_items,
        target_currency,
        date.today(),
    )
    return SummaryResponse(
        currency=target_currency,
        start_date=start_date,
        end_date=end_date,
        total_expenses=summary.total_expenses,
        total_income=summary.total_income,
        total_budget=summary.total_budget,
        remaining_budget=summary.remaining_budget,
        savings_rate=summary.savings_rate,
        expenses_by_category=summary.expenses_by_category,
        expenses_by_month=summary.expenses_by_month,
    )


@router.get("/reports/budget-adherence", response_model=list[BudgetAdherenceResponse])
def report_budget_adherence(
    currency: str | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> list[BudgetAdherenceResponse]:
    target_currency = resolve_currency(currency, database, user_id, settings)
    snapshot = load_snapshot(database, user_id)
    expense_items, _ = window_records(snapshot, start_date, end_date)
    spent = expenses_by_category(expense_items, target_currency)
    return [
        BudgetAdherenceResponse(**asdict(item))
        for item in budget_adherence(snapshot.budgets, spent, target_currency)
    ]


@router.get("/reports/goal-progress", response_model=list[GoalProgressResponse])
def report_goal_progress(
    user_id: int = Depends(get_user_id), database: Database = Depends(get_database)
) -> list[GoalProgressResponse]:
    records = list_records(database, goals, goal_from_mapping, user_id)
    return [
        GoalProgressResponse(
            goal_id=item.goal.id,
            name=item.goal.name,
            due_date=item.goal.due_date,
            expected_progress=item.expected_progress,
            actual_progress=item.actual_progress,
            progress_percentage=item.progress_percentage,
            is_on_track=item.is_on_track,
        )
        for item in goal_progress(records, date.today())
    ]


@router.get("/reports/insights", response_model=InsightsResponse)
def report_insights(
    currency: str | None = Query(None),
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> InsightsResponse:
    target_currency = resolve_currency(currency, database, user_id, settings)
    snapshot = load_snapshot(database, user_id)
    summary = summarize(
        snapshot.expenses,
        snapshot.budgets,
        snapshot.goals,
        snapshot.income,
        target_currency,
        date.today(),
    )
    figures = InsightFigures.from_summary(summary)
    insights = generate_insights(figures)
    recommendations = generate_recommendations(figures)
    return InsightsResponse(
        insights=insights,
        recommendations=recommendations,
        insights_text=join_messages(insights),
        recommendations_text=join_messages(recommendations),
    )


@router.get("/reports/health", response_model=HealthResponse)
def report_health(
    currency: str | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> HealthResponse:
    target_currency = resolve_currency(currency, database, user_id, settings)
    today = date.today()
    start = start_date or month_start(today)
    end = end_date or month_end(today)
    snapshot = load_snapshot(database, user_id)
    expense_items, income_items = window_records(snapshot, start, end)
    summary = summarize(
        expense_items,
        snapshot.budgets,
        snapshot.goals,
        income_items,
        target_currency,
        today,
    )
    report = assess_health(summary)
    return HealthResponse(
        score=report.score,
        tips=report.tips,
        badges=[BadgeResponse(title=badge.title, description=badge.description) for badge in report.badges],
        start_date=start,
        end_date=end,
    )


@router.get("/reports/forecast", response_model=list[ForecastEntry])
def report_forecast(
    months: int = Query(3, ge=1, le=24),
    currency: str | None = Query(None),
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> list[ForecastEntry]:
    target_currency = resolve_currency(currency, database, user_id, settings)
    snapshot = load_snapshot(database, user_id)
    today = date.today()
    projected_income = predict_income(snapshot.income, months, today, target_currency)
    projected_expenses = forecast_expenses(snapshot.expenses, months, today, target_currency)
    return [
        ForecastEntry(
            month=income_entry.month,
            projected_income=income_entry.amount,
            projected_expenses=expense_entry.amount,
        )
        for income_entry, expense_entry in zip(projected_income, projected_expenses)
    ]


@router.get("/reports/expense-prediction", response_model=ExpensePredictionResponse)
def report_expense_prediction(
    currency: str | None = Query(None),
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> ExpensePredictionResponse:
    target_currency = resolve_currency(currency, database, user_id, settings)
    records = list_records(database, expenses, expense_from_mapping, user_id)
    return ExpensePredictionResponse(
        currency=target_currency,
        predicted_monthly_expenses=predict_future_expenses(
            records, date.today(), target_currency
        ),
    )


@router.get("/reports/saving-suggestion", response_model=SavingSuggestionResponse)
def report_saving_suggestion(
    currency: str | None = Query(None),
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> SavingSuggestionResponse:
    target_currency = resolve_currency(currency, database, user_id, settings)
    snapshot = load_snapshot(database, user_id)
    income_total = total_amount(snapshot.income, target_currency)
    expense_total = total_amount(snapshot.expenses, target_currency)
    return SavingSuggestionResponse(
        currency=target_currency,
        total_income=income_total,
        total_expenses=expense_total,
        suggestion=saving_suggestion(income_total, expense_total),
    )


@router.get("/reports/achievements", response_model=list[AchievementResponse])
def report_achievements(
    currency: str | None = Query(None),
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> list[AchievementResponse]:
    target_currency = resolve_currency(currency, database, user_id, settings)
    snapshot = load_snapshot(database, user_id)
    net_savings = total_amount(snapshot.income, target_currency) - total_amount(
        snapshot.expenses, target_currency
    )
    return [
        AchievementResponse(**asdict(achievement))
        for achievement in check_achievements(
            len(snapshot.expenses), len(snapshot.budgets), net_savings
        )
    ]


@router.get("/reports/financial-data", response_model=FinancialDataResponse)
def report_financial_data(
    currency: str | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    selected_categories: list[str] = Query([], alias="category"),
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> FinancialDataResponse:
    target_currency = resolve_currency(currency, database, user_id, settings)
    today = date.today()
    start = start_date or month_start(today)
    end = end_date or month_end(today)
    snapshot = load_snapshot(database, user_id)
    try:
        data = financial_data(
            snapshot.expenses,
            snapshot.budgets,
            start,
            end,
            selected_categories,
            target_currency,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return FinancialDataResponse(
        currency=data.currency,
        start_date=start,
        end_date=end,
        categories=selected_categories,
        expenses=[to_response(ExpenseResponse, record, user_id) for record in data.expenses],
        total_expenses=data.total_expenses,
        total_budget=data.total_budget,
        remaining_budget=data.remaining_budget,
    )


@router.get("/reports/export")
def export_report(
    export_type: str = Query("pdf"),
    report_type: str = Query("monthly"),
    currency: str | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    user_id: int = Depends(get_user_id),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> Response:
    normalized_export = export_type.strip().lower()
    if normalized_export not in EXPORT_MEDIA_TYPES:
        raise HTTPException(status_code=400, detail="Invalid export type specified")
    normalized_report = report_type.strip().lower()
    if normalized_report not in REPORT_TYPES:
        raise HTTPException(status_code=400, detail="Invalid report type.")
    target_currency = resolve_currency(currency, database, user_id, settings)
    snapshot = load_snapshot(database, user_id)

    if start_date is not None or end_date is not None:
        # A single bound is completed from the report type's window.
        default_start, default_end = get_date_range_for_report_type(
            normalized_report, date.today()
        )
        start = start_date or default_start
        end = end_date or default_end
        if start > end:
            raise HTTPException(
                status_code=400, detail="Start date must be on or before end date."
            )
        exporter = export_to_pdf if normalized_export == "pdf" else export_to_excel
        result = exporter(
            snapshot,
            target_currency,
            start,
            end,
            normalized_report,
            output_dir=settings.export_dir,
        )
    else:
        result = export_financial_report(
            snapshot,
            target_currency,
            normalized_report,
            normalized_export,
            today=date.today(),
            output_dir=settings.export_dir,
        )

    if not result.ok:
        raise HTTPException(status_code=500, detail=result.message)
    return Response(
        content=result.content,
        media_type=EXPORT_MEDIA_TYPES[normalized_export],
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )
