from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Protocol

DEFAULT_RATES: dict[str, Decimal] = {
    "USD": Decimal("1"),
    "EUR": Decimal("0.85"),
    "GBP": Decimal("0.73"),
    "JPY": Decimal("110.33"),
    "CAD": Decimal("1.25"),
    "AUD": Decimal("1.34"),
    "CHF": Decimal("0.92"),
    "CNY": Decimal("6.47"),
    "INR": Decimal("74.38"),
    "KRW": Decimal("1136.93"),
}

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CAD": "C$",
    "AUD": "A$",
    "CHF": "CHF",
    "CNY": "¥",
    "INR": "₹",
    "KRW": "₩",
}

PIVOT_CURRENCY = "USD"


class UnknownCurrencyError(ValueError):
    """Raised when a currency code is not in the rate table."""

    def __init__(self, currency: str) -> None:
        super().__init__(f"Unsupported currency: {currency}")
        self.currency = currency


class RateProvider(Protocol):
    def get_rate(self, currency: str) -> Decimal: ...


@dataclass(frozen=True)
class Currency:
    code: str
    symbol: str


@dataclass(frozen=True)
class StaticRateProvider:
    """Deterministic, in-memory FX rates.

    Rates are expressed as target currency per 1 USD. The table is not
    refreshed, so converted figures drift from market rates over time.
    """

    rates: Mapping[str, Decimal] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "rates", dict(self.rates or DEFAULT_RATES))

    def get_rate(self, currency: str) -> Decimal:
        normalized = normalize_currency(currency)
        try:
            return self.rates[normalized]
        except KeyError as exc:
            raise UnknownCurrencyError(normalized) from exc

    def supports(self, currency: str) -> bool:
        try:
            self.get_rate(currency)
        except ValueError:
            return False
        return True


DEFAULT_PROVIDER = StaticRateProvider()


def convert_amount(
    amount: Decimal | int | float | str,
    source_currency: str,
    target_currency: str,
    rate_provider: RateProvider | None = None,
) -> Decimal:
    """Convert a monetary amount by pivoting through USD."""
    provider = rate_provider or DEFAULT_PROVIDER
    normalized_source = normalize_currency(source_currency)
    normalized_target = normalize_currency(target_currency)
    coerced_amount = coerce_amount(amount)

    source_rate = provider.get_rate(normalized_source)
    target_rate = provider.get_rate(normalized_target)
    if normalized_source == normalized_target:
        return coerced_amount

    amount_in_usd = coerced_amount / source_rate
    return amount_in_usd * target_rate


def get_exchange_rate(
    source_currency: str,
    target_currency: str,
    rate_provider: RateProvider | None = None,
) -> Decimal:
    provider = rate_provider or DEFAULT_PROVIDER
    source_rate = provider.get_rate(source_currency)
    target_rate = provider.get_rate(target_currency)
    if normalize_currency(source_currency) == normalize_currency(target_currency):
        return Decimal("1")
    return target_rate / source_rate


def list_currencies() -> list[Currency]:
    return [Currency(code=code, symbol=CURRENCY_SYMBOLS[code]) for code in DEFAULT_RATES]


def normalize_currency(value: str) -> str:
    if not isinstance(value, str):
        raise UnknownCurrencyError(str(value))
    normalized = value.strip().upper()
    if len(normalized) != 3 or not normalized.isalpha():
        raise UnknownCurrencyError(normalized or value)
    return normalized


def validate_currency(value: str, rate_provider: RateProvider | None = None) -> str:
    provider = rate_provider or DEFAULT_PROVIDER
    normalized = normalize_currency(value)
    provider.get_rate(normalized)
    return normalized


def format_currency(amount: Decimal | int | float | str, currency: str) -> str:
    normalized = normalize_currency(currency)
    symbol = CURRENCY_SYMBOLS.get(normalized, "")
    value = coerce_amount(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def format_percentage(ratio: Decimal | int | float | str) -> str:
    value = coerce_amount(ratio) * Decimal("100")
    return f"{value:.1f}%"


def coerce_amount(amount: Decimal | int | float | str) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))
