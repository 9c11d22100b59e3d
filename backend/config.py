from __future__ import annotations

import os
from dataclasses import dataclass

from backend.currency_conversion import validate_currency

FALLBACK_CURRENCY = "USD"


def get_system_default_currency() -> str:
    raw = os.getenv("DEFAULT_CURRENCY", FALLBACK_CURRENCY)
    try:
        return validate_currency(raw)
    except ValueError:
        return FALLBACK_CURRENCY


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./finance.db"
    frontend_origin: str = "http://localhost:3000"
    default_currency: str = FALLBACK_CURRENCY
    log_level: str = "INFO"
    export_dir: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            frontend_origin=os.getenv("FRONTEND_ORIGIN", cls.frontend_origin),
            default_currency=get_system_default_currency(),
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
            export_dir=os.getenv("EXPORT_DIR") or None,
        )
