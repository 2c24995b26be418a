import os
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

# --- Base Directory ---
BASE_DIR = Path(__file__).resolve().parent.parent

# --- Load Environment Variables ---
load_dotenv(BASE_DIR / ".env")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# --- Path Configuration ---
# Use Path objects for robust, OS-agnostic path handling.
OUTPUT_DIR = BASE_DIR / os.getenv("OUTPUT_DIR", "output")
LOG_DIR = BASE_DIR / os.getenv("LOG_DIR", "logs")

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# --- Output Configuration ---
SAVE_JSON_OUTPUT = _env_flag("SAVE_JSON_OUTPUT", False)

# --- Webhook ---
WEBHOOK_URL = os.getenv("WEBHOOK_URL")
WEBHOOK_TIMEOUT = 15

# --- Shared Business Defaults ---
LOW_STOCK_THRESHOLD = int(os.getenv("LOW_STOCK_THRESHOLD", "10"))
CURRENCY = os.getenv("CURRENCY", "USD")
DATE_WINDOW_DAYS = os.getenv("DATE_WINDOW_DAYS", "30")
REQUIRE_SALE_DATE = _env_flag("REQUIRE_SALE_DATE", True)

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}


class AppConfig(BaseModel):
    """
    Runtime options handed to the validator, normalizer, metrics and exporter.
    Accepts both the snake_case names and the camelCase keys used by callers;
    anything else in the mapping is ignored.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    low_stock_threshold: int = Field(default=10, ge=0, alias="lowStockThreshold")
    currency: str = Field(default="USD", alias="currency")
    # None means "all" (no trailing window)
    date_window_days: Optional[int] = Field(default=30, gt=0, alias="dateWindowDays")
    require_sale_date: bool = Field(default=True, alias="requireSaleDate")

    @field_validator("date_window_days", mode="before")
    @classmethod
    def _parse_window(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, str):
            text = value.strip()
            if not text or text.lower() == "all":
                return None
            return int(text)
        return value

    @field_validator("currency", mode="before")
    @classmethod
    def _upper_currency(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value

    @property
    def currency_symbol(self) -> str:
        return CURRENCY_SYMBOLS.get(self.currency, f"{self.currency} ")


def load_config(overrides: Optional[Mapping[str, Any]] = None) -> AppConfig:
    """Builds an AppConfig from the environment defaults, then applies overrides."""
    values: dict[str, Any] = {
        "low_stock_threshold": LOW_STOCK_THRESHOLD,
        "currency": CURRENCY,
        "date_window_days": DATE_WINDOW_DAYS,
        "require_sale_date": REQUIRE_SALE_DATE,
    }
    if overrides:
        # Fold camelCase keys onto field names so an override always wins.
        for name, info in AppConfig.model_fields.items():
            for key in (name, info.alias):
                if key in overrides:
                    values[name] = overrides[key]
    return AppConfig.model_validate(values)
