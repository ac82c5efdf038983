"""
Configuration Management for FinanceAI

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The ledger core has no external services, so what lives here is the
bookkeeping policy (starting capital, tolerance, over-repayment rule)
and the chat behaviour (language, guidance seed, input limits).
"""

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SUPPORTED_LANGUAGES = {
    "en": "English",
    "ur": "Urdu",
    "hi": "Hindi",
    "pa": "Punjabi",
    "ps": "Pashto",
    "tr": "Turkish",
    "fr": "French",
    "es": "Spanish",
    "ar": "Arabic",
    "fa": "Persian",
}


class LedgerSettings(BaseSettings):
    """Bookkeeping policy for a freshly created ledger."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCEAI_LEDGER_",
        extra="ignore"
    )

    starting_capital: Decimal = Field(
        default=Decimal("10000.00"),
        ge=0,
        description="Cash contributed as owner's capital when a ledger is opened"
    )
    currency_symbol: str = Field(
        default="$",
        min_length=1,
        max_length=5,
        description="Symbol used when formatting amounts"
    )
    balance_tolerance: Decimal = Field(
        default=Decimal("0.01"),
        ge=0,
        description="Absolute tolerance for balance and identity checks"
    )
    default_loan_counterparty: str = Field(
        default="Bank",
        min_length=1,
        description="Counterparty used when a loan message names none"
    )
    allow_negative_liabilities: bool = Field(
        default=False,
        description="Allow repaying more than the outstanding loan balance"
    )

    @field_validator('starting_capital', 'balance_tolerance')
    @classmethod
    def quantize_cents(cls, v: Decimal) -> Decimal:
        """Monetary settings are kept at two decimal places."""
        return v.quantize(Decimal("0.01"))


class ChatSettings(BaseSettings):
    """Chat behaviour configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCEAI_CHAT_",
        extra="ignore"
    )

    default_language: str = Field(
        default="en",
        description="Language code used for guidance replies"
    )
    guidance_seed: Optional[int] = Field(
        default=None,
        description="Seed for the guidance reply chooser (None = unseeded)"
    )
    max_message_length: int = Field(
        default=1000,
        ge=1,
        le=10000,
        description="Longest message the assistant will process"
    )

    @field_validator('default_language')
    @classmethod
    def validate_language(cls, v: str) -> str:
        code = v.strip().lower()
        if code not in SUPPORTED_LANGUAGES:
            raise ValueError(
                f"Unsupported language: {v}. Allowed: {sorted(SUPPORTED_LANGUAGES)}"
            )
        return code


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for local structured logs"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def chat(self) -> ChatSettings:
        return ChatSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with a
    `<name>_error` entry for each section that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("ledger", "chat", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
