"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from decimal import Decimal
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .currency import Currency, Money
from .state import AccountDefaults


class AtmConfig(BaseSettings):
    """ATM teller configuration"""

    model_config = SettingsConfigDict(
        env_prefix="ATM_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Account defaults for a fresh session
    currency: str = "USD"
    default_balance: str = "2000.00"
    default_daily_limit: str = "500.00"
    max_amount_length: int = 8

    # Session cache
    session_store_path: str = "atm_session.db"  # ":memory:" keeps nothing on disk
    session_id: str = "teller-1"

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8090

    # Security configuration
    auth_enabled: bool = True
    jwt_secret: str = "change-me-in-production"
    jwt_expiry_hours: int = 24
    jwt_algorithm: str = "HS256"

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stderr

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v: str) -> str:
        code = v.upper()
        if code not in Currency.__members__:
            raise ValueError(f"Unsupported currency: {v}")
        return code

    @field_validator('max_amount_length')
    @classmethod
    def validate_max_amount_length(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("max_amount_length must be positive")
        return v

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return v

    @property
    def currency_enum(self) -> Currency:
        return Currency[self.currency]

    def account_defaults(self) -> AccountDefaults:
        """Build the starting balance and limit for new sessions"""
        return AccountDefaults(
            balance=Money(Decimal(self.default_balance), self.currency_enum),
            daily_limit=Money(Decimal(self.default_daily_limit), self.currency_enum),
        )


# Global configuration instance
config = AtmConfig()


def get_config() -> AtmConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> AtmConfig:
    """Reload configuration from environment"""
    global config
    config = AtmConfig()
    return config
