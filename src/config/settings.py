"""Configuration settings loaded from environment variables."""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str
    database_echo: bool = False

    # Billing (nightly rates per room type)
    room_rate_single: Decimal = Decimal("100.00")
    room_rate_double: Decimal = Decimal("150.00")
    room_rate_suite: Decimal = Decimal("250.00")
    room_rate_deluxe: Decimal = Decimal("400.00")
    service_charge_rate: Decimal = Decimal("0.05")
    tax_rate: Decimal = Decimal("0.08")

    # Logging
    log_level: str = "INFO"

    # Application
    app_name: str = "oceanview-reservations"
    environment: str = "development"

    @property
    def is_sqlite(self) -> bool:
        """Check whether the configured database is SQLite."""
        return self.database_url.startswith("sqlite")


def load_settings() -> Settings:
    """Load and validate settings from environment."""
    return Settings()  # type: ignore[call-arg]
