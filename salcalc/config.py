"""SALCalc configuration management.

Loads configuration from environment variables with sensible defaults.
Follows Italian public-works conventions (EUR currency, explicit VAT,
0.5% retention, 20% advance-payment recovery).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal

import structlog
from dotenv import load_dotenv

from salcalc.core.money import to_decimal

# Load .env file if present
load_dotenv()

logger = structlog.get_logger(__name__)


@dataclass
class ContractDefaults:
    """Contract terms applied when a project carries no contract section."""

    discount_percent: Decimal = Decimal("0")
    withholding_tax_percent: Decimal = Decimal("0.5")  # Ritenuta di garanzia
    vat_percent: Decimal = Decimal("22")
    advance_payment_percent: Decimal = Decimal("20")
    exclude_labor_from_discount: bool = False


@dataclass
class AppConfig:
    """Root application configuration."""

    log_level: str = "INFO"
    log_format: str = "text"  # json or text
    currency: str = "EUR"
    date_format: str = "%d/%m/%Y"

    contract: ContractDefaults = field(default_factory=ContractDefaults)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        Optional (with defaults):
        - LOG_LEVEL: Logging verbosity (default: "INFO")
        - LOG_FORMAT: "text" or "json" (default: "text")
        - DEFAULT_CURRENCY: Currency shown next to amounts (default: "EUR")
        - DATE_FORMAT: strftime format for displayed dates (default: "%d/%m/%Y")
        - DEFAULT_*_PERCENT / EXCLUDE_LABOR_FROM_DISCOUNT: contract defaults

        Percentages that are not numeric fall back to their default instead of
        raising; a bad value in the environment must not stop accounting.
        """
        defaults = ContractDefaults()
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
            currency=os.getenv("DEFAULT_CURRENCY", "EUR"),
            date_format=os.getenv("DATE_FORMAT", "%d/%m/%Y"),
            contract=ContractDefaults(
                discount_percent=_env_decimal(
                    "DEFAULT_DISCOUNT_PERCENT", defaults.discount_percent
                ),
                withholding_tax_percent=_env_decimal(
                    "DEFAULT_WITHHOLDING_TAX_PERCENT", defaults.withholding_tax_percent
                ),
                vat_percent=_env_decimal("DEFAULT_VAT_PERCENT", defaults.vat_percent),
                advance_payment_percent=_env_decimal(
                    "DEFAULT_ADVANCE_PAYMENT_PERCENT", defaults.advance_payment_percent
                ),
                exclude_labor_from_discount=os.getenv(
                    "EXCLUDE_LABOR_FROM_DISCOUNT", "false"
                ).lower()
                == "true",
            ),
        )


def _env_decimal(name: str, default: Decimal) -> Decimal:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = to_decimal(raw, default=None)
    if value is None:
        logger.warning("non_numeric_env_value", name=name, value=raw, default=str(default))
        return default
    return value


# Singleton instance (lazy-loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create singleton AppConfig instance from environment."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached singleton so the next get_config() re-reads the environment."""
    global _config
    _config = None
