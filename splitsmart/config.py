import os
from decimal import Decimal, InvalidOperation
from pathlib import Path

from dotenv import load_dotenv


_PACKAGE_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _PACKAGE_DIR.parent

# Root .env is canonical; splitsmart/.env remains a fallback.
load_dotenv(_PROJECT_ROOT / ".env")
load_dotenv(_PACKAGE_DIR / ".env")


def _first_non_empty_env(*names: str, default: str) -> str:
    """Returns the first non-empty env var value from `names`, else `default`."""
    for name in names:
        value = os.getenv(name)
        if value is not None and value != "":
            return value
    return default


def _parse_bool_env(*names: str, default: bool) -> bool:
    """Parses the first non-empty env var in `names` as a boolean flag."""
    raw = _first_non_empty_env(*names, default="true" if default else "false")
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _parse_decimal_env(*names: str, default: str) -> Decimal:
    """Parses the first non-empty env var in `names` as Decimal, else `default`."""
    raw = _first_non_empty_env(*names, default=default)
    try:
        return Decimal(raw)
    except (InvalidOperation, TypeError, ValueError):
        return Decimal(default)


class BaseConfig:

    SECRET_KEY: str = _first_non_empty_env(
        "SECRET_KEY",
        default="change-me-in-production",
    )

    JSON_SORT_KEYS: bool = False

    # JSON snapshot of groups/expenses/settlements fetched by the calling layer.
    # Empty means the store starts empty and is filled through store.load().
    LEDGER_DATA_PATH: str = _first_non_empty_env("LEDGER_DATA_PATH", default="")

    # Unconfirmed settlements count toward balances unless switched off.
    INCLUDE_UNCONFIRMED_SETTLEMENTS: bool = _parse_bool_env(
        "INCLUDE_UNCONFIRMED_SETTLEMENTS",
        default=True,
    )

    # Maximum |sum(balances)| accepted before the ledger is reported as corrupt.
    BALANCE_TOLERANCE: Decimal = _parse_decimal_env(
        "BALANCE_TOLERANCE",
        default="0.000001",
    )

    LOG_LEVEL: str = _first_non_empty_env("LOG_LEVEL", default="INFO")

    # Loaded snapshots must reference group members only.
    STRICT_MEMBERS: bool = _parse_bool_env("STRICT_MEMBERS", default=False)


class DevelopmentConfig(BaseConfig):
    DEBUG:   bool = True
    TESTING: bool = False

    LOG_LEVEL: str = _first_non_empty_env("LOG_LEVEL", default="DEBUG")


class TestingConfig(BaseConfig):

    DEBUG:   bool = True
    TESTING: bool = True

    # Tests load their own fixtures; never read a developer's snapshot.
    LEDGER_DATA_PATH: str = ""
    INCLUDE_UNCONFIRMED_SETTLEMENTS: bool = True
    BALANCE_TOLERANCE: Decimal = Decimal("0.000001")
    LOG_LEVEL: str = "WARNING"


class ProductionConfig(BaseConfig):

    DEBUG:   bool = False
    TESTING: bool = False

    STRICT_MEMBERS: bool = _parse_bool_env("STRICT_MEMBERS", default=True)


def validate_production_config(app) -> None:
    """
    Fail-fast guard for production configuration.

    Called in the app factory right after
    app.config.from_object(ProductionConfig).

    Raises ValueError if any required production value is missing or insecure.
    """
    if app.config.get("SECRET_KEY") == "change-me-in-production":
        raise ValueError(
            "SECRET_KEY must be set to a strong random value in production. "
            "Do not use the default placeholder."
        )
    if not app.config.get("LEDGER_DATA_PATH"):
        raise ValueError(
            "LEDGER_DATA_PATH environment variable is required in production. "
            "Set it to the JSON snapshot exported by the persistence layer."
        )


# ── Config selector ────────────────────────────────────────────────────────
#
# Used by the app factory:
#   from splitsmart.config import config_by_name
#   app.config.from_object(config_by_name[flask_env])
# ──────────────────────────────────────────────────────────────────────────

config_by_name: dict[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing":     TestingConfig,
    "production":  ProductionConfig,
}

# Resolves the active config class from FLASK_ENV; development by default.
ActiveConfig: type[BaseConfig] = config_by_name.get(
    os.getenv("FLASK_ENV", "development"),
    DevelopmentConfig,
)
