import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from domain.errors import ConfigurationError


@dataclass(frozen=True)
class Settings:
    supabase_url: Optional[str]
    supabase_key: Optional[str]
    schema: str

    orders_sheet_id: Optional[str]
    orders_sheet_name: str
    google_service_account_email: Optional[str]
    google_private_key: Optional[str]
    google_credentials_json: Optional[str]
    google_token_file: str
    sheets_timeout_seconds: float

    fakturownia_username: str
    fakturownia_api_key: Optional[str]
    catalog_timeout_seconds: float

    report_timezone: str


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def load_settings() -> Settings:
    """
    Read settings from the environment (and .env, if present).
    Nothing here is required at load time; use require_setting() at the call site.
    """
    load_dotenv()

    return Settings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_KEY"),
        schema=os.getenv("SCHEMA", "public"),
        orders_sheet_id=os.getenv("GOOGLE_SHEET_ORDERS_ID"),
        orders_sheet_name=os.getenv("GOOGLE_SHEET_ORDERS_NAME", "Замовлення"),
        google_service_account_email=os.getenv("GOOGLE_SERVICE_ACCOUNT_EMAIL"),
        google_private_key=os.getenv("GOOGLE_PRIVATE_KEY"),
        google_credentials_json=os.getenv("GOOGLE_CREDENTIALS_JSON"),
        google_token_file=os.getenv("GOOGLE_TOKEN_FILE", "token_sheets.json"),
        sheets_timeout_seconds=_float_env("SHEETS_TIMEOUT_SECONDS", 30.0),
        fakturownia_username=os.getenv("FAKTUROWNIA_USERNAME", "kodarik"),
        fakturownia_api_key=os.getenv("FAKTUROWNIA_API_KEY"),
        catalog_timeout_seconds=_float_env("CATALOG_TIMEOUT_SECONDS", 15.0),
        report_timezone=os.getenv("REPORT_TIMEZONE", "Europe/Berlin"),
    )


def require_setting(settings: Settings, attr: str, env_name: str) -> str:
    value = getattr(settings, attr)
    if not value:
        raise ConfigurationError(f"{env_name} is not set in the environment")
    return value
