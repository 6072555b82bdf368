import pytest

import config
import google_client
from domain.errors import ConfigurationError
from tests.conftest import make_settings

ENV_NAMES = [
    "SUPABASE_URL", "SUPABASE_KEY", "SCHEMA", "GOOGLE_SHEET_ORDERS_ID", "GOOGLE_SHEET_ORDERS_NAME",
    "GOOGLE_SERVICE_ACCOUNT_EMAIL", "GOOGLE_PRIVATE_KEY", "GOOGLE_CREDENTIALS_JSON", "GOOGLE_TOKEN_FILE",
    "SHEETS_TIMEOUT_SECONDS", "FAKTUROWNIA_USERNAME", "FAKTUROWNIA_API_KEY", "CATALOG_TIMEOUT_SECONDS",
    "REPORT_TIMEZONE",
]


@pytest.fixture
def clean_env(monkeypatch):
    monkeypatch.setattr(config, "load_dotenv", lambda: None)
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_load_settings_defaults(clean_env):
    settings = config.load_settings()

    assert settings.schema == "public"
    assert settings.orders_sheet_id is None
    assert settings.orders_sheet_name == "Замовлення"
    assert settings.sheets_timeout_seconds == 30.0
    assert settings.catalog_timeout_seconds == 15.0
    assert settings.report_timezone == "Europe/Berlin"


def test_load_settings_from_env(clean_env):
    clean_env.setenv("GOOGLE_SHEET_ORDERS_ID", "abc")
    clean_env.setenv("SHEETS_TIMEOUT_SECONDS", "12.5")

    settings = config.load_settings()

    assert settings.orders_sheet_id == "abc"
    assert settings.sheets_timeout_seconds == 12.5


def test_bad_timeout_is_a_configuration_error(clean_env):
    clean_env.setenv("CATALOG_TIMEOUT_SECONDS", "soon")
    with pytest.raises(ConfigurationError, match="CATALOG_TIMEOUT_SECONDS"):
        config.load_settings()


def test_require_setting():
    settings = make_settings(orders_sheet_id="")
    assert config.require_setting(settings, "supabase_url", "SUPABASE_URL") == "https://db.example.test"
    with pytest.raises(ConfigurationError, match="GOOGLE_SHEET_ORDERS_ID is not set"):
        config.require_setting(settings, "orders_sheet_id", "GOOGLE_SHEET_ORDERS_ID")


def test_service_account_key_is_unescaped(monkeypatch):
    captured = {}

    def fake_from_info(info, scopes):
        captured.update(info=info, scopes=scopes)
        return "creds"

    monkeypatch.setattr(google_client.service_account.Credentials, "from_service_account_info", fake_from_info)

    settings = make_settings(google_private_key='"-----BEGIN-----\\nabc\\n-----END-----"')
    assert google_client.get_credentials(settings) == "creds"
    assert captured["info"]["private_key"] == "-----BEGIN-----\nabc\n-----END-----"
    assert captured["info"]["client_email"] == settings.google_service_account_email
    assert captured["scopes"] == google_client.SCOPES


def test_no_google_credentials_configured(tmp_path):
    settings = make_settings(
        google_service_account_email=None,
        google_private_key=None,
        google_credentials_json=None,
        google_token_file=str(tmp_path / "missing_token.json"),
    )
    with pytest.raises(ConfigurationError):
        google_client.get_credentials(settings)


def test_malformed_private_key_is_a_configuration_error(monkeypatch):
    def reject_key(info, scopes):
        raise ValueError("Could not deserialize key data")

    monkeypatch.setattr(google_client.service_account.Credentials, "from_service_account_info", reject_key)

    with pytest.raises(ConfigurationError, match="Invalid Google credentials"):
        google_client.get_sheets_service(make_settings())
