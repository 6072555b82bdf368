import logging
import os
from typing import Optional

import httplib2
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

from config import Settings, load_settings
from domain.errors import ConfigurationError

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
]

logger = logging.getLogger(__name__)


def _service_account_credentials(settings: Settings):
    # keys pasted into .env usually carry literal "\n" and sometimes quotes
    private_key = settings.google_private_key.replace("\\n", "\n").strip('"')
    info = {
        "type": "service_account",
        "client_email": settings.google_service_account_email,
        "private_key": private_key,
        "token_uri": "https://oauth2.googleapis.com/token",
    }
    return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)


def _user_credentials(settings: Settings):
    creds = None
    token_file = settings.google_token_file

    if os.path.exists(token_file):
        creds = Credentials.from_authorized_user_file(token_file, SCOPES)

    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        creds.refresh(Request())
    else:
        if not settings.google_credentials_json:
            raise ConfigurationError(
                "Set GOOGLE_SERVICE_ACCOUNT_EMAIL and GOOGLE_PRIVATE_KEY, "
                "or GOOGLE_CREDENTIALS_JSON, in the environment"
            )
        flow = InstalledAppFlow.from_client_secrets_file(
            settings.google_credentials_json,
            SCOPES,
        )
        creds = flow.run_local_server(port=0)

    with open(token_file, "w") as token:
        token.write(creds.to_json())

    return creds


def get_credentials(settings: Optional[Settings] = None):
    """
    Service account when GOOGLE_SERVICE_ACCOUNT_EMAIL/GOOGLE_PRIVATE_KEY are
    set (server deployments), otherwise the installed-app OAuth flow with a
    cached token file.
    """
    settings = settings or load_settings()

    if settings.google_service_account_email and settings.google_private_key:
        return _service_account_credentials(settings)

    logger.info("No service account configured, using OAuth user credentials")
    return _user_credentials(settings)


def get_sheets_service(settings: Optional[Settings] = None):
    """
    Sheets v4 client whose HTTP calls time out after SHEETS_TIMEOUT_SECONDS.
    """
    settings = settings or load_settings()
    try:
        creds = get_credentials(settings)
    except ValueError as e:
        # a malformed GOOGLE_PRIVATE_KEY or credentials file
        raise ConfigurationError(f"Invalid Google credentials: {e}") from e
    http = AuthorizedHttp(creds, http=httplib2.Http(timeout=settings.sheets_timeout_seconds))
    return build("sheets", "v4", http=http, cache_discovery=False)
