from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Sequence

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from utils.config import AccountConfig

LOGGER = logging.getLogger(__name__)
SCOPES: Sequence[str] = (
    "https://www.googleapis.com/auth/gmail.readonly",
    "https://www.googleapis.com/auth/gmail.send",
    "https://www.googleapis.com/auth/gmail.labels",
    "https://mail.google.com/",
)


class AuthService:
    """Obtain Gmail credentials for the responder's mailbox."""

    def __init__(self, account: AccountConfig, scopes: Sequence[str] = SCOPES):
        self._account = account
        self._scopes = list(scopes)

    def _save_credentials(self, creds: Credentials) -> None:
        token_path = self._account.token_file
        LOGGER.debug("Persisting OAuth tokens to %s", token_path)
        token_path.parent.mkdir(parents=True, exist_ok=True)
        token_path.write_text(creds.to_json(), encoding="utf-8")

    def _load_cached_credentials(self) -> Credentials | None:
        token_path: Path = self._account.token_file
        if not token_path.exists():
            return None
        LOGGER.debug("Loading cached credential from %s", token_path)
        data = json.loads(token_path.read_text(encoding="utf-8"))
        return Credentials.from_authorized_user_info(data, self._scopes)

    def authenticate(self) -> Credentials:
        """Return valid credentials, refreshing or running the consent flow as needed.

        No retries: any failure propagates to the caller.
        """

        creds = self._load_cached_credentials()
        if creds and creds.valid:
            return creds

        if creds and creds.expired and creds.refresh_token:
            LOGGER.info("Refreshing expired Gmail token")
            creds.refresh(Request())
            self._save_credentials(creds)
            return creds

        credentials_file = self._account.credentials_file
        if not credentials_file.exists():
            raise FileNotFoundError(f"Missing Gmail client secrets file: {credentials_file}")

        LOGGER.info("Initiating OAuth flow using %s", credentials_file)
        flow = InstalledAppFlow.from_client_secrets_file(str(credentials_file), scopes=self._scopes)
        creds = flow.run_local_server(port=0)
        self._save_credentials(creds)
        return creds
