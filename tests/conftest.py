from __future__ import annotations

import base64
from pathlib import Path
from typing import Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from utils.config import AccountConfig, AppConfig


def make_message(
    message_id: str,
    *,
    sender: Optional[str] = "a@b.com",
    subject: Optional[str] = "Hi",
    in_reply_to: Optional[str] = None,
    message_id_header: Optional[str] = None,
    body: str = "hello there",
    thread_id: str = "t-1",
) -> Dict:
    """Build a ``users.messages.get`` response in Gmail's ``full`` format."""

    headers: List[Dict[str, str]] = []
    if sender is not None:
        headers.append({"name": "From", "value": sender})
    if subject is not None:
        headers.append({"name": "Subject", "value": subject})
    if in_reply_to is not None:
        headers.append({"name": "In-Reply-To", "value": in_reply_to})
    if message_id_header is not None:
        headers.append({"name": "Message-ID", "value": message_id_header})
    data = base64.urlsafe_b64encode(body.encode("utf-8")).decode("ascii")
    return {
        "id": message_id,
        "threadId": thread_id,
        "labelIds": ["INBOX", "UNREAD"],
        "snippet": body[:20],
        "payload": {"mimeType": "text/plain", "headers": headers, "body": {"data": data}},
    }


@pytest.fixture()
def account(tmp_path: Path) -> AccountConfig:
    return AccountConfig(
        credentials_file=tmp_path / "credentials.json",
        token_file=tmp_path / "token.json",
        user_id="me",
    )


@pytest.fixture()
def app_config(account: AccountConfig, tmp_path: Path) -> AppConfig:
    return AppConfig(
        account=account,
        label_name="Vacation Mails",
        reply_body="I'm away.",
        min_interval_seconds=45,
        max_interval_seconds=120,
        fetch_batch_size=100,
        log_dir=tmp_path / "logs",
        log_level="INFO",
        http_host="127.0.0.1",
        http_port=3000,
    )


@pytest.fixture()
def gmail_client() -> MagicMock:
    """A stand-in for the discovery client; every request chain resolves to a MagicMock."""

    client = MagicMock()
    client.users.return_value.messages.return_value.list.return_value.execute.return_value = {"messages": []}
    client.users.return_value.messages.return_value.send.return_value.execute.return_value = {"id": "sent-1"}
    client.users.return_value.messages.return_value.modify.return_value.execute.return_value = {}
    return client
