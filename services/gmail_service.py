from __future__ import annotations

import base64
import logging
from typing import Any, Dict, List, Sequence

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from models.email_message import EmailMessage
from models.label import Label
from models.reply_draft import ReplyDraft
from services.auth_service import AuthService
from utils.config import AccountConfig

LOGGER = logging.getLogger(__name__)

INBOX_LABEL = "INBOX"
UNREAD_QUERY = "is:unread"
HTTP_CONFLICT = 409


class GmailService:
    """Wrapper around the Gmail API calls the responder makes."""

    def __init__(self, account: AccountConfig, client: Any):
        self._account = account
        self._client = client

    @classmethod
    def connect(cls, account: AccountConfig, auth_service: AuthService) -> "GmailService":
        creds = auth_service.authenticate()
        client = build("gmail", "v1", credentials=creds, cache_discovery=False)
        return cls(account, client)

    @property
    def user_id(self) -> str:
        return self._account.user_id

    def resolve_label(self, label_name: str) -> Label:
        """Create ``label_name``, or look it up when Gmail reports it already exists."""

        body = {"name": label_name, "labelListVisibility": "labelShow", "messageListVisibility": "show"}
        try:
            response = self._client.users().labels().create(userId=self.user_id, body=body).execute()
        except HttpError as exc:
            if exc.resp.status != HTTP_CONFLICT:
                LOGGER.error("Failed to create label %s: %s", label_name, exc)
                raise
            LOGGER.debug("Label %s already exists, looking it up", label_name)
            for label in self._list_labels():
                if label.get("name") == label_name:
                    LOGGER.info("Using existing label %s (%s)", label_name, label["id"])
                    return Label(name=label_name, id=label["id"])
            raise LookupError(f"Label {label_name!r} reported as existing but was not listed") from exc

        LOGGER.info("Created label %s with id %s", label_name, response["id"])
        return Label(name=label_name, id=response["id"])

    def _list_labels(self) -> List[Dict]:
        response = self._client.users().labels().list(userId=self.user_id).execute()
        return response.get("labels", [])

    def list_unread_inbox(self, max_results: int) -> List[str]:
        """Return ids of unread messages sitting in the inbox."""

        try:
            response = (
                self._client.users()
                .messages()
                .list(userId=self.user_id, labelIds=[INBOX_LABEL], q=UNREAD_QUERY, maxResults=max_results)
                .execute()
            )
        except HttpError as exc:
            LOGGER.error("Failed to list unread inbox messages: %s", exc)
            raise

        message_ids = [message["id"] for message in response.get("messages", []) or []]
        LOGGER.debug("Found %s unread inbox message(s)", len(message_ids))
        return message_ids

    def fetch_message(self, message_id: str) -> EmailMessage:
        response = (
            self._client.users()
            .messages()
            .get(userId=self.user_id, id=message_id, format="full")
            .execute()
        )
        payload = response.get("payload", {})
        return EmailMessage(
            id=response["id"],
            thread_id=response.get("threadId"),
            headers=_headers_to_dict(payload.get("headers", [])),
            body=_extract_body(payload),
        )

    def send_reply(self, draft: ReplyDraft) -> Dict:
        try:
            response = (
                self._client.users()
                .messages()
                .send(userId=self.user_id, body=draft.to_send_body())
                .execute()
            )
        except HttpError as exc:
            LOGGER.error("Failed to send reply to %s: %s", draft.to, exc)
            raise
        LOGGER.info("Sent vacation reply to %s (%s)", draft.to, response.get("id"))
        return response

    def mark_handled(self, message_id: str, label_id: str) -> Dict:
        """Tag the message with the vacation label and take it out of the inbox."""

        body = {"addLabelIds": [label_id], "removeLabelIds": [INBOX_LABEL]}
        response = (
            self._client.users()
            .messages()
            .modify(userId=self.user_id, id=message_id, body=body)
            .execute()
        )
        LOGGER.debug("Moved message %s to label %s", message_id, label_id)
        return response


def _headers_to_dict(headers: Sequence[Dict[str, str]]) -> Dict[str, str]:
    mapped: Dict[str, str] = {}
    for header in headers:
        name = header.get("name", "").lower()
        if name and name not in mapped:
            mapped[name] = header.get("value", "")
    return mapped


def _extract_body(payload: Dict) -> str:
    if payload.get("mimeType", "text/plain").startswith("text/plain") and payload.get("body", {}).get("data"):
        return _decode_base64(payload["body"]["data"])
    for part in payload.get("parts", []) or []:
        if part.get("mimeType") == "text/plain":
            data = part.get("body", {}).get("data")
            if data:
                return _decode_base64(data)
        if part.get("parts"):
            nested = _extract_body(part)
            if nested:
                return nested
    return ""


def _decode_base64(data: str) -> str:
    try:
        return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4)).decode("utf-8")
    except (ValueError, UnicodeDecodeError):
        return ""
