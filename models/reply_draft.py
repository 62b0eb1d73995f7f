from __future__ import annotations

import base64
from dataclasses import dataclass
from email.mime.text import MIMEText
from typing import Dict

REPLY_PREFIX = "Re: "


@dataclass(slots=True)
class ReplyDraft:
    """Plaintext reply built from a source message, discarded after send."""

    to: str
    subject: str
    body: str
    thread_id: str | None = None
    in_reply_to: str | None = None
    references: str | None = None

    def to_mime(self) -> MIMEText:
        message = MIMEText(self.body, "plain", "utf-8")
        message["To"] = self.to
        message["Subject"] = self.subject
        if self.in_reply_to:
            message["In-Reply-To"] = self.in_reply_to
        if self.references:
            message["References"] = self.references
        return message

    def to_send_body(self) -> Dict[str, str]:
        """Request body for ``users.messages.send``."""

        raw = base64.urlsafe_b64encode(self.to_mime().as_bytes()).decode("ascii")
        body = {"raw": raw}
        if self.thread_id:
            body["threadId"] = self.thread_id
        return body
