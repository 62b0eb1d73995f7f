from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from models.email_message import EmailMessage
from models.reply_draft import REPLY_PREFIX, ReplyDraft
from services.gmail_service import GmailService

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class TickResult:
    seen: int = 0
    replied: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


def craft_reply(email: EmailMessage, body: str) -> ReplyDraft:
    """Address a canned reply back to the sender of ``email``."""

    if not email.sender:
        raise ValueError(f"Message {email.id} has no From header")
    original_id = email.message_id_header
    references = None
    if original_id:
        previous = email.header("references")
        references = f"{previous} {original_id}" if previous else original_id
    return ReplyDraft(
        to=email.sender,
        subject=f"{REPLY_PREFIX}{email.subject}",
        body=body,
        thread_id=email.thread_id,
        in_reply_to=original_id,
        references=references,
    )


class AutoReplyService:
    """Runs one poll-and-reply pass over the unread inbox."""

    def __init__(self, gmail: GmailService, label_id: str, reply_body: str, batch_size: int = 100):
        self._gmail = gmail
        self._label_id = label_id
        self._reply_body = reply_body
        self._batch_size = batch_size

    def run_tick(self) -> TickResult:
        message_ids = self._gmail.list_unread_inbox(self._batch_size)
        result = TickResult(seen=len(message_ids))
        for message_id in message_ids:
            # Failures here abort the remainder of the tick; the loop logs them.
            email = self._gmail.fetch_message(message_id)
            if email.is_reply:
                LOGGER.debug("Skipping %s, it is already a reply", email.id)
                result.skipped.append(email.id)
                continue
            if not email.sender:
                LOGGER.warning("Skipping %s, no From header to reply to", email.id)
                result.skipped.append(email.id)
                continue
            self.reply_to(email)
            result.replied.append(email.id)

        LOGGER.info(
            "Tick finished: %s unread, %s replied, %s skipped",
            result.seen,
            len(result.replied),
            len(result.skipped),
        )
        return result

    def reply_to(self, email: EmailMessage) -> None:
        draft = craft_reply(email, self._reply_body)
        self._gmail.send_reply(draft)
        self._gmail.mark_handled(email.id, self._label_id)
