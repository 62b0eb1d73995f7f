from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict


@dataclass(slots=True)
class EmailMessage:
    """Transient copy of a Gmail message fetched during a tick.

    Header names are stored lower-cased so lookups are case-insensitive.
    """

    id: str
    thread_id: str | None
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""

    def header(self, name: str, default: str | None = None) -> str | None:
        return self.headers.get(name.lower(), default)

    @property
    def sender(self) -> str | None:
        return self.header("from")

    @property
    def subject(self) -> str:
        return self.header("subject", "") or ""

    @property
    def message_id_header(self) -> str | None:
        return self.header("message-id")

    @property
    def is_reply(self) -> bool:
        return "in-reply-to" in self.headers
