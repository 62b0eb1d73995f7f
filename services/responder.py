from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Optional

from models.label import Label
from services.auth_service import AuthService
from services.auto_reply import AutoReplyService, TickResult
from services.gmail_service import GmailService
from services.poll_loop import PollLoop
from utils.config import AppConfig

LOGGER = logging.getLogger(__name__)

GmailFactory = Callable[[AppConfig], GmailService]


def connect_gmail(config: AppConfig) -> GmailService:
    return GmailService.connect(config.account, AuthService(config.account))


class VacationResponder:
    """Owns the Gmail connection, the resolved label and the poll loop.

    Setup (authentication and label resolution) happens once per process;
    the loop can be started and stopped repeatedly.
    """

    def __init__(self, config: AppConfig, gmail_factory: GmailFactory = connect_gmail):
        self._config = config
        self._gmail_factory = gmail_factory
        self._lock = threading.Lock()
        self._gmail: Optional[GmailService] = None
        self._label: Optional[Label] = None
        self._loop: Optional[PollLoop] = None

    @property
    def label(self) -> Optional[Label]:
        return self._label

    @property
    def is_running(self) -> bool:
        return self._loop is not None and self._loop.is_running

    def setup(self) -> AutoReplyService:
        """Authenticate and resolve the vacation label, reusing earlier results."""

        if self._gmail is None:
            self._gmail = self._gmail_factory(self._config)
        if self._label is None:
            self._label = self._gmail.resolve_label(self._config.label_name)
        return AutoReplyService(
            self._gmail,
            self._label.id,
            self._config.reply_body,
            batch_size=self._config.fetch_batch_size,
        )

    def start(self) -> bool:
        """Start polling. Returns False if the loop was already running."""

        with self._lock:
            if self.is_running:
                LOGGER.info("Responder already running")
                return False
            service = self.setup()
            self._loop = PollLoop(
                service.run_tick,
                min_seconds=self._config.min_interval_seconds,
                max_seconds=self._config.max_interval_seconds,
            )
            self._loop.start()
        LOGGER.info("Vacation responder started with label %s", self._label.name)
        return True

    def stop(self, timeout: float | None = 5.0) -> bool:
        """Stop polling. Returns False while a tick is still finishing."""

        with self._lock:
            if self._loop is None or not self._loop.is_running:
                return True
            stopped = self._loop.stop(timeout)
        if stopped:
            LOGGER.info("Vacation responder stopped")
        return stopped

    def run_once(self) -> TickResult:
        return self.setup().run_tick()

    def status(self) -> Dict[str, object]:
        loop = self._loop
        if loop is None or not loop.is_running:
            status = "stopped"
        elif loop.stop_requested:
            status = "stopping"
        else:
            status = "running"
        return {
            "status": status,
            "state": loop.state.value if loop else "stopped",
            "ticks": loop.ticks_completed if loop else 0,
            "label_id": self._label.id if self._label else None,
            "last_error": type(loop.last_error).__name__ if loop and loop.last_error else None,
        }
