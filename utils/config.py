from __future__ import annotations

import base64
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


PROJECT_ROOT = Path(__file__).resolve().parent.parent

DEFAULT_LABEL_NAME = "Vacation Mails"
DEFAULT_REPLY_BODY = (
    "Thank you very much for your email. I'm currently on vacation "
    "and will get back to you as soon as I can."
)


@dataclass(slots=True)
class AccountConfig:
    credentials_file: Path
    token_file: Path
    user_id: str


@dataclass(slots=True)
class AppConfig:
    account: AccountConfig
    label_name: str
    reply_body: str
    min_interval_seconds: int
    max_interval_seconds: int
    fetch_batch_size: int
    log_dir: Path
    log_level: str
    http_host: str
    http_port: int


def _resolve_path(value: str | None, fallback: str) -> Path:
    candidate = Path(value or fallback)
    if not candidate.is_absolute():
        candidate = PROJECT_ROOT / candidate
    return candidate


def _maybe_write_secret_file(target: Path, inline_value: str | None, b64_value: str | None) -> None:
    if not inline_value and not b64_value:
        return
    target.parent.mkdir(parents=True, exist_ok=True)
    if inline_value:
        target.write_text(inline_value, encoding="utf-8")
        return
    try:
        decoded = base64.b64decode(b64_value or "", validate=True)
    except ValueError as exc:
        raise ValueError(f"Failed to decode base64 secret payload for {target.name}") from exc
    target.write_bytes(decoded)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def load_config(env_file: str | os.PathLike[str] | None = None) -> AppConfig:
    """Load configuration values from an env file and environment variables.

    Values already present in the process environment win over the file.
    """

    if env_file:
        load_dotenv(env_file, override=False)
    else:
        load_dotenv(override=False)

    credentials_file = _resolve_path(os.getenv("GOOGLE_CLIENT_SECRETS"), "credentials.json")
    token_file = _resolve_path(os.getenv("GOOGLE_TOKEN_PATH"), "token.json")
    log_dir = _resolve_path(os.getenv("LOG_DIR"), "logs")

    _maybe_write_secret_file(
        credentials_file,
        os.getenv("GOOGLE_CLIENT_SECRETS_JSON"),
        os.getenv("GOOGLE_CLIENT_SECRETS_B64"),
    )
    _maybe_write_secret_file(
        token_file,
        os.getenv("GOOGLE_TOKEN_JSON"),
        os.getenv("GOOGLE_TOKEN_B64"),
    )

    min_interval = _int_env("POLL_MIN_SECONDS", 45)
    max_interval = _int_env("POLL_MAX_SECONDS", 120)
    if min_interval < 1:
        raise ValueError("POLL_MIN_SECONDS must be at least 1")
    if min_interval > max_interval:
        raise ValueError(
            f"POLL_MIN_SECONDS ({min_interval}) must not exceed POLL_MAX_SECONDS ({max_interval})"
        )

    fetch_batch_size = _int_env("FETCH_BATCH_SIZE", 100)
    if fetch_batch_size < 1:
        raise ValueError("FETCH_BATCH_SIZE must be positive")

    account = AccountConfig(
        credentials_file=credentials_file,
        token_file=token_file,
        user_id=os.getenv("GMAIL_USER_ID", "me"),
    )

    return AppConfig(
        account=account,
        label_name=os.getenv("VACATION_LABEL_NAME", DEFAULT_LABEL_NAME),
        reply_body=os.getenv("VACATION_REPLY_BODY", DEFAULT_REPLY_BODY),
        min_interval_seconds=min_interval,
        max_interval_seconds=max_interval,
        fetch_batch_size=fetch_batch_size,
        log_dir=log_dir,
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        http_host=os.getenv("HTTP_HOST", "127.0.0.1"),
        http_port=_int_env("HTTP_PORT", 3000),
    )
