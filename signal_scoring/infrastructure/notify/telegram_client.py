# signal_scoring/infrastructure/notify/telegram_client.py
from __future__ import annotations

import os
import re
import time
from typing import Any, Dict, Optional

import requests


# Bot tokens look like 123456789:AA...; they also show up glued to "/bot" in request URLs.
_TOKEN_RE = re.compile(r"(?<!\d)\d{6,}:[A-Za-z0-9_-]{20,}")


def redact_secrets(text: str) -> str:
    if not text:
        return text
    return _TOKEN_RE.sub("<TELEGRAM_BOT_TOKEN_REDACTED>", text)


def _env_enabled() -> bool:
    return os.getenv("TELEGRAM_ENABLED", "1").strip().lower() not in ("0", "false", "no", "off")


class TelegramClient:
    """Operator alert sender.

    Env (read at construction time so dotenv loading can happen first):
      TELEGRAM_ENABLED=0/1
      TELEGRAM_BOT_TOKEN
      TELEGRAM_CHAT_ID
    """

    api_base = "https://api.telegram.org"

    def __init__(
        self,
        bot_token: Optional[str] = None,
        chat_id: Optional[str] = None,
        enabled: Optional[bool] = None,
        session: Optional[requests.Session] = None,
    ):
        self.bot_token = bot_token if bot_token is not None else os.getenv("TELEGRAM_BOT_TOKEN")
        self.chat_id = chat_id if chat_id is not None else os.getenv("TELEGRAM_CHAT_ID")
        self.enabled = _env_enabled() if enabled is None else bool(enabled)
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.enabled and self.bot_token and self.chat_id)

    def send(self, text: str, max_retries: int = 2, backoff_sec: float = 0.5, timeout_sec: float = 8.0) -> Dict[str, Any]:
        """POST sendMessage; returns a small dict that is safe to log."""
        if not self.enabled:
            return {"ok": False, "reason": "disabled"}
        if not self.bot_token or not self.chat_id:
            return {"ok": False, "reason": "no-token-or-chatid"}

        url = f"{self.api_base}/bot{self.bot_token}/sendMessage"
        payload = {"chat_id": self.chat_id, "text": text, "disable_web_page_preview": True}

        last_exc: Optional[Exception] = None
        for attempt in range(max_retries + 1):
            try:
                r = self.session.post(url, json=payload, timeout=timeout_sec)
                r.raise_for_status()
                return r.json()
            except (requests.RequestException, ValueError) as e:
                last_exc = e
                if attempt < max_retries:
                    time.sleep(backoff_sec * (attempt + 1))

        err = redact_secrets(str(last_exc)) if last_exc else "unknown"
        return {"ok": False, "reason": "exception", "error": err}
