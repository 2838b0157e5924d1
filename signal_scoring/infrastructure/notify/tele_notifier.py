# signal_scoring/infrastructure/notify/tele_notifier.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .message_builder import build_message_from_event
from .telegram_client import TelegramClient, redact_secrets

logger = logging.getLogger("tele_notifier")


class TeleNotifier:
    """Settlement events -> Telegram. Never raises into the settlement loop."""

    def __init__(self, client: Optional[TelegramClient] = None):
        self.client = client or TelegramClient()

    def handle_event(self, topic: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            msg = build_message_from_event({"type": topic, "payload": payload})
            if not msg:
                return None
            res = self.client.send(msg)
            if isinstance(res, dict) and res.get("ok") is False and res.get("reason") != "disabled":
                logger.warning("Telegram send failed: %s", {k: res.get(k) for k in ("reason", "error")})
            return res
        except Exception as e:
            logger.error("TeleNotifier failed: %s", redact_secrets(str(e)))
            return None
