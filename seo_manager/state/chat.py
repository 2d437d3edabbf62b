"""SEO アシスタント（チャット）の会話状態。"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Optional

from seo_manager.api.client import ApiClient
from seo_manager.constants import EP_CHAT
from seo_manager.errors import DashboardError

logger = logging.getLogger(__name__)

SEND_FAILED_MESSAGE = "Failed to send message. Please try again."


@dataclass
class TokenUsage:
    total: int = 0
    input: int = 0
    output: int = 0

    def add(self, other: TokenUsage) -> None:
        self.total += other.total
        self.input += other.input
        self.output += other.output


@dataclass
class ChatMessage:
    role: str  # user / assistant
    content: str
    tokens: TokenUsage = field(default_factory=TokenUsage)


def _count(value) -> int:
    """トークン数。数値でなければ 0。"""
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


class ChatStore:
    def __init__(self, api: ApiClient) -> None:
        self._api = api
        self._lock = threading.Lock()
        self.is_open = False
        self.is_loading = False
        self.error: Optional[str] = None
        self.messages: list[ChatMessage] = []
        self.tokens = TokenUsage()

    def toggle(self) -> bool:
        self.is_open = not self.is_open
        return self.is_open

    def send_message(self, text: str) -> Optional[ChatMessage]:
        """送信して応答を追加する。失敗時は error に文言を入れ、例外は出さない。"""
        if not text or not text.strip():
            return None
        with self._lock:
            self.messages.append(ChatMessage(role="user", content=text))
            self.is_loading = True
            self.error = None
        try:
            response = self._api.post(EP_CHAT, {"message": text})
            usage = TokenUsage(
                total=_count(response.get("tokens")),
                input=_count(response.get("input_tokens")),
                output=_count(response.get("output_tokens")),
            )
            reply = ChatMessage(role="assistant", content=str(response.get("response") or ""), tokens=usage)
        except DashboardError as e:
            logger.warning("chat send failed: %s", e)
            with self._lock:
                self.error = SEND_FAILED_MESSAGE
            return None
        finally:
            with self._lock:
                self.is_loading = False

        with self._lock:
            self.messages.append(reply)
            self.tokens.add(usage)
        return reply

    def clear(self) -> None:
        with self._lock:
            self.messages = []
            self.tokens = TokenUsage()
            self.error = None
