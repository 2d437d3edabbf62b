"""トースト通知。常に最大1件で、一定時間後に自動で消える。"""
from __future__ import annotations

import logging
import threading
import time
from collections import deque
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from seo_manager.api.models import ToastMessage
from seo_manager.constants import TOAST_KINDS

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class NotificationChannel:
    """
    深さ1のメッセージキュー。新しい通知は古い通知を置き換える。
    期限切れは current() 呼び出し時に判定する（Streamlit は再描画ごとに読む）。
    """

    def __init__(
        self,
        duration_ms: int = 4000,
        clock: Callable[[], float] = time.monotonic,
        history_size: int = 50,
    ) -> None:
        self.duration_ms = duration_ms
        self._clock = clock
        self._lock = threading.Lock()
        self._current: Optional[ToastMessage] = None
        self._local = threading.local()
        self.history: deque[ToastMessage] = deque(maxlen=history_size)

    def show(self, text: str, kind: str = "info") -> Optional[ToastMessage]:
        if kind not in TOAST_KINDS:
            raise ValueError(f"Unknown toast kind: {kind}")
        with self._lock:
            if getattr(self._local, "muted", 0):
                logger.debug("toast suppressed kind=%s text=%s", kind, text)
                return None
            toast = ToastMessage(text=text, kind=kind, created_at=self._clock())
            self._current = toast
            self.history.append(toast)
        logger.log(_LOG_LEVELS[kind], "toast kind=%s text=%s", kind, text)
        return toast

    def current(self) -> Optional[ToastMessage]:
        with self._lock:
            toast = self._current
            if toast is None:
                return None
            if (self._clock() - toast.created_at) * 1000 >= self.duration_ms:
                self._current = None
                return None
            return toast

    def dismiss(self) -> None:
        with self._lock:
            self._current = None

    @contextmanager
    def muted(self) -> Iterator[None]:
        """この中で、同じスレッドから出た通知は表示しない（サイレント再接続用）。"""
        self._local.muted = getattr(self._local, "muted", 0) + 1
        try:
            yield
        finally:
            self._local.muted -= 1
