"""ストア接続（セッション）の管理：connect / reconnect / disconnect。"""
from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import TYPE_CHECKING, Optional

from seo_manager.api.models import OperationResult, ProductFilterSet, Session
from seo_manager.constants import (
    ALL_CACHE_KEYS,
    CACHE_KEY_ACCESS_TOKEN,
    CACHE_KEY_EMAIL,
    CACHE_KEY_STORE_INFO,
    SESSION_CACHE_KEYS,
)
from seo_manager.errors import NoSessionError, ValidationError, user_message
from seo_manager.state.notifications import NotificationChannel
from seo_manager.store.cache import PersistentCache

if TYPE_CHECKING:
    from seo_manager.state.products import ProductStore

logger = logging.getLogger(__name__)

CONNECT_FAILED_MESSAGE = "Failed to connect to store."
RECONNECT_FAILED_MESSAGE = "Failed to reconnect to store"
MISSING_CREDENTIALS_MESSAGE = "Access token missing. Please reconnect your store."


class SessionManager:
    """
    接続中ストアの識別情報を持つ。状態遷移は DISCONNECTED ⇄ CONNECTED のみ。
    接続後の API エラーでは切断しない（明示的な disconnect まで保持）。
    """

    def __init__(self, cache: PersistentCache, notifications: NotificationChannel) -> None:
        self._cache = cache
        self._notifications = notifications
        self._lock = threading.Lock()
        self._products: Optional[ProductStore] = None
        # 起動時はキャッシュから同期的に復元（通信しない）
        self._session = self._load_cached() or Session()

    def bind_products(self, products: ProductStore) -> None:
        self._products = products

    @property
    def products(self) -> ProductStore:
        if self._products is None:
            raise RuntimeError("ProductStore is not bound to SessionManager")
        return self._products

    def current(self) -> Session:
        with self._lock:
            return replace(self._session)

    def is_connected(self) -> bool:
        with self._lock:
            return self._session.connected

    def require(self) -> Session:
        """接続済みセッションを返す。無ければ NoSessionError。"""
        session = self.current()
        if not session.connected or not session.is_complete():
            raise NoSessionError(MISSING_CREDENTIALS_MESSAGE)
        return session

    def _load_cached(self) -> Optional[Session]:
        return Session.from_cache(
            self._cache.load(CACHE_KEY_STORE_INFO, None),
            self._cache.load_raw(CACHE_KEY_ACCESS_TOKEN),
            self._cache.load_raw(CACHE_KEY_EMAIL),
        )

    def restore_from_cache(self) -> Optional[Session]:
        """キャッシュにセッションがあればメモリに戻す。無い・不完全なら None。"""
        cached = self._load_cached()
        if cached is None:
            return None
        with self._lock:
            self._session = cached
        logger.info("restored store credentials from cache store=%s", cached.store_name)
        return replace(cached)

    def _persist(self, session: Session) -> None:
        self._cache.save(CACHE_KEY_STORE_INFO, session.store_info())
        self._cache.save_raw(CACHE_KEY_ACCESS_TOKEN, session.access_token)
        self._cache.save_raw(CACHE_KEY_EMAIL, session.email)

    def connect(self, store_name: str, access_token: str, email: str) -> OperationResult:
        """
        3項目を検証して接続し、絞り込みなしで1ページ目を取得する。
        サーバーが拒否した場合はサーバーの文言をそのまま通知し、セッションは保存しない。
        """
        store_name = (store_name or "").strip()
        access_token = (access_token or "").strip()
        email = (email or "").strip()
        missing = [
            label
            for label, value in (("store name", store_name), ("access token", access_token), ("email", email))
            if not value
        ]
        if missing:
            error = ValidationError(f"Please enter {', '.join(missing)}.")
            self._notifications.show(error.message, "error")
            return OperationResult.fail(error)

        previous = self.current()
        session = Session(store_name=store_name, email=email, access_token=access_token, connected=True)
        with self._lock:
            self._session = session
        self._persist(session)

        products = self.products
        products.reset_filters()
        result = products.fetch_page(1, ProductFilterSet(), notify=False)
        if not result.success:
            logger.warning("connect failed store=%s: %s", store_name, result.message)
            self._rollback(previous)
            message = user_message(result.error, CONNECT_FAILED_MESSAGE)
            self._notifications.show(message, "error")
            return OperationResult.fail(result.error, message)

        logger.info("store connected store=%s", store_name)
        self._notifications.show("Store connected successfully", "success")
        return OperationResult.ok("Store connected successfully", data=self.current())

    def _rollback(self, previous: Session) -> None:
        with self._lock:
            self._session = previous
        if previous.connected and previous.is_complete():
            self._persist(previous)
        else:
            self._cache.remove(*SESSION_CACHE_KEYS)

    def reconnect(self, silent: bool = False) -> OperationResult:
        """
        キャッシュのセッションで再接続し、現在の絞り込み条件で1ページ目を取り直す。
        キャッシュが無い・不完全なら何もしない（通信も通知もしない）。
        silent=True（起動時）は成功・失敗とも通知しない。
        """
        cached = self.restore_from_cache()
        if cached is None:
            logger.debug("reconnect: no cached session")
            return OperationResult.ok("No saved session.")

        products = self.products
        if silent:
            with self._notifications.muted():
                result = products.fetch_page(1, notify=False)
        else:
            result = products.fetch_page(1, notify=False)

        if result.success:
            if not silent:
                self._notifications.show("Store reconnected successfully", "success")
            return OperationResult.ok("Store reconnected successfully", data=cached)
        logger.warning("reconnect failed store=%s: %s", cached.store_name, result.message)
        if not silent:
            self._notifications.show(user_message(result.error, RECONNECT_FAILED_MESSAGE), "error")
        return OperationResult.fail(result.error, result.message)

    def disconnect(self) -> None:
        """キャッシュとメモリを消して未接続に戻す。通信はしない。"""
        self._cache.remove(*ALL_CACHE_KEYS)
        with self._lock:
            self._session = Session()
        if self._products is not None:
            self._products.clear()
        logger.info("store disconnected")
        self._notifications.show("Disconnected and cleared cache.", "info")
