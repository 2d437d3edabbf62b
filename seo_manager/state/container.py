"""
ダッシュボード状態の組み立て（コンポジションルート）。
Streamlit では st.session_state に1つだけ保持し、各ページへ渡す。
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from concurrent.futures import Future
from typing import Optional

from seo_manager.api.client import ApiClient
from seo_manager.config import AppSettings, load_settings
from seo_manager.state.chat import ChatStore
from seo_manager.state.gsc import GscStore
from seo_manager.state.notifications import NotificationChannel
from seo_manager.state.operations import OperationCoordinator
from seo_manager.state.products import ProductStore
from seo_manager.state.session import SessionManager
from seo_manager.store.cache import PersistentCache

logger = logging.getLogger(__name__)


@dataclass
class DashboardState:
    settings: AppSettings
    api: ApiClient
    cache: PersistentCache
    notifications: NotificationChannel
    sessions: SessionManager
    products: ProductStore
    operations: OperationCoordinator
    gsc: GscStore
    chat: ChatStore
    startup: Optional[Future] = None

    def start(self) -> Optional[Future]:
        """
        キャッシュ済みのページはコンストラクタで既に読み込まれている。
        ここではサーバーからの再取得（サイレント再接続）をバックグラウンドで1回だけ走らせる。
        """
        if self.startup is None and self.sessions.is_connected():
            self.startup = self.operations.submit(self.sessions.reconnect, True)
        return self.startup

    def close(self) -> None:
        self.operations.shutdown(wait=False)
        self.cache.close()


def create_state(
    settings: Optional[AppSettings] = None,
    api: Optional[ApiClient] = None,
    cache: Optional[PersistentCache] = None,
    notifications: Optional[NotificationChannel] = None,
) -> DashboardState:
    """設定から全ストアを組み立てる。テストでは api / cache を差し替える。"""
    settings = settings or load_settings()
    api = api or ApiClient(settings.api_base_url, timeout_sec=settings.timeout_sec)
    cache = cache or PersistentCache(db_path=settings.cache_db_path)
    notifications = notifications or NotificationChannel(duration_ms=settings.toast_duration_ms)

    sessions = SessionManager(cache, notifications)
    products = ProductStore(api, cache, sessions, notifications, page_size=settings.page_size)
    sessions.bind_products(products)
    operations = OperationCoordinator(api, sessions, products, notifications)
    logger.info(
        "dashboard state created api=%s connected=%s cached_items=%d",
        settings.api_base_url,
        sessions.is_connected(),
        len(products.products),
    )
    return DashboardState(
        settings=settings,
        api=api,
        cache=cache,
        notifications=notifications,
        sessions=sessions,
        products=products,
        operations=operations,
        gsc=GscStore(api, notifications),
        chat=ChatStore(api),
    )
