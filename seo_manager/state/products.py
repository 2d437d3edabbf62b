"""
商品一覧ストア。
ページ単位のキャッシュ・絞り込み条件・ページ番号を保持し、取得結果で丸ごと置き換える。
"""
from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Optional

from seo_manager.api import payloads
from seo_manager.api.client import ApiClient
from seo_manager.api.models import OperationResult, Page, Product, ProductFilterSet
from seo_manager.constants import CACHE_KEY_CACHED_PRODUCTS, EP_FETCH_PRODUCTS
from seo_manager.errors import DashboardError, NoSessionError, user_message
from seo_manager.state.notifications import NotificationChannel
from seo_manager.store.cache import PersistentCache

if TYPE_CHECKING:
    from seo_manager.state.session import SessionManager

logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "Failed to fetch products. Please try again."
NO_SESSION_MESSAGE = "Please connect your store first."
STALE_MESSAGE = "stale response discarded"


class ProductStore:
    """fetch-products/ の結果を保持する。リスト・ページ情報の書き込みはこのクラスだけが行う。"""

    def __init__(
        self,
        api: ApiClient,
        cache: PersistentCache,
        sessions: SessionManager,
        notifications: NotificationChannel,
        page_size: int = 10,
    ) -> None:
        self._api = api
        self._cache = cache
        self._sessions = sessions
        self._notifications = notifications
        self.page_size = page_size
        self._lock = threading.Lock()
        # 起動時はキャッシュから同期的に復元（通信しない）
        self._page = Page.from_cache(cache.load(CACHE_KEY_CACHED_PRODUCTS, None), page_size)
        self._filters = ProductFilterSet()
        # 追い越し対策：発行順の番号を振り、反映済み以下の番号の応答は捨てる
        self._seq_issued = 0
        self._seq_applied = 0
        self._in_flight = 0

    @property
    def page(self) -> Page:
        with self._lock:
            return Page(
                items=list(self._page.items),
                current_page=self._page.current_page,
                total_pages=self._page.total_pages,
                total_items=self._page.total_items,
                page_size=self._page.page_size,
            )

    @property
    def products(self) -> list[Product]:
        with self._lock:
            return list(self._page.items)

    @property
    def filters(self) -> ProductFilterSet:
        with self._lock:
            return self._filters

    @property
    def is_loading(self) -> bool:
        with self._lock:
            return self._in_flight > 0

    def find(self, product_id: str) -> Optional[Product]:
        with self._lock:
            return next((p for p in self._page.items if p.id == product_id), None)

    def update_filters(self, **patch: Any) -> ProductFilterSet:
        """絞り込み条件をマージする。取得は呼び出し側が fetch_page(1, ...) で行う。"""
        with self._lock:
            self._filters = self._filters.merged(**patch)
            return self._filters

    def reset_filters(self) -> ProductFilterSet:
        """全条件 None の既定値に戻す。続けて fetch_page(1, 既定値) を呼ぶ想定。"""
        default = ProductFilterSet()
        with self._lock:
            self._filters = default
        return default

    def fetch_page(
        self,
        page: int = 1,
        filters: Optional[ProductFilterSet] = None,
        *,
        notify: bool = True,
    ) -> OperationResult:
        """
        1ページ分を取得してリストを置き換える。
        セッションが無ければキャッシュから一度だけ復元を試みる。
        失敗時は既存のリストを変更せず、エラー通知を出す。自動リトライはしない。
        """
        session = self._sessions.current()
        if not session.connected:
            restored = self._sessions.restore_from_cache()
            if restored is None:
                error = NoSessionError(NO_SESSION_MESSAGE)
                logger.info("fetch_page skipped: no session")
                if notify:
                    self._notifications.show(error.message, "error")
                return OperationResult.fail(error)
            session = restored

        with self._lock:
            if filters is not None:
                self._filters = filters
            effective_filters = self._filters
            self._seq_issued += 1
            seq = self._seq_issued
            self._in_flight += 1

        page_number = max(1, int(page or 1))
        body = payloads.build_fetch_payload(session, page_number, effective_filters)
        try:
            response = self._api.post(EP_FETCH_PRODUCTS, body)
            new_page = Page.from_api(response, page_size=self.page_size, requested_page=page_number)
        except DashboardError as e:
            logger.warning("fetch_page failed: %s", e)
            return self._stale_result(seq) or self._fail(e, notify)
        except Exception as e:
            logger.exception("fetch_page unexpected error")
            return self._stale_result(seq) or self._fail(e, notify)
        finally:
            with self._lock:
                self._in_flight -= 1

        with self._lock:
            if seq <= self._seq_applied:
                logger.debug("fetch_page seq=%d discarded (applied=%d)", seq, self._seq_applied)
                return OperationResult(success=True, message=STALE_MESSAGE, stale=True)
            self._seq_applied = seq
            self._page = new_page
            snapshot = new_page.to_cache()
        self._cache.save(CACHE_KEY_CACHED_PRODUCTS, snapshot)
        logger.info(
            "fetched page=%d/%d items=%d filters=%s",
            new_page.current_page,
            new_page.total_pages,
            len(new_page.items),
            payloads.build_filter_payload(effective_filters),
        )
        return OperationResult.ok(data=new_page)

    def _stale_result(self, seq: int) -> Optional[OperationResult]:
        """新しい取得が反映済みなら、古い取得の失敗は通知せずに捨てる。"""
        with self._lock:
            if seq > self._seq_applied:
                return None
            applied = self._seq_applied
        logger.debug("fetch_page seq=%d failure discarded (applied=%d)", seq, applied)
        return OperationResult(success=True, message=STALE_MESSAGE, stale=True)

    def _fail(self, error: Exception, notify: bool) -> OperationResult:
        message = user_message(error, FETCH_FAILED_MESSAGE)
        if notify:
            self._notifications.show(message, "error")
        return OperationResult.fail(error, message)

    def apply_status_patch(self, product_name: str, status: str) -> bool:
        """承認/却下直後の楽観的更新。次回の fetch_page でサーバーの値に置き換わる。"""
        patched = False
        with self._lock:
            for product in self._page.items:
                if product.name == product_name:
                    product.status = status
                    patched = True
        if not patched:
            logger.info("status patch: product %r is not on the current page", product_name)
        return patched

    def clear(self) -> None:
        """一覧を空にしてキャッシュも消す。処理中の取得結果も反映させない。"""
        with self._lock:
            self._page = Page.empty(self.page_size)
            self._filters = ProductFilterSet()
            self._seq_applied = self._seq_issued
        self._cache.remove(CACHE_KEY_CACHED_PRODUCTS)
