"""
analyze / resolve の一括・個別実行と進捗管理。
処理中の商品IDを保持し、同じIDに対する通信が同時に2本走らないようにする。
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Iterable, Optional

from seo_manager.api import payloads
from seo_manager.api.client import ApiClient
from seo_manager.api.models import (
    STATUS_APPROVED,
    STATUS_REJECTED,
    OperationResult,
    OpportunityList,
)
from seo_manager.constants import (
    EP_ANALYZE_ALL,
    EP_ANALYZE_BATCH,
    EP_APPROVE_REJECT,
    EP_RESOLVE_ALL,
    EP_RESOLVE_BATCH,
    EP_SEO_OPPORTUNITIES,
)
from seo_manager.errors import DashboardError, ValidationError, user_message
from seo_manager.state.notifications import NotificationChannel
from seo_manager.state.products import ProductStore
from seo_manager.state.session import SessionManager
from seo_manager.util.datetime_utils import operation_id
from seo_manager.util.log import log_operation_summary

logger = logging.getLogger(__name__)

ANALYZE = "analyze"
RESOLVE = "resolve"

_BATCH_ENDPOINTS = {ANALYZE: EP_ANALYZE_BATCH, RESOLVE: EP_RESOLVE_BATCH}
_STORE_WIDE_ENDPOINTS = {ANALYZE: EP_ANALYZE_ALL, RESOLVE: EP_RESOLVE_ALL}
_VERBS = {ANALYZE: "Analyzed", RESOLVE: "Resolved"}
_BATCH_FALLBACKS = {
    ANALYZE: "Failed to analyze products.",
    RESOLVE: "Failed to resolve product issues.",
}
_STORE_WIDE_FALLBACKS = {
    ANALYZE: "Failed to analyze products.",
    RESOLVE: "Failed to resolve issues.",
}
_STORE_WIDE_SUCCESS = {
    ANALYZE: "Product analysis started.",
    RESOLVE: "Resolved all product issues.",
}
OPPORTUNITIES_FAILED_MESSAGE = "Failed to analyze SEO opportunities. Please try again."
_SUGGESTION_STATUS = {"approve": STATUS_APPROVED, "reject": STATUS_REJECTED}


def summarize_count(kind: str, count: int) -> str:
    """1件なら単数形、それ以外は複数形。"""
    noun = "product" if count == 1 else "products"
    return f"{_VERBS[kind]} {count} {noun}"


class OperationCoordinator:
    """
    処理中ID集合（analyzing / resolving）の唯一の書き手。
    1つのIDは同時に片方の集合にしか入らない。後片付けは成功・失敗に関わらず finally で行う。
    """

    def __init__(
        self,
        api: ApiClient,
        sessions: SessionManager,
        products: ProductStore,
        notifications: NotificationChannel,
        max_workers: int = 4,
    ) -> None:
        self._api = api
        self._sessions = sessions
        self._products = products
        self._notifications = notifications
        self._lock = threading.Lock()
        self._analyzing: set[str] = set()
        self._resolving: set[str] = set()
        self._store_wide: dict[str, bool] = {ANALYZE: False, RESOLVE: False}
        # 商品IDごとの処理中の SEO 提案リクエスト
        self._opportunity_requests: dict[str, Future] = {}
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="seo-op")
        self._background: set[Future] = set()

    # ----- 進捗の参照 -----

    @property
    def analyzing(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._analyzing)

    @property
    def resolving(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._resolving)

    @property
    def is_analyzing(self) -> bool:
        with self._lock:
            return self._store_wide[ANALYZE]

    @property
    def is_resolving(self) -> bool:
        with self._lock:
            return self._store_wide[RESOLVE]

    def processing_kind(self, product_id: str) -> Optional[str]:
        """行ごとのスピナー表示用。処理中なら "analyze" / "resolve"。"""
        with self._lock:
            if product_id in self._analyzing:
                return ANALYZE
            if product_id in self._resolving:
                return RESOLVE
            return None

    def is_busy(self) -> bool:
        with self._lock:
            return bool(
                self._analyzing
                or self._resolving
                or any(self._store_wide.values())
                or self._opportunity_requests
                or any(not f.done() for f in self._background)
            )

    # ----- バックグラウンド実行 -----

    def submit(self, fn: Callable[..., OperationResult], *args: Any, **kwargs: Any) -> Future:
        """操作をワーカースレッドで実行する。画面側は is_busy() を見て再描画する。"""
        future = self._executor.submit(fn, *args, **kwargs)
        with self._lock:
            self._background = {f for f in self._background if not f.done()}
            self._background.add(future)
        return future

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    # ----- 一括 analyze / resolve -----

    def _sets(self) -> dict[str, set[str]]:
        return {ANALYZE: self._analyzing, RESOLVE: self._resolving}

    def _claim(self, kind: str, ids: list[str]) -> tuple[list[str], list[str]]:
        """どちらの集合にも入っていないIDだけを kind の集合に登録する。"""
        with self._lock:
            busy = self._analyzing | self._resolving
            accepted = [i for i in ids if i not in busy]
            rejected = [i for i in ids if i in busy]
            self._sets()[kind].update(accepted)
        return accepted, rejected

    def _release(self, kind: str, ids: Iterable[str]) -> None:
        with self._lock:
            self._sets()[kind].difference_update(ids)

    def run_bulk(self, kind: str, ids: Iterable[str]) -> OperationResult:
        """
        指定IDをまとめて1回の API 呼び出しで analyze / resolve する。
        成功したら現在の絞り込み条件で1ページ目を取り直す（個別に書き換えない）。
        既に処理中のIDは除外し、同じIDへの通信が重ならないようにする。
        """
        if kind not in _BATCH_ENDPOINTS:
            raise ValueError(f"Unknown operation kind: {kind}")
        requested = list(dict.fromkeys(str(i) for i in ids if i is not None and str(i)))
        if not requested:
            error = ValidationError("Select at least one product.")
            self._notifications.show(error.message, "error")
            return OperationResult.fail(error)

        try:
            session = self._sessions.require()
        except DashboardError as e:
            self._notifications.show(e.message, "error")
            return OperationResult.fail(e)

        accepted, rejected = self._claim(kind, requested)
        if rejected:
            logger.info("%s: %d product(s) already in progress, skipped: %s", kind, len(rejected), rejected)
        if not accepted:
            error = ValidationError("Selected products are already being processed.")
            self._notifications.show(error.message, "warning")
            return OperationResult.fail(error)

        op_id = operation_id()
        started = time.monotonic()
        success = False
        try:
            response = self._api.post(_BATCH_ENDPOINTS[kind], payloads.build_batch_payload(session, accepted))
            message = response.get("message") or summarize_count(kind, len(accepted))
            if rejected:
                message += f" ({len(rejected)} skipped: already in progress)"
            success = True
            # 取り直しに失敗した時はそのエラー通知が成功通知を上書きする
            self._notifications.show(message, "success")
            self._products.fetch_page(1)
            return OperationResult.ok(message, data=response)
        except DashboardError as e:
            message = user_message(e, _BATCH_FALLBACKS[kind])
            self._notifications.show(message, "error")
            return OperationResult.fail(e, message)
        except Exception as e:
            logger.exception("%s batch failed op=%s", kind, op_id)
            self._notifications.show(_BATCH_FALLBACKS[kind], "error")
            return OperationResult.fail(e, _BATCH_FALLBACKS[kind])
        finally:
            self._release(kind, accepted)
            log_operation_summary(
                logger,
                f"{kind}_batch",
                len(requested),
                len(accepted),
                success,
                time.monotonic() - started,
                notes=f"op={op_id}",
            )

    def analyze_products(self, ids: Iterable[str]) -> OperationResult:
        return self.run_bulk(ANALYZE, ids)

    def resolve_products(self, ids: Iterable[str]) -> OperationResult:
        return self.run_bulk(RESOLVE, ids)

    # ----- ストア全体 -----

    def _run_store_wide(self, kind: str) -> OperationResult:
        """対象件数がクライアントでは分からないため、ID集合ではなくフラグで進捗を表す。"""
        try:
            session = self._sessions.require()
        except DashboardError as e:
            self._notifications.show(e.message, "error")
            return OperationResult.fail(e)

        with self._lock:
            if self._store_wide[kind]:
                error = ValidationError(f"Store-wide {kind} is already running.")
                refused = True
            else:
                self._store_wide[kind] = True
                refused = False
        if refused:
            self._notifications.show(error.message, "warning")
            return OperationResult.fail(error)

        started = time.monotonic()
        success = False
        try:
            response = self._api.post(_STORE_WIDE_ENDPOINTS[kind], session.credentials())
            message = response.get("message") or _STORE_WIDE_SUCCESS[kind]
            self._notifications.show(message, "success")
            self._products.fetch_page(1)
            success = True
            return OperationResult.ok(message, data=response)
        except DashboardError as e:
            message = user_message(e, _STORE_WIDE_FALLBACKS[kind])
            self._notifications.show(message, "error")
            return OperationResult.fail(e, message)
        except Exception as e:
            logger.exception("store-wide %s failed", kind)
            self._notifications.show(_STORE_WIDE_FALLBACKS[kind], "error")
            return OperationResult.fail(e, _STORE_WIDE_FALLBACKS[kind])
        finally:
            with self._lock:
                self._store_wide[kind] = False
            log_operation_summary(logger, f"{kind}_all", 0, 0, success, time.monotonic() - started)

    def analyze_all(self) -> OperationResult:
        return self._run_store_wide(ANALYZE)

    def resolve_all(self) -> OperationResult:
        return self._run_store_wide(RESOLVE)

    # ----- SEO 提案（重複リクエスト抑止） -----

    def request_seo_opportunities(self, product_id: str) -> Future:
        """
        同じ商品IDのリクエストが処理中なら、その Future をそのまま返す。
        新規の場合だけワーカーで API を呼ぶ。完了時に登録を外す。
        """
        key = str(product_id)
        with self._lock:
            future = self._opportunity_requests.get(key)
            if future is not None:
                logger.debug("seo opportunities for %s already in flight; joining", key)
                return future
            future = self._executor.submit(self._fetch_opportunities, key)
            self._opportunity_requests[key] = future
        # 既に完了していると add_done_callback はこのスレッドで即実行されるため、ロックの外で登録する
        future.add_done_callback(lambda f: self._forget_opportunity_request(key, f))
        return future

    def _forget_opportunity_request(self, key: str, future: Future) -> None:
        with self._lock:
            if self._opportunity_requests.get(key) is future:
                del self._opportunity_requests[key]

    def analyze_seo_opportunities(self, product_id: str) -> OperationResult:
        return self.request_seo_opportunities(product_id).result()

    def _fetch_opportunities(self, product_id: str) -> OperationResult:
        try:
            self._sessions.require()
        except DashboardError as e:
            self._notifications.show("Missing store credentials. Please reconnect your store.", "error")
            return OperationResult.fail(e)
        try:
            response = self._api.post(EP_SEO_OPPORTUNITIES, {"product_id": product_id})
            opportunities = OpportunityList.from_api(product_id, response)
        except DashboardError as e:
            message = user_message(e, OPPORTUNITIES_FAILED_MESSAGE)
            self._notifications.show(message, "error")
            return OperationResult.fail(e, message)
        except Exception as e:
            logger.exception("seo opportunities failed product=%s", product_id)
            self._notifications.show(OPPORTUNITIES_FAILED_MESSAGE, "error")
            return OperationResult.fail(e, OPPORTUNITIES_FAILED_MESSAGE)
        self._notifications.show("SEO insights generated successfully!", "success")
        return OperationResult.ok(opportunities.message or "", data=opportunities)

    # ----- 提案の承認 / 却下 -----

    def handle_suggestion(self, product_name: str, action: str) -> OperationResult:
        """
        承認/却下を送り、成功したら一覧の該当商品の status を即座に書き換える（楽観的更新）。
        失敗時は書き換えない。書き換えの取り消しは行わない。
        """
        action = (action or "").strip().lower()
        if action not in _SUGGESTION_STATUS:
            raise ValueError(f"Unknown suggestion action: {action}")
        if not product_name:
            error = ValidationError("Product name is required.")
            self._notifications.show(error.message, "error")
            return OperationResult.fail(error)

        fallback = f"Failed to {action} product"
        try:
            response = self._api.post(EP_APPROVE_REJECT, {"action": action, "product_name": product_name})
        except DashboardError as e:
            message = user_message(e, fallback)
            self._notifications.show(message, "error")
            return OperationResult(success=False, message=message, data={"success": False, "message": message}, error=e)
        except Exception as e:
            logger.exception("suggestion %s failed product=%s", action, product_name)
            self._notifications.show(fallback, "error")
            return OperationResult(success=False, message=fallback, data={"success": False, "message": fallback}, error=e)

        self._products.apply_status_patch(product_name, _SUGGESTION_STATUS[action])
        message = response.get("message") or f"Product {action}d successfully"
        self._notifications.show(message, "success")
        return OperationResult.ok(message, data={"success": True, "message": message})
