"""共通フィクスチャ：記録付きの偽 API・一時 SQLite キャッシュ・手動で進める時計。"""
from __future__ import annotations

import threading
from typing import Any, Callable

import pytest

from seo_manager.config import AppSettings
from seo_manager.constants import EP_FETCH_PRODUCTS
from seo_manager.state.container import create_state
from seo_manager.state.notifications import NotificationChannel
from seo_manager.store.cache import PersistentCache


class FakeApi:
    """
    ApiClient の代わり。呼び出しを (method, path, body) で記録する。
    respond(path, *responses) で応答を順に返す（最後の応答は繰り返す）。
    応答が例外なら送出し、呼び出し可能なら body を渡して結果を使う。
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, Any]] = []
        self._responses: dict[str, list[Any]] = {}
        self._lock = threading.Lock()

    def respond(self, path: str, *responses: Any) -> None:
        with self._lock:
            self._responses[path] = list(responses)

    def calls_to(self, path: str) -> list[tuple[str, str, Any]]:
        with self._lock:
            return [c for c in self.calls if c[1] == path]

    def post(self, path: str, body: Any) -> dict[str, Any]:
        return self._handle("POST", path, body)

    def get(self, path: str, params: Any = None) -> dict[str, Any]:
        return self._handle("GET", path, params)

    def post_multipart(self, path: str, data: Any, files: Any) -> dict[str, Any]:
        return self._handle("POST", path, {"data": data, "files": files})

    def _handle(self, method: str, path: str, body: Any) -> dict[str, Any]:
        with self._lock:
            self.calls.append((method, path, body))
            queue = self._responses.get(path)
            if not queue:
                response: Any = {}
            elif len(queue) > 1:
                response = queue.pop(0)
            else:
                response = queue[0]
        if callable(response) and not isinstance(response, Exception):
            response = response(body)
        if isinstance(response, Exception):
            raise response
        return response


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000


def products_response(
    items: list[dict[str, Any]], page: int = 1, total_pages: int = 1, total_items: int | None = None
) -> dict[str, Any]:
    d: dict[str, Any] = {"products": items, "page": page, "total_pages": total_pages}
    if total_items is not None:
        d["total_items"] = total_items
    return d


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(tmp_path) -> PersistentCache:
    c = PersistentCache(db_path=str(tmp_path / "cache.db"))
    yield c
    c.close()


@pytest.fixture
def notifications(clock) -> NotificationChannel:
    return NotificationChannel(duration_ms=4000, clock=clock)


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        api_base_url="http://test/shopify-manager/",
        timeout_sec=5,
        page_size=10,
        toast_duration_ms=4000,
        poll_interval_sec=0,
        cache_db_path=None,
    )


@pytest.fixture
def make_state(api, cache, notifications, settings) -> Callable[[], Any]:
    """同じ api / cache / 通知チャネルで DashboardState を作る（再起動の再現用に複数回呼べる）。"""
    created = []

    def _make():
        state = create_state(settings=settings, api=api, cache=cache, notifications=notifications)
        created.append(state)
        return state

    yield _make
    for state in created:
        state.operations.shutdown(wait=True)
    for state in created:
        state.close()


@pytest.fixture
def state(make_state):
    return make_state()


@pytest.fixture
def connected_state(state, api):
    """shop1 に接続済み。1ページ目に Widget / Gadget の2件。"""
    api.respond(
        EP_FETCH_PRODUCTS,
        products_response(
            [
                {"id": "p1", "name": "Widget", "seoScore": 42, "status": "ACTIVE"},
                {"id": "p2", "name": "Gadget", "seoScore": 88, "status": "ACTIVE"},
            ],
            total_pages=2,
            total_items=12,
        ),
    )
    result = state.sessions.connect("shop1", "tok", "a@b.com")
    assert result.success
    with api._lock:
        api.calls.clear()
    state.notifications.dismiss()
    return state
