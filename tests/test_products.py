"""ProductStore（商品一覧の取得・絞り込み・追い越し対策）のテスト。"""
import threading

from conftest import products_response

from seo_manager.api.models import ProductFilterSet
from seo_manager.constants import CACHE_KEY_CACHED_PRODUCTS, EP_FETCH_PRODUCTS
from seo_manager.errors import NoSessionError, RemoteError, TransportError


def test_fetch_sends_active_but_not_full_score_range(connected_state, api):
    filters = ProductFilterSet(active=True, score_min=0, score_max=100)
    result = connected_state.products.fetch_page(1, filters)
    assert result.success
    (_, _, body), = api.calls_to(EP_FETCH_PRODUCTS)
    assert body["active"] is True
    assert "score_min" not in body
    assert "score_max" not in body
    assert body["page"] == 1


def test_fetch_records_passed_filters(connected_state):
    filters = ProductFilterSet(optimized=False)
    connected_state.products.fetch_page(1, filters)
    assert connected_state.products.filters == filters


def test_fetch_without_filters_uses_current_filters(connected_state, api):
    connected_state.products.update_filters(analyzed=True)
    connected_state.products.fetch_page(2)
    (_, _, body), = api.calls_to(EP_FETCH_PRODUCTS)
    assert body["analyzed"] is True
    assert body["page"] == 2


def test_fetch_replaces_list_and_mirrors_to_cache(connected_state, api, cache):
    api.respond(EP_FETCH_PRODUCTS, products_response([{"id": "p9", "name": "New"}], page=2, total_pages=2))
    connected_state.products.fetch_page(2)
    page = connected_state.products.page
    assert [p.id for p in page.items] == ["p9"]
    assert page.current_page == 2
    cached = cache.load(CACHE_KEY_CACHED_PRODUCTS)
    assert [p["id"] for p in cached["products"]] == ["p9"]
    assert cached["currentPage"] == 2


def test_fetch_keeps_all_products_of_a_larger_server_page(connected_state, api, make_state):
    items = [{"id": f"p{i}", "name": f"Item {i}"} for i in range(12)]
    api.respond(EP_FETCH_PRODUCTS, products_response(items, total_pages=1, total_items=12))
    assert connected_state.products.fetch_page(1).success
    assert len(connected_state.products.products) == 12
    assert connected_state.products.page.page_size == 12
    assert len(make_state().products.products) == 12


def test_failed_fetch_keeps_existing_list(connected_state, api):
    before = [p.id for p in connected_state.products.products]
    api.respond(EP_FETCH_PRODUCTS, TransportError("Network error. Please check your connection."))
    result = connected_state.products.fetch_page(2)
    assert not result.success
    assert [p.id for p in connected_state.products.products] == before
    toast = connected_state.notifications.current()
    assert toast.kind == "error"
    assert toast.text == "Network error. Please check your connection."


def test_failed_fetch_without_server_message_uses_fallback(connected_state, api):
    api.respond(EP_FETCH_PRODUCTS, RemoteError("Request failed with status 500", status_code=500))
    result = connected_state.products.fetch_page(1)
    assert result.message == "Failed to fetch products. Please try again."


def test_fetch_without_session_makes_no_call(state, api):
    result = state.products.fetch_page(1)
    assert not result.success
    assert isinstance(result.error, NoSessionError)
    assert api.calls == []
    assert state.notifications.current().text == "Please connect your store first."


def test_fetch_restores_session_from_cache(state, api, cache):
    # メモリ上は未接続でも、キャッシュに資格情報があれば使う
    assert not state.sessions.is_connected()
    cache.save("storeInfo", {"name": "shop1", "email": "a@b.com", "isConnected": True})
    cache.save_raw("accessToken", "tok")
    cache.save_raw("email", "a@b.com")
    api.respond(EP_FETCH_PRODUCTS, products_response([{"id": "x"}]))

    result = state.products.fetch_page(1)
    assert result.success
    assert state.sessions.is_connected()
    (_, _, body), = api.calls_to(EP_FETCH_PRODUCTS)
    assert body["storeName"] == "shop1"
    assert body["accessToken"] == "tok"


def test_cached_page_is_loaded_without_network(make_state, connected_state, api):
    restarted = make_state()
    assert [p.name for p in restarted.products.products] == ["Widget", "Gadget"]
    assert api.calls == []


def test_out_of_order_response_is_discarded(connected_state, api):
    first_started = threading.Event()
    release_first = threading.Event()

    def responder(body):
        if body["page"] == 1:
            first_started.set()
            release_first.wait(5)
            return products_response([{"id": "old"}], page=1, total_pages=2)
        return products_response([{"id": "new"}], page=2, total_pages=2)

    api.respond(EP_FETCH_PRODUCTS, responder)
    results = []
    t = threading.Thread(target=lambda: results.append(connected_state.products.fetch_page(1)))
    t.start()
    assert first_started.wait(5)

    second = connected_state.products.fetch_page(2)
    assert second.success and not second.stale
    release_first.set()
    t.join(5)

    assert results[0].stale
    assert [p.id for p in connected_state.products.products] == ["new"]
    assert connected_state.products.page.current_page == 2


def test_late_failure_of_overtaken_fetch_is_silent(connected_state, api):
    first_started = threading.Event()
    release_first = threading.Event()

    def responder(body):
        if body["page"] == 1:
            first_started.set()
            release_first.wait(5)
            raise RemoteError("old request failed", server_message="old request failed")
        return products_response([{"id": "new"}], page=2, total_pages=2)

    api.respond(EP_FETCH_PRODUCTS, responder)
    results = []
    t = threading.Thread(target=lambda: results.append(connected_state.products.fetch_page(1)))
    t.start()
    assert first_started.wait(5)

    assert connected_state.products.fetch_page(2).success
    connected_state.notifications.dismiss()
    release_first.set()
    t.join(5)

    assert results[0].success and results[0].stale
    assert connected_state.notifications.current() is None
    assert [p.id for p in connected_state.products.products] == ["new"]


def test_clear_discards_in_flight_response(connected_state, api, cache):
    started = threading.Event()
    release = threading.Event()

    def responder(body):
        started.set()
        release.wait(5)
        return products_response([{"id": "late"}])

    api.respond(EP_FETCH_PRODUCTS, responder)
    t = threading.Thread(target=connected_state.products.fetch_page)
    t.start()
    assert started.wait(5)
    connected_state.products.clear()
    release.set()
    t.join(5)

    assert connected_state.products.products == []
    assert cache.load(CACHE_KEY_CACHED_PRODUCTS) is None


def test_malformed_cached_products_start_empty(cache, make_state):
    cache.save_raw(CACHE_KEY_CACHED_PRODUCTS, "[{broken")
    state = make_state()
    assert state.products.products == []
    assert state.products.page.total_pages == 1


def test_reset_filters(connected_state):
    connected_state.products.update_filters(active=True, score_min=30)
    assert connected_state.products.reset_filters() == ProductFilterSet()
    assert connected_state.products.filters.is_empty()


def test_apply_status_patch_only_touches_named_product(connected_state):
    assert connected_state.products.apply_status_patch("Widget", "REJECTED")
    statuses = {p.name: p.status for p in connected_state.products.products}
    assert statuses == {"Widget": "REJECTED", "Gadget": "ACTIVE"}
    assert not connected_state.products.apply_status_patch("Missing", "APPROVED")
