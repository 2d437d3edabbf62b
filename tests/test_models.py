"""API モデル（Session / ProductFilterSet / Product / Page）のユニットテスト。"""
import pytest

from seo_manager.api.models import OpportunityList, Page, Product, ProductFilterSet, Session


def test_session_from_cache_requires_name_and_token():
    assert Session.from_cache({"name": "shop1"}, None, "a@b.com") is None
    assert Session.from_cache({"name": ""}, "tok", "a@b.com") is None
    assert Session.from_cache("garbage", "tok", "a@b.com") is None
    s = Session.from_cache({"name": "shop1", "isConnected": True}, "tok", "a@b.com")
    assert s.store_name == "shop1"
    assert s.connected is True


def test_session_from_cache_accepts_nested_store_name():
    s = Session.from_cache({"name": {"storeName": "shop1"}}, "tok", None)
    assert s.store_name == "shop1"


def test_filter_set_from_dict_coerces_values():
    f = ProductFilterSet.from_dict({"active": "true", "optimized": "all", "score_min": "150"})
    assert f.active is True
    assert f.optimized is None
    assert f.score_min == 100


def test_filter_set_rejects_unknown_field():
    with pytest.raises(ValueError):
        ProductFilterSet().merged(color="red")


def test_full_score_range_is_empty():
    assert ProductFilterSet(score_min=0, score_max=100).is_empty()
    assert not ProductFilterSet(score_min=10, score_max=100).is_empty()


def test_product_from_api_accepts_both_key_styles():
    a = Product.from_api({"id": 1, "name": "Widget", "seoScore": 55, "status": "active"})
    b = Product.from_api({"id": "2", "Product Name": "Gadget", "SEO Score": "70"})
    assert (a.id, a.name, a.seo_score, a.status) == ("1", "Widget", 55.0, "ACTIVE")
    assert (b.id, b.name, b.seo_score) == ("2", "Gadget", 70.0)


def test_product_has_resolution():
    assert not Product.from_api({"id": "1"}).has_resolution()
    assert Product.from_api({"id": "1", "issues_and_proposed_solutions": "[{}]"}).has_resolution()


def test_page_clamps_current_page_to_total_pages():
    page = Page.from_api({"products": [], "page": 7, "total_pages": 3})
    assert page.current_page == 3
    assert page.total_pages == 3


def test_page_total_pages_at_least_one():
    page = Page.from_api({"products": [], "total_pages": 0})
    assert page.total_pages == 1
    assert page.current_page == 1
    assert page.total_items == 0


def test_page_keeps_every_item_the_server_sends():
    items = [{"id": str(i)} for i in range(12)]
    page = Page.from_api({"products": items, "total_pages": 1}, page_size=10)
    assert len(page.items) == 12
    assert page.page_size == 12


def test_page_size_comes_from_response_when_present():
    page = Page.from_api({"products": [{"id": "a"}], "page_size": 20, "total_pages": 3})
    assert page.page_size == 20
    assert Page.from_cache(page.to_cache()).page_size == 20


def test_page_from_cache_handles_legacy_list_and_garbage():
    assert [p.id for p in Page.from_cache([{"id": "a"}]).items] == ["a"]
    assert Page.from_cache("garbage").items == []


def test_page_cache_keeps_patched_status():
    page = Page.from_api({"products": [{"id": "1", "name": "Widget", "status": "ACTIVE"}]})
    page.items[0].status = "APPROVED"
    restored = Page.from_cache(page.to_cache())
    assert restored.items[0].status == "APPROVED"


def test_opportunity_list_flags():
    ol = OpportunityList.from_api(
        "p1",
        {"opportunities": [{"opportunity": "Quick Win: add alt text"}, "Low priority: rename"]},
    )
    assert [o.is_quick_win for o in ol.opportunities] == [True, False]
    assert ol.opportunities[1].is_low_priority
