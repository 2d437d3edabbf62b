"""GscStore（Search Console 指標・ウェブサイト課題）のテスト。"""
import pytest

from seo_manager.constants import (
    EP_COMPLETE_PERFORMANCE,
    EP_CORE_WEB_VITALS,
    EP_GSC_QUERIES,
    EP_RESOLVE_WEBSITE_ISSUE,
    EP_RESOLVE_WEBSITE_ISSUES,
    EP_WEBSITE_ISSUES,
)
from seo_manager.errors import TransportError
from seo_manager.state.gsc import normalize_issues


def _connect(state, api):
    api.respond(EP_GSC_QUERIES, {"metrics": [{"query": "widgets", "clicks": 12}]})
    api.respond(
        EP_CORE_WEB_VITALS,
        {
            "core_web_vitals": [{"LCP": "2.1s", "CLS": "0.05"}],
            "indexed_pages": ["/", "/a"],
            "not_indexed_pages": ["/b"],
        },
    )
    api.respond(EP_WEBSITE_ISSUES, {"website_issues": [{"inp": "POOR", "pagespeedscore": "needs improvement"}]})
    return state.gsc.connect_website("https://example.com")


def test_normalize_resolved_issue_list():
    issues = normalize_issues([{"Issue": "LCP is poor", "Solution": "Compress images"}, {"Issue": "Minor"}])
    assert [(i.issue, i.severity, i.solution) for i in issues] == [
        ("LCP is poor", "high", "Compress images"),
        ("Minor", "medium", None),
    ]


def test_normalize_raw_metric_map():
    issues = normalize_issues([{"inp": "POOR", "cls": "GOOD", "lcp": "NEEDS IMPROVEMENT"}])
    assert [(i.issue, i.severity) for i in issues] == [
        ("inp: POOR", "high"),
        ("cls: GOOD", "low"),
        ("lcp: NEEDS IMPROVEMENT", "medium"),
    ]


def test_normalize_garbage():
    assert normalize_issues(None) == []
    assert normalize_issues(["text"]) == []


def test_connect_website_loads_three_sources(state, api):
    result = _connect(state, api)
    assert result.success
    gsc = state.gsc
    assert gsc.is_connected
    assert gsc.metrics.queries == [{"query": "widgets", "clicks": 12}]
    assert gsc.metrics.core_web_vitals == {"LCP": "2.1s", "CLS": "0.05"}
    assert (gsc.metrics.indexed, gsc.metrics.not_indexed) == (2, 1)
    assert len(gsc.issues) == 2
    for path in (EP_GSC_QUERIES, EP_CORE_WEB_VITALS, EP_WEBSITE_ISSUES):
        (_, _, params), = api.calls_to(path)
        assert params == {"url": "https://example.com"}


def test_connect_website_requires_scheme(state, api):
    result = state.gsc.connect_website("example.com")
    assert not result.success
    assert api.calls == []
    assert state.notifications.current().text == "Please include http:// or https://"


def test_connect_website_failure(state, api):
    api.respond(EP_CORE_WEB_VITALS, TransportError("Network error. Please check your connection."))
    result = state.gsc.connect_website("https://example.com")
    assert not result.success
    assert not state.gsc.is_connected
    assert not state.gsc.is_loading


def test_connect_with_credentials_sends_multipart(state, api):
    api.respond(EP_COMPLETE_PERFORMANCE, {"metrics": [], "core_web_vitals": [{}], "website_issues": []})
    result = state.gsc.connect_with_credentials("https://example.com", "key", b"{}", filename="c.json")
    assert result.success
    (_, _, body), = api.calls_to(EP_COMPLETE_PERFORMANCE)
    assert body["data"] == {"website_url": "https://example.com", "api_key": "key"}
    assert body["files"]["credentials"][0] == "c.json"


def test_connect_with_credentials_requires_file(state, api):
    result = state.gsc.connect_with_credentials("https://example.com", "key", b"")
    assert result.message == "Credentials file required"
    assert api.calls == []


def test_resolve_single_issue_attaches_solution(state, api):
    _connect(state, api)
    api.respond(EP_RESOLVE_WEBSITE_ISSUE, {"issues_and_solutions": [{"Issue": "inp: POOR", "Solution": "Defer JS"}]})
    result = state.gsc.resolve_single_issue("inp: POOR")
    assert result.success
    issue = next(i for i in state.gsc.issues if i.issue == "inp: POOR")
    assert issue.solution == "Defer JS"
    assert not issue.is_resolving


def test_resolve_single_issue_without_solution_removes_it(state, api):
    _connect(state, api)
    state.gsc.resolve_single_issue("inp: POOR")
    assert [i.issue for i in state.gsc.issues] == ["pagespeedscore: needs improvement"]


def test_resolve_single_issue_tolerates_malformed_solutions(state, api):
    _connect(state, api)
    api.respond(EP_RESOLVE_WEBSITE_ISSUE, {"issues_and_solutions": "not a list"})
    result = state.gsc.resolve_single_issue("inp: POOR")
    assert result.success
    assert not any(i.is_resolving for i in state.gsc.issues)


def test_resolve_single_issue_clears_flag_on_unexpected_error(state, api):
    _connect(state, api)
    api.respond(EP_RESOLVE_WEBSITE_ISSUE, RuntimeError("boom"))
    with pytest.raises(RuntimeError):
        state.gsc.resolve_single_issue("inp: POOR")
    issue = next(i for i in state.gsc.issues if i.issue == "inp: POOR")
    assert not issue.is_resolving


def test_resolve_single_issue_failure_keeps_issue(state, api):
    _connect(state, api)
    api.respond(EP_RESOLVE_WEBSITE_ISSUE, TransportError("Network error. Please check your connection."))
    result = state.gsc.resolve_single_issue("inp: POOR")
    assert not result.success
    issue = next(i for i in state.gsc.issues if i.issue == "inp: POOR")
    assert not issue.is_resolving
    assert state.notifications.current().kind == "error"


def test_resolve_issues_replaces_list(state, api):
    _connect(state, api)
    api.respond(EP_RESOLVE_WEBSITE_ISSUES, {"issues_and_solutions": [{"Issue": "All good", "Solution": "None"}]})
    result = state.gsc.resolve_issues()
    assert result.success
    assert [i.issue for i in state.gsc.issues] == ["All good"]


def test_resolve_before_connect_is_rejected(state, api):
    result = state.gsc.resolve_issues()
    assert not result.success
    assert api.calls == []


def test_disconnect(state, api):
    _connect(state, api)
    state.gsc.disconnect()
    assert not state.gsc.is_connected
    assert state.gsc.issues == []
