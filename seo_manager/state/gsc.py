"""Search Console（GSC）分析ビュー用のストア。コア外だが同じ API クライアントを使う。"""
from __future__ import annotations

import logging
import re
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Any, Optional

from seo_manager.api.client import ApiClient
from seo_manager.api.models import OperationResult
from seo_manager.constants import (
    EP_COMPLETE_PERFORMANCE,
    EP_CORE_WEB_VITALS,
    EP_GSC_QUERIES,
    EP_RESOLVE_WEBSITE_ISSUE,
    EP_RESOLVE_WEBSITE_ISSUES,
    EP_WEBSITE_ISSUES,
)
from seo_manager.errors import DashboardError, ValidationError, user_message
from seo_manager.state.notifications import NotificationChannel

logger = logging.getLogger(__name__)

_URL_RE = re.compile(r"^https?://", re.IGNORECASE)


@dataclass
class WebsiteIssue:
    issue: str
    severity: str
    solution: Optional[str] = None
    is_resolving: bool = False


@dataclass
class GscMetrics:
    queries: list[dict[str, Any]] = field(default_factory=list)
    core_web_vitals: dict[str, Any] = field(default_factory=dict)
    indexed: int = 0
    not_indexed: int = 0

    @classmethod
    def from_api(cls, queries: dict[str, Any], vitals: dict[str, Any]) -> GscMetrics:
        cwv = vitals.get("core_web_vitals") or [{}]
        return cls(
            queries=list(queries.get("metrics") or []),
            core_web_vitals=dict(cwv[0]) if isinstance(cwv, list) and cwv else {},
            indexed=len(vitals.get("indexed_pages") or []),
            not_indexed=len(vitals.get("not_indexed_pages") or []),
        )


def _severity_for(text: str) -> str:
    t = text.lower()
    if "poor" in t or "unspecified" in t:
        return "high"
    if "needs improvement" in t:
        return "medium"
    return "low"


def normalize_issues(raw: Any) -> list[WebsiteIssue]:
    """
    バックエンドの2種類の形を WebsiteIssue に揃える。
    - 解決済み: [{"Issue": ..., "Solution": ..., "severity"?: ...}]
    - 未解決:   [{"inp": "...", "pagespeedscore": "..."}]（1要素の配列）
    """
    if not isinstance(raw, list) or not raw or not isinstance(raw[0], dict):
        return []
    first = raw[0]
    if "Issue" in first or "issue" in first:
        issues = []
        for item in raw:
            if not isinstance(item, dict):
                continue
            text = str(item.get("Issue") or item.get("issue") or "")
            severity = item.get("severity") or ("high" if "poor" in text.lower() else "medium")
            issues.append(
                WebsiteIssue(issue=text, severity=severity, solution=item.get("Solution") or item.get("solution"))
            )
        return issues
    return [
        WebsiteIssue(issue=f"{key}: {value}", severity=_severity_for(str(value)))
        for key, value in first.items()
    ]


def _first_solution(response: Any) -> Any:
    """resolve-website-issue/ の応答から先頭の解決策を取り出す。形が違えば None。"""
    if not isinstance(response, dict):
        return None
    solutions = response.get("issues_and_solutions")
    if not isinstance(solutions, list) or not solutions or not isinstance(solutions[0], dict):
        return None
    return solutions[0].get("Solution") or solutions[0].get("solution")


class GscStore:
    """ウェブサイト単位の GSC 指標と課題一覧を保持する。"""

    def __init__(self, api: ApiClient, notifications: NotificationChannel) -> None:
        self._api = api
        self._notifications = notifications
        self._lock = threading.Lock()
        self.website_url = ""
        self.is_connected = False
        self.is_loading = False
        self.metrics: Optional[GscMetrics] = None
        self._issues: list[WebsiteIssue] = []

    @property
    def issues(self) -> list[WebsiteIssue]:
        with self._lock:
            return [replace(i) for i in self._issues]

    def _validate_url(self, url: str) -> str:
        url = (url or "").strip()
        if not url:
            raise ValidationError("Please enter a valid Website URL")
        if not _URL_RE.match(url):
            raise ValidationError("Please include http:// or https://")
        return url

    def connect_website(self, url: str) -> OperationResult:
        """3つの GET を並列に投げ、指標と課題一覧をまとめて差し替える。"""
        try:
            url = self._validate_url(url)
        except ValidationError as e:
            self._notifications.show(e.message, "error")
            return OperationResult.fail(e)

        self.is_loading = True
        params = {"url": url}
        try:
            with ThreadPoolExecutor(max_workers=3) as pool:
                queries_f = pool.submit(self._api.get, EP_GSC_QUERIES, params)
                vitals_f = pool.submit(self._api.get, EP_CORE_WEB_VITALS, params)
                issues_f = pool.submit(self._api.get, EP_WEBSITE_ISSUES, params)
                queries, vitals, issues = queries_f.result(), vitals_f.result(), issues_f.result()
        except DashboardError as e:
            message = user_message(e, "Failed to connect or load data")
            self._notifications.show(message, "error")
            return OperationResult.fail(e, message)
        finally:
            self.is_loading = False

        self._apply(url, GscMetrics.from_api(queries, vitals), normalize_issues(issues.get("website_issues")))
        self._notifications.show("Successfully connected and data loaded", "success")
        return OperationResult.ok(data=self.metrics)

    def connect_with_credentials(
        self, url: str, api_key: str, credentials: bytes, filename: str = "credentials.json"
    ) -> OperationResult:
        """資格情報ファイル付きの接続（multipart）。一度のリクエストで全指標を取得する。"""
        try:
            url = self._validate_url(url)
            if not (api_key or "").strip():
                raise ValidationError("API key is required")
            if not credentials:
                raise ValidationError("Credentials file required")
        except ValidationError as e:
            self._notifications.show(e.message, "error")
            return OperationResult.fail(e)

        self.is_loading = True
        try:
            response = self._api.post_multipart(
                EP_COMPLETE_PERFORMANCE,
                data={"website_url": url, "api_key": api_key.strip()},
                files={"credentials": (filename, credentials, "application/json")},
            )
        except DashboardError as e:
            message = user_message(e, "Failed to connect or load data")
            self._notifications.show(message, "error")
            return OperationResult.fail(e, message)
        finally:
            self.is_loading = False

        self._apply(url, GscMetrics.from_api(response, response), normalize_issues(response.get("website_issues")))
        self._notifications.show("Successfully connected and data loaded", "success")
        return OperationResult.ok(data=self.metrics)

    def _apply(self, url: str, metrics: GscMetrics, issues: list[WebsiteIssue]) -> None:
        with self._lock:
            self.website_url = url
            self.metrics = metrics
            self._issues = issues
            self.is_connected = True

    def _set_resolving(self, issue_text: str, value: bool) -> None:
        with self._lock:
            for issue in self._issues:
                if issue.issue == issue_text:
                    issue.is_resolving = value

    def resolve_single_issue(self, issue_text: str) -> OperationResult:
        """1件の課題を解決。解決策が返れば付与し、返らなければ一覧から外す。"""
        if not self.website_url:
            error = ValidationError("Please connect a website first")
            self._notifications.show(error.message, "error")
            return OperationResult.fail(error)

        self._set_resolving(issue_text, True)
        try:
            response = self._api.post(
                EP_RESOLVE_WEBSITE_ISSUE,
                {"website_url": self.website_url, "issue": issue_text},
            )
            solution = _first_solution(response)
        except DashboardError as e:
            message = user_message(e, "Error while resolving issue")
            self._notifications.show(message, "error")
            return OperationResult.fail(e, message)
        finally:
            self._set_resolving(issue_text, False)

        with self._lock:
            if solution:
                for issue in self._issues:
                    if issue.issue == issue_text:
                        issue.solution = solution
            else:
                self._issues = [i for i in self._issues if i.issue != issue_text]
        self._notifications.show("Issue resolved successfully", "success")
        return OperationResult.ok(data=solution)

    def resolve_issues(self) -> OperationResult:
        """全課題をまとめて解決し、返ってきた一覧で置き換える。"""
        if not self.website_url:
            error = ValidationError("Please connect a website first")
            self._notifications.show(error.message, "error")
            return OperationResult.fail(error)

        with self._lock:
            for issue in self._issues:
                issue.is_resolving = False
        self.is_loading = True
        try:
            response = self._api.get(EP_RESOLVE_WEBSITE_ISSUES, {"url": self.website_url})
        except DashboardError as e:
            message = user_message(e, "Error while resolving issues")
            self._notifications.show(message, "error")
            return OperationResult.fail(e, message)
        finally:
            self.is_loading = False

        issues = normalize_issues(response.get("issues_and_solutions"))
        with self._lock:
            self._issues = issues
        self._notifications.show("Issues resolved successfully", "success")
        return OperationResult.ok(data=issues)

    def disconnect(self) -> None:
        with self._lock:
            self.website_url = ""
            self.is_connected = False
            self.metrics = None
            self._issues = []

