"""API レスポンス・クライアント状態用のモデル（簡易 dataclass）。"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Any, Optional

from seo_manager.constants import SCORE_CEILING, SCORE_FLOOR

logger = logging.getLogger(__name__)

STATUS_APPROVED = "APPROVED"
STATUS_REJECTED = "REJECTED"


@dataclass
class Session:
    store_name: str = ""
    email: str = ""
    access_token: str = ""
    connected: bool = False

    def is_complete(self) -> bool:
        """store_name と access_token が揃っているか。connected=True の前提条件。"""
        return bool(self.store_name.strip() and self.access_token.strip())

    def store_info(self) -> dict[str, Any]:
        """storeInfo キャッシュキーに保存する形。"""
        return {"name": self.store_name, "email": self.email, "isConnected": self.connected}

    def credentials(self) -> dict[str, str]:
        return {"storeName": self.store_name, "accessToken": self.access_token}

    @classmethod
    def from_cache(
        cls, store_info: Any, access_token: Optional[str], email: Optional[str]
    ) -> Optional[Session]:
        """キャッシュ3キーから復元。不完全なら None。"""
        if not isinstance(store_info, dict):
            return None
        name = store_info.get("name")
        # 旧形式では name に {"storeName": ...} が入っていた
        if isinstance(name, dict):
            name = name.get("storeName")
        if not isinstance(name, str) or not name.strip() or not access_token:
            return None
        return cls(
            store_name=name,
            email=email or store_info.get("email") or "",
            access_token=access_token,
            connected=True,
        )


def _coerce_bool(value: Any) -> Optional[bool]:
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str):
        v = value.strip().lower()
        if v in ("true", "1", "yes"):
            return True
        if v in ("false", "0", "no"):
            return False
        if v in ("", "all", "none", "null"):
            return None
    if isinstance(value, (int, float)):
        return bool(value)
    raise ValueError(f"Not a boolean filter value: {value!r}")


def _coerce_score(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    score = float(value)
    if math.isnan(score):
        return None
    return min(max(score, SCORE_FLOOR), SCORE_CEILING)


@dataclass(frozen=True)
class ProductFilterSet:
    """商品一覧の絞り込み条件。None は「制約なし」。"""

    active: Optional[bool] = None
    optimized: Optional[bool] = None
    analyzed: Optional[bool] = None
    score_min: Optional[float] = None
    score_max: Optional[float] = None

    @classmethod
    def from_dict(cls, d: Optional[dict[str, Any]]) -> ProductFilterSet:
        d = d or {}
        return cls(
            active=_coerce_bool(d.get("active")),
            optimized=_coerce_bool(d.get("optimized")),
            analyzed=_coerce_bool(d.get("analyzed")),
            score_min=_coerce_score(d.get("score_min")),
            score_max=_coerce_score(d.get("score_max")),
        )

    def merged(self, **patch: Any) -> ProductFilterSet:
        unknown = set(patch) - set(self.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown filter fields: {sorted(unknown)}")
        current = {k: getattr(self, k) for k in self.__dataclass_fields__}
        current.update(patch)
        return ProductFilterSet.from_dict(current)

    def normalized(self) -> ProductFilterSet:
        """全範囲（0〜100）のスコア条件は None と同じ意味なので外す。"""
        score_min, score_max = self.score_min, self.score_max
        full_min = score_min is None or score_min <= SCORE_FLOOR
        full_max = score_max is None or score_max >= SCORE_CEILING
        if full_min and full_max:
            score_min = score_max = None
        return replace(self, score_min=score_min, score_max=score_max)

    def is_empty(self) -> bool:
        n = self.normalized()
        return all(getattr(n, k) is None for k in self.__dataclass_fields__)


def _number(value: Any, default: int = 0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


@dataclass
class Product:
    id: str
    name: str
    seo_score: float
    status: str
    issues: list[str] = field(default_factory=list)
    resolution: Any = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, d: dict[str, Any]) -> Product:
        """バックエンドは camelCase と "Product Name" 形式の両方を返すため両対応。"""
        issues = d.get("issues") or []
        if isinstance(issues, str):
            issues = [issues]
        resolution = d.get("resolution")
        if resolution is None:
            resolution = d.get("issues_and_proposed_solutions")
        return cls(
            id=str(d.get("id", "")),
            name=d.get("name") or d.get("Product Name") or d.get("title") or "",
            seo_score=_number(d.get("seoScore", d.get("SEO Score"))),
            status=str(d.get("status") or "ACTIVE").upper(),
            issues=[str(i) for i in issues],
            resolution=resolution,
            raw=dict(d),
        )

    def has_resolution(self) -> bool:
        return self.resolution not in (None, "", [], {})

    def to_dict(self) -> dict[str, Any]:
        """キャッシュ保存用。サーバーの元の形に status の上書きだけ反映する。"""
        d = dict(self.raw)
        d.setdefault("id", self.id)
        d["status"] = self.status
        return d


@dataclass
class Page:
    items: list[Product]
    current_page: int = 1
    total_pages: int = 1
    total_items: int = 0
    page_size: int = 10

    @classmethod
    def empty(cls, page_size: int = 10) -> Page:
        return cls(items=[], page_size=page_size)

    @classmethod
    def from_api(cls, d: dict[str, Any], page_size: int = 10, requested_page: int = 1) -> Page:
        """
        fetch-products/ の応答から Page を作る。ページ番号の不変条件はここで補正する。
        1ページの件数はサーバーが決める。商品は切り詰めず、page_size は応答の値
        （無ければ受け取った件数）に合わせる。引数の page_size は件数が分からない時の既定値。
        """
        raw_items = d.get("products") or []
        items = [Product.from_api(p) for p in raw_items if isinstance(p, dict)]
        server_size = int(_number(d.get("page_size"), 0))
        if server_size >= 1:
            if len(items) > server_size:
                logger.warning("サーバーの page_size=%d を超える %d 件を受け取りました。", server_size, len(items))
            page_size = max(server_size, len(items))
        elif items:
            page_size = len(items)
        total_pages = max(1, int(_number(d.get("total_pages"), 1) or 1))
        current_page = int(_number(d.get("page"), requested_page) or requested_page)
        current_page = min(max(1, current_page), total_pages)
        total_items = d.get("total_items", d.get("total_products"))
        total_items = int(_number(total_items, len(items))) if total_items is not None else len(items)
        return cls(
            items=items,
            current_page=current_page,
            total_pages=total_pages,
            total_items=max(0, total_items),
            page_size=page_size,
        )

    def to_cache(self) -> dict[str, Any]:
        return {
            "products": [p.to_dict() for p in self.items],
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            "totalItems": self.total_items,
            "pageSize": self.page_size,
        }

    @classmethod
    def from_cache(cls, d: Any, page_size: int = 10) -> Page:
        """cachedProducts から復元。壊れていれば空ページ。"""
        if isinstance(d, list):
            # 初期版は商品の配列だけを保存していた
            d = {"products": d}
        if not isinstance(d, dict):
            return cls.empty(page_size)
        return cls.from_api(
            {
                "products": d.get("products") or [],
                "page": d.get("currentPage", 1),
                "total_pages": d.get("totalPages", 1),
                "total_items": d.get("totalItems"),
                "page_size": d.get("pageSize"),
            },
            page_size=page_size,
        )


@dataclass
class Opportunity:
    opportunity: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def is_quick_win(self) -> bool:
        return "quick win" in self.opportunity.lower()

    @property
    def is_low_priority(self) -> bool:
        return "low priority" in self.opportunity.lower()


@dataclass
class OpportunityList:
    product_id: str
    opportunities: list[Opportunity]
    message: Optional[str] = None

    @classmethod
    def from_api(cls, product_id: str, d: dict[str, Any]) -> OpportunityList:
        items = []
        for raw in d.get("opportunities") or []:
            if isinstance(raw, dict):
                title = str(raw.get("opportunity") or raw.get("title") or "")
                items.append(Opportunity(opportunity=title, details=dict(raw)))
            elif raw:
                items.append(Opportunity(opportunity=str(raw)))
        return cls(product_id=product_id, opportunities=items, message=d.get("message"))


@dataclass
class ToastMessage:
    text: str
    kind: str
    created_at: float


@dataclass
class OperationResult:
    """全操作の戻り値。例外は境界を越えず、ここに格納される。"""

    success: bool
    message: str = ""
    data: Any = None
    error: Optional[Exception] = None
    stale: bool = False

    @classmethod
    def ok(cls, message: str = "", data: Any = None) -> OperationResult:
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, error: Exception, message: Optional[str] = None) -> OperationResult:
        return cls(success=False, message=message or str(error), error=error)
