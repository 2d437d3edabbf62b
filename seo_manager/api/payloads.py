"""リクエストボディの組み立て。None の条件はキーごと送らない。"""
from __future__ import annotations

from typing import Any, Iterable, Optional

from seo_manager.api.models import ProductFilterSet, Session


def build_filter_payload(filters: Optional[ProductFilterSet]) -> dict[str, Any]:
    """
    絞り込み条件を疎な dict にする。
    1. スコアが全範囲（0〜100）なら score_min / score_max を外す
    2. 値が None のキーを外す
    bool は JSON の true/false、スコアは数値のまま送る。
    """
    if filters is None:
        return {}
    normalized = filters.normalized()
    payload: dict[str, Any] = {}
    for key in ("active", "optimized", "analyzed"):
        value = getattr(normalized, key)
        if value is not None:
            payload[key] = bool(value)
    for key in ("score_min", "score_max"):
        value = getattr(normalized, key)
        if value is not None:
            payload[key] = int(value) if float(value).is_integer() else float(value)
    return payload


def build_fetch_payload(
    session: Session, page: int, filters: Optional[ProductFilterSet]
) -> dict[str, Any]:
    """fetch-products/ 用。認証情報 + page + 有効な絞り込み条件。"""
    payload: dict[str, Any] = {
        "storeName": session.store_name,
        "accessToken": session.access_token,
        "email": session.email,
        "page": max(1, int(page)),
    }
    payload.update(build_filter_payload(filters))
    return payload


def build_batch_payload(session: Session, product_ids: Iterable[str]) -> dict[str, Any]:
    """一括 analyze / resolve 用。ID ごとに呼ばず1回で送る。"""
    return {
        "product_ids": list(product_ids),
        **session.credentials(),
    }
