"""Web UI 用データ整形（商品一覧・GSC 検索クエリ）。"""
from __future__ import annotations

from typing import Any, Optional

import pandas as pd

from seo_manager.api.models import Product
from seo_manager.state.operations import ANALYZE, RESOLVE, OperationCoordinator
from seo_manager.util.formatting import parse_issue, seo_score_band

_PROCESSING_LABELS = {ANALYZE: "⏳ Analyzing", RESOLVE: "⏳ Resolving"}


def products_dataframe(
    products: list[Product],
    operations: Optional[OperationCoordinator] = None,
) -> pd.DataFrame:
    """商品一覧を DataFrame にする。処理中の行は「処理中」列に表示する。"""
    if not products:
        return pd.DataFrame()
    data = []
    for p in products:
        kind = operations.processing_kind(p.id) if operations else None
        data.append(
            {
                "選択": False,
                "id": p.id,
                "商品名": p.name,
                "SEO スコア": p.seo_score,
                "評価": seo_score_band(p.seo_score),
                "ステータス": p.status,
                "課題数": len(p.issues),
                "修正案": "あり" if p.has_resolution() else "",
                "処理中": _PROCESSING_LABELS.get(kind, "") if kind else "",
            }
        )
    return pd.DataFrame(data)


def issues_dataframe(product: Product) -> pd.DataFrame:
    """1商品の課題一覧（末尾の N/M をスコア列に分離）。"""
    if not product.issues:
        return pd.DataFrame()
    rows = []
    for raw in product.issues:
        entry = parse_issue(raw)
        rows.append(
            {
                "課題": entry.text,
                "スコア": f"{entry.score}/{entry.max_score}" if entry.score is not None else "",
            }
        )
    return pd.DataFrame(rows)


def queries_dataframe(queries: list[dict[str, Any]]) -> pd.DataFrame:
    """GSC 検索クエリ一覧。"""
    if not queries:
        return pd.DataFrame()
    return pd.DataFrame(queries)
