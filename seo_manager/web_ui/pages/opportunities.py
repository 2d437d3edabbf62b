"""SEO 提案ページ。"""
from __future__ import annotations

import streamlit as st

from seo_manager.api.models import OpportunityList
from seo_manager.util.formatting import truncate_text
from seo_manager.web_ui.pages.constants import NO_SESSION_PAGE_MESSAGE
from seo_manager.web_ui.services import get_state

_RESULTS_KEY = "opportunity_results"


def render_opportunities() -> None:
    """SEO 提案ページを描画。"""
    st.title("💡 SEO 提案")
    state = get_state()
    if not state.sessions.is_connected():
        st.info(NO_SESSION_PAGE_MESSAGE)
        return

    products = state.products.products
    if not products:
        st.info("まだ商品がありません。ダッシュボードで商品を取得してください。")
        return

    results: dict[str, OpportunityList] = st.session_state.setdefault(_RESULTS_KEY, {})
    product = st.selectbox("商品", products, format_func=lambda p: truncate_text(p.name, 60))
    if product is None:
        return

    if st.button("💡 提案を生成", type="primary"):
        with st.spinner("SEO 提案を生成中..."):
            # 同じ商品の生成が既に走っていれば、その結果を待つだけ
            result = state.operations.analyze_seo_opportunities(product.id)
        if result.success:
            results[product.id] = result.data
        else:
            st.error(result.message)

    opportunities = results.get(product.id)
    if opportunities is None:
        st.caption("「提案を生成」で、この商品の改善ポイントを取得します。")
        return
    if opportunities.message:
        st.info(opportunities.message)
    if not opportunities.opportunities:
        st.success("改善ポイントは見つかりませんでした。")
        return
    for item in opportunities.opportunities:
        if item.is_quick_win:
            icon = "⚡"
        elif item.is_low_priority:
            icon = "💤"
        else:
            icon = "📌"
        with st.expander(f"{icon} {item.opportunity}"):
            details = {k: v for k, v in item.details.items() if k not in ("opportunity", "title")}
            if details:
                st.json(details)
