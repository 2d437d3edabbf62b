"""商品レポートページ（分析結果・修正案の確認と承認/却下）。"""
from __future__ import annotations

from typing import Any

import streamlit as st

from seo_manager.api.models import Product
from seo_manager.util.formatting import format_number, seo_score_band, truncate_text
from seo_manager.util.solutions import parse_solutions
from seo_manager.web_ui.data_queries import issues_dataframe
from seo_manager.web_ui.pages.constants import NO_SESSION_PAGE_MESSAGE
from seo_manager.web_ui.services import get_state


def render_reports() -> None:
    """商品レポートページを描画。"""
    st.title("📑 商品レポート")
    state = get_state()
    if not state.sessions.is_connected():
        st.info(NO_SESSION_PAGE_MESSAGE)
        return

    products = state.products.products
    if not products:
        st.info("まだ商品がありません。ダッシュボードで商品を取得してください。")
        return

    product = st.selectbox(
        "商品",
        products,
        format_func=lambda p: f"{truncate_text(p.name, 60)}（{format_number(p.seo_score)}）",
    )
    if product is None:
        return
    _render_summary(product)

    tab1, tab2 = st.tabs(["分析結果", "修正案"])
    with tab1:
        _render_analysis(product)
    with tab2:
        _render_solutions(product)


def _render_summary(product: Product) -> None:
    col1, col2, col3 = st.columns(3)
    col1.metric("SEO スコア", format_number(product.seo_score))
    col2.metric("評価", seo_score_band(product.seo_score))
    col3.metric("ステータス", product.status)


def _render_analysis(product: Product) -> None:
    df = issues_dataframe(product)
    if df.empty:
        st.info("分析結果がありません。ダッシュボードで「選択を分析」を実行してください。")
        return
    st.dataframe(df, use_container_width=True, hide_index=True)


def _render_solutions(product: Product) -> None:
    if not product.has_resolution():
        st.info("修正案がありません。ダッシュボードで「選択を解決」を実行してください。")
        return
    solutions = parse_solutions(product.resolution)
    if not solutions:
        st.error("Unable to load suggested fixes for this product.")
        return
    for i, solution in enumerate(solutions, 1):
        _render_solution(i, solution)

    st.markdown("---")
    col1, col2, _ = st.columns([1, 1, 2])
    ops = get_state().operations
    with col1:
        if st.button("✅ 承認", type="primary", use_container_width=True, key=f"approve_{product.id}"):
            result = ops.handle_suggestion(product.name, "approve")
            if result.success:
                st.rerun()
    with col2:
        if st.button("🚫 却下", use_container_width=True, key=f"reject_{product.id}"):
            result = ops.handle_suggestion(product.name, "reject")
            if result.success:
                st.rerun()


def _render_solution(index: int, solution: dict[str, Any]) -> None:
    issue = solution.get("Issue") or solution.get("issue") or f"修正案 {index}"
    with st.expander(f"{index}. {truncate_text(str(issue), 80)}", expanded=index == 1):
        for key, value in solution.items():
            if key in ("Issue", "issue"):
                continue
            st.markdown(f"**{key}**")
            if isinstance(value, (dict, list)):
                st.json(value)
            else:
                st.write(value)
