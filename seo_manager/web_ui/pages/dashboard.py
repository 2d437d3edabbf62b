"""ダッシュボードページ（ストア接続・絞り込み・商品一覧・一括処理）。"""
from __future__ import annotations

import streamlit as st

from seo_manager.web_ui.data_queries import products_dataframe
from seo_manager.web_ui.pages.constants import BOOL_FILTER_OPTIONS, CONNECT_GUIDE_MARKDOWN
from seo_manager.web_ui.services import get_state, rerun_while_busy, run_in_background


def render_dashboard() -> None:
    """ダッシュボードを描画。"""
    st.title("🏠 ダッシュボード")
    state = get_state()

    if not state.sessions.is_connected():
        _render_connect_form()
        return

    session = state.sessions.current()
    col_info, col_btn = st.columns([3, 1])
    with col_info:
        st.success(f"🛍️ 接続中: **{session.store_name}** （{session.email}）")
    with col_btn:
        if st.button("🔌 切断", use_container_width=True):
            state.sessions.disconnect()
            st.rerun()

    _render_filters()
    _render_store_wide_actions()
    _render_product_table()
    rerun_while_busy()


def _render_connect_form() -> None:
    """未接続時のインライン案内と接続フォーム。"""
    st.info("🔗 まずストアを接続してください。")
    with st.expander("📖 接続方法", expanded=True):
        st.markdown(CONNECT_GUIDE_MARKDOWN)
    with st.form("connect_store"):
        store_name = st.text_input("ストア名", placeholder="例: my-shop.myshopify.com")
        access_token = st.text_input("アクセストークン", type="password")
        email = st.text_input("メールアドレス")
        submitted = st.form_submit_button("接続", type="primary", use_container_width=True)
    if submitted:
        with st.spinner("ストアに接続中..."):
            result = get_state().sessions.connect(store_name, access_token, email)
        if result.success:
            st.rerun()
        else:
            st.error(result.message)


def _bool_filter(label: str, current, key: str):
    options = list(BOOL_FILTER_OPTIONS)
    index = [v for _, v in options].index(current)
    choice = st.selectbox(label, options, index=index, format_func=lambda o: o[0], key=key)
    return choice[1]


def _render_filters() -> None:
    state = get_state()
    filters = state.products.filters
    with st.expander("🔎 絞り込み", expanded=False):
        col1, col2, col3 = st.columns(3)
        with col1:
            active = _bool_filter("公開状態", filters.active, "filter_active")
        with col2:
            optimized = _bool_filter("最適化済み", filters.optimized, "filter_optimized")
        with col3:
            analyzed = _bool_filter("分析済み", filters.analyzed, "filter_analyzed")
        score_min, score_max = st.slider(
            "SEO スコア",
            min_value=0,
            max_value=100,
            value=(int(filters.score_min or 0), int(filters.score_max if filters.score_max is not None else 100)),
        )
        col_apply, col_reset, _ = st.columns([1, 1, 2])
        with col_apply:
            if st.button("適用", type="primary", use_container_width=True):
                new_filters = state.products.update_filters(
                    active=active,
                    optimized=optimized,
                    analyzed=analyzed,
                    score_min=score_min,
                    score_max=score_max,
                )
                # 条件変更時は必ず1ページ目から
                state.products.fetch_page(1, new_filters)
                st.rerun()
        with col_reset:
            if st.button("リセット", use_container_width=True):
                state.products.fetch_page(1, state.products.reset_filters())
                st.rerun()


def _render_store_wide_actions() -> None:
    state = get_state()
    ops = state.operations
    col1, col2 = st.columns(2)
    with col1:
        if st.button(
            "🔍 全商品を分析" if not ops.is_analyzing else "⏳ 分析中...",
            disabled=ops.is_analyzing,
            use_container_width=True,
        ):
            run_in_background(ops.analyze_all)
            st.rerun()
    with col2:
        if st.button(
            "🛠️ 全商品の課題を解決" if not ops.is_resolving else "⏳ 解決中...",
            disabled=ops.is_resolving,
            use_container_width=True,
        ):
            run_in_background(ops.resolve_all)
            st.rerun()


def _render_product_table() -> None:
    state = get_state()
    page = state.products.page
    st.markdown("### 商品一覧")
    caption = f"{page.current_page} / {page.total_pages} ページ（{page.total_items} 件）"
    if state.products.is_loading:
        caption += " 🔄 更新中..."
    st.caption(caption)

    df = products_dataframe(page.items, state.operations)
    if df.empty:
        st.info("表示できる商品がありません。絞り込み条件を変更するか、再取得してください。")
        if st.button("🔄 再取得"):
            state.products.fetch_page(1)
            st.rerun()
        return

    edited = st.data_editor(
        df,
        column_config={
            "選択": st.column_config.CheckboxColumn("選択", default=False),
            "SEO スコア": st.column_config.ProgressColumn("SEO スコア", min_value=0, max_value=100, format="%d"),
        },
        disabled=[c for c in df.columns if c != "選択"],
        use_container_width=True,
        hide_index=True,
        key=f"products_editor_{page.current_page}",
    )
    selected = edited.loc[edited["選択"] == True, "id"].astype(str).tolist()  # noqa: E712

    col_a, col_r, col_prev, col_next = st.columns(4)
    with col_a:
        if st.button(f"🔍 選択を分析（{len(selected)}）", disabled=not selected, use_container_width=True):
            run_in_background(state.operations.analyze_products, selected)
            st.rerun()
    with col_r:
        if st.button(f"🛠️ 選択を解決（{len(selected)}）", disabled=not selected, use_container_width=True):
            run_in_background(state.operations.resolve_products, selected)
            st.rerun()
    with col_prev:
        if st.button("◀ 前へ", disabled=page.current_page <= 1, use_container_width=True):
            state.products.fetch_page(page.current_page - 1)
            st.rerun()
    with col_next:
        if st.button("次へ ▶", disabled=page.current_page >= page.total_pages, use_container_width=True):
            state.products.fetch_page(page.current_page + 1)
            st.rerun()
