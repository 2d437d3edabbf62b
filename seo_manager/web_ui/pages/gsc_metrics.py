"""Search Console 指標ページ（ウェブサイト接続・検索クエリ・課題の解決・アシスタント）。"""
from __future__ import annotations

import streamlit as st

from seo_manager.state.gsc import GscStore
from seo_manager.util.formatting import format_number, format_percentage
from seo_manager.web_ui.data_queries import queries_dataframe
from seo_manager.web_ui.services import get_state

_SEVERITY_ICONS = {"high": "🔴", "medium": "🟠", "low": "🟢"}


def render_gsc_metrics() -> None:
    """GSC 指標ページを描画。"""
    st.title("📈 Search Console 指標")
    gsc = get_state().gsc

    if not gsc.is_connected:
        _render_connect(gsc)
    else:
        col_info, col_btn = st.columns([3, 1])
        with col_info:
            st.success(f"🌐 接続中: **{gsc.website_url}**")
        with col_btn:
            if st.button("🔌 切断", use_container_width=True, key="gsc_disconnect"):
                gsc.disconnect()
                st.rerun()
        _render_metrics(gsc)
        _render_issues(gsc)

    _render_assistant()


def _render_connect(gsc: GscStore) -> None:
    tab1, tab2 = st.tabs(["URL で接続", "資格情報ファイルで接続"])
    with tab1:
        with st.form("gsc_connect"):
            url = st.text_input("ウェブサイト URL", placeholder="https://example.com")
            submitted = st.form_submit_button("接続", type="primary")
        if submitted:
            with st.spinner("データを取得中..."):
                result = gsc.connect_website(url)
            if result.success:
                st.rerun()
            st.error(result.message)
    with tab2:
        with st.form("gsc_connect_credentials"):
            url = st.text_input("ウェブサイト URL", placeholder="https://example.com", key="gsc_cred_url")
            api_key = st.text_input("API キー", type="password")
            uploaded = st.file_uploader("credentials.json", type=["json"])
            submitted = st.form_submit_button("接続", type="primary")
        if submitted:
            content = uploaded.getvalue() if uploaded is not None else b""
            filename = uploaded.name if uploaded is not None else "credentials.json"
            with st.spinner("データを取得中..."):
                result = gsc.connect_with_credentials(url, api_key, content, filename=filename)
            if result.success:
                st.rerun()
            st.error(result.message)


def _render_metrics(gsc: GscStore) -> None:
    metrics = gsc.metrics
    if metrics is None:
        return
    col1, col2, col3 = st.columns(3)
    col1.metric("インデックス済み", format_number(metrics.indexed))
    col2.metric("未インデックス", format_number(metrics.not_indexed))
    total = metrics.indexed + metrics.not_indexed
    col3.metric("インデックス率", format_percentage(metrics.indexed / total * 100 if total else None))

    if metrics.core_web_vitals:
        st.markdown("### Core Web Vitals")
        cols = st.columns(min(len(metrics.core_web_vitals), 4))
        for i, (name, value) in enumerate(metrics.core_web_vitals.items()):
            cols[i % len(cols)].metric(name, str(value))

    st.markdown("### 検索クエリ")
    df = queries_dataframe(metrics.queries)
    if df.empty:
        st.info("検索クエリのデータがありません。")
    else:
        st.dataframe(df, use_container_width=True, hide_index=True)


def _render_issues(gsc: GscStore) -> None:
    issues = gsc.issues
    col_title, col_btn = st.columns([3, 1])
    with col_title:
        st.markdown(f"### ウェブサイトの課題（{len(issues)}）")
    with col_btn:
        if st.button("🛠️ すべて解決", disabled=not issues or gsc.is_loading, use_container_width=True):
            with st.spinner("課題を解決中..."):
                gsc.resolve_issues()
            st.rerun()
    if not issues:
        st.success("課題はありません。")
        return
    for i, issue in enumerate(issues):
        icon = _SEVERITY_ICONS.get(issue.severity, "⚪")
        with st.expander(f"{icon} {issue.issue}", expanded=bool(issue.solution)):
            if issue.solution:
                st.markdown(issue.solution)
            elif st.button("解決", key=f"resolve_issue_{i}", disabled=issue.is_resolving):
                with st.spinner("解決中..."):
                    gsc.resolve_single_issue(issue.issue)
                st.rerun()


def _render_assistant() -> None:
    chat = get_state().chat
    st.markdown("---")
    if st.button("💬 SEO アシスタント" + ("を閉じる" if chat.is_open else "")):
        chat.toggle()
        st.rerun()
    if not chat.is_open:
        return

    for message in chat.messages:
        with st.chat_message(message.role):
            st.markdown(message.content)
    if chat.error:
        st.error(chat.error)
    prompt = st.chat_input("SEO について質問する")
    if prompt:
        with st.spinner("回答を生成中..."):
            chat.send_message(prompt)
        st.rerun()
    col1, col2 = st.columns([3, 1])
    with col1:
        st.caption(
            f"トークン: 合計 {chat.tokens.total} / 入力 {chat.tokens.input} / 出力 {chat.tokens.output}"
        )
    with col2:
        if st.button("履歴をクリア", use_container_width=True):
            chat.clear()
            st.rerun()
