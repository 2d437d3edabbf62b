"""設定ページ（config.yaml 編集・キャッシュ削除）。"""
from __future__ import annotations

from typing import Any

import streamlit as st

from seo_manager.config import load_config, save_config
from seo_manager.web_ui.services import get_state


def render_settings() -> None:
    """設定ページを描画。"""
    st.title("⚙️ 設定")
    st.info("🔧 API の接続先などを変更した場合は、ページを再読み込みすると反映されます。")
    tab1, tab2 = st.tabs(["設定ファイル (config.yaml)", "キャッシュ"])
    with tab1:
        _render_config_tab()
    with tab2:
        _render_cache_tab()


def _render_config_tab() -> None:
    config = load_config()
    col1, col2 = st.columns(2)
    with col1:
        _render_api_config(config)
    with col2:
        _render_ui_config(config)
    if st.button("設定を保存"):
        save_config(config)
        st.success("保存しました！")


def _render_api_config(config: dict[str, Any]) -> None:
    st.markdown("#### API 設定")
    api = config["api"]
    api["base_url"] = st.text_input(
        "API ベース URL",
        value=api.get("base_url", ""),
        help="環境変数 SEO_API_BASE_URL が設定されている場合はそちらが優先されます。",
    )
    api["timeout_sec"] = st.number_input(
        "タイムアウト（秒）",
        min_value=1,
        max_value=600,
        value=int(api.get("timeout_sec", 30)),
    )
    config["store"]["page_size"] = st.number_input(
        "1ページの商品数",
        min_value=1,
        max_value=100,
        value=int(config["store"].get("page_size", 10)),
    )


def _render_ui_config(config: dict[str, Any]) -> None:
    st.markdown("#### 表示設定")
    ui = config["ui"]
    ui["toast_duration_ms"] = st.number_input(
        "通知の表示時間（ミリ秒）",
        min_value=500,
        max_value=30000,
        step=500,
        value=int(ui.get("toast_duration_ms", 4000)),
    )
    ui["poll_interval_sec"] = st.number_input(
        "処理中の自動更新間隔（秒）",
        min_value=1,
        max_value=30,
        value=int(ui.get("poll_interval_sec", 2)),
    )


def _render_cache_tab() -> None:
    state = get_state()
    keys = state.cache.keys()
    st.markdown("### 保存済みキャッシュ")
    if not keys:
        st.info("キャッシュは空です。")
    else:
        st.write(", ".join(keys))
    if st.button("🗑️ 切断してキャッシュを削除", disabled=not keys):
        state.sessions.disconnect()
        st.rerun()
