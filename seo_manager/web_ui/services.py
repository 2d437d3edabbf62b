"""
Web UI 用サービス集約エントリポイント。
ダッシュボード状態の取得・トースト表示・バックグラウンド処理の起動を提供。
"""
from __future__ import annotations

import time
from concurrent.futures import Future
from typing import Any, Callable

import streamlit as st

from seo_manager.api.models import OperationResult
from seo_manager.state.container import DashboardState, create_state
from seo_manager.util.log import setup_logging

_STATE_KEY = "dashboard_state"

_TOAST_ICONS = {"info": "ℹ️", "success": "✅", "error": "❌", "warning": "⚠️"}


def get_state() -> DashboardState:
    """セッションごとに1つの DashboardState を作り、起動時のサイレント再接続を始める。"""
    if _STATE_KEY not in st.session_state:
        setup_logging()
        state = create_state()
        state.start()
        st.session_state[_STATE_KEY] = state
    return st.session_state[_STATE_KEY]


def run_in_background(fn: Callable[..., OperationResult], *args: Any) -> Future:
    """一括処理をワーカーで開始。完了まではページ側で is_busy() を見て再描画する。"""
    return get_state().operations.submit(fn, *args)


def render_toast() -> None:
    """現在のトーストを表示（期限切れなら何もしない）。"""
    toast = get_state().notifications.current()
    if toast is None:
        return
    # 同じトーストを再描画のたびに出さない
    if st.session_state.get("_last_toast_at") == toast.created_at:
        return
    st.session_state["_last_toast_at"] = toast.created_at
    st.toast(toast.text, icon=_TOAST_ICONS.get(toast.kind))


def rerun_while_busy() -> None:
    """バックグラウンド処理中は一定間隔で再描画する（行ごとのスピナー表示用）。"""
    state = get_state()
    busy = state.operations.is_busy() or (state.startup is not None and not state.startup.done())
    if busy:
        time.sleep(state.settings.poll_interval_sec)
        st.rerun()


__all__ = ["get_state", "run_in_background", "render_toast", "rerun_while_busy"]
