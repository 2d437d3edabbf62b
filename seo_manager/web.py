"""
Streamlit Web UI エントリーポイント。
ストア接続・商品の分析/解決・SEO 提案・GSC 指標をブラウザで操作できる。
"""
from __future__ import annotations

import sys
from pathlib import Path

import streamlit as st
from dotenv import load_dotenv

# プロジェクトルートをパスに追加
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

load_dotenv()

from seo_manager.web_ui.pages import (
    render_dashboard,
    render_gsc_metrics,
    render_opportunities,
    render_reports,
    render_settings,
)
from seo_manager.web_ui.services import get_state, render_toast

_SIDEBAR_GUIDE = """
**初めて使う場合:**
1. 「🏠 ダッシュボード」でストア名・アクセストークン・メールアドレスを入力して接続
2. 商品を選んで「選択を分析」→ 分析が終わったら「選択を解決」
3. 「📑 商品レポート」で修正案を確認して承認/却下
4. 「💡 SEO 提案」「📈 Search Console 指標」で改善ポイントを確認
"""

_PAGES = {
    "🏠 ダッシュボード": render_dashboard,
    "📑 商品レポート": render_reports,
    "💡 SEO 提案": render_opportunities,
    "📈 Search Console 指標": render_gsc_metrics,
    "⚙️ 設定": render_settings,
}


def main() -> None:
    """サイドバーとページを描画（再実行のたびに呼ばれる）。"""
    with st.sidebar:
        st.markdown("### 🛍️ Shopify SEO マネージャー")
        session = get_state().sessions.current()
        if session.connected:
            st.caption(f"接続中: {session.store_name}")
        else:
            st.caption("未接続")
        st.markdown("---")
        page = st.radio("ページ", list(_PAGES))
        st.markdown("---")
        with st.expander("❓ 使い方ガイド", expanded=False):
            st.markdown(_SIDEBAR_GUIDE)

    render_toast()
    _PAGES[page]()


if __name__ == "__main__":
    # streamlit run seo_manager/web.py で直接起動した場合
    st.set_page_config(
        page_title="Shopify SEO マネージャー",
        page_icon="🛍️",
        layout="wide",
        initial_sidebar_state="expanded",
    )
    main()
