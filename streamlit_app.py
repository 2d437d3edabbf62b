"""
Streamlit Community Cloud 用エントリーポイント。
seo_manager/web.py の main() を呼び出す。
"""
import sys
from pathlib import Path

# プロジェクトルートをパスに追加（import より前に必須）
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import streamlit as st

# 必ず最初にページ設定（Streamlit の仕様）
st.set_page_config(
    page_title="Shopify SEO マネージャー",
    page_icon="🛍️",
    layout="wide",
    initial_sidebar_state="expanded",
)

try:
    from seo_manager.web import main
except Exception as e:
    st.error("アプリの読み込みに失敗しました。")
    st.exception(e)
else:
    main()
