"""Web UI ページ用の定数・文言。"""
from __future__ import annotations

BOOL_FILTER_OPTIONS = (
    ("すべて", None),
    ("はい", True),
    ("いいえ", False),
)

CONNECT_GUIDE_MARKDOWN = """
**ストアの接続:**
1. Shopify 管理画面の「アプリ」→「アプリを開発」でカスタムアプリを作成
2. Admin API のスコープで `read_products` と `write_products` を許可
3. **Admin API アクセストークン** をコピー
4. ストア名（例: my-shop.myshopify.com）・トークン・メールアドレスを入力して「接続」
"""

NO_SESSION_PAGE_MESSAGE = "🔗 ストアが接続されていません。「🏠 ダッシュボード」でストアを接続してください。"
