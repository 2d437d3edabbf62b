"""エンドポイント名・キャッシュキー・既定文言。"""
from __future__ import annotations

# 永続キャッシュのキー（ブラウザ版 localStorage と同じ名前）
CACHE_KEY_STORE_INFO = "storeInfo"
CACHE_KEY_ACCESS_TOKEN = "accessToken"
CACHE_KEY_EMAIL = "email"
CACHE_KEY_CACHED_PRODUCTS = "cachedProducts"

SESSION_CACHE_KEYS = (CACHE_KEY_STORE_INFO, CACHE_KEY_ACCESS_TOKEN, CACHE_KEY_EMAIL)
ALL_CACHE_KEYS = SESSION_CACHE_KEYS + (CACHE_KEY_CACHED_PRODUCTS,)

# API エンドポイント（base_url からの相対パス）
EP_FETCH_PRODUCTS = "fetch-products/"
EP_ANALYZE_ALL = "analyze-products/"
EP_ANALYZE_BATCH = "analyze-single-multiple-products/"
EP_RESOLVE_ALL = "resolve-product-issues/"
EP_RESOLVE_BATCH = "resolve-single-product-issues/"
EP_APPROVE_REJECT = "approve-reject-product-suggestions/"
EP_SEO_OPPORTUNITIES = "write-blogs-and-articles/"
EP_GSC_QUERIES = "gsc-queries/"
EP_CORE_WEB_VITALS = "core-web-vitals/"
EP_WEBSITE_ISSUES = "website-issues/"
EP_COMPLETE_PERFORMANCE = "complete-website-performance/"
EP_RESOLVE_WEBSITE_ISSUE = "resolve-single-website-issue/"
EP_RESOLVE_WEBSITE_ISSUES = "resolve-website-issues/"
EP_CHAT = "get-response/"

SCORE_FLOOR = 0
SCORE_CEILING = 100

TOAST_KINDS = ("info", "success", "error", "warning")
