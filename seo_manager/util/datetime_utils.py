"""日時ユーティリティ。"""
from __future__ import annotations

from datetime import datetime, timezone


def operation_id() -> str:
    """一括処理ID（UTC タイムスタンプ + マイクロ秒）。ログの突き合わせ用。"""
    return datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S%f")


def utc_now_iso() -> str:
    """UTC 現在時刻の ISO 形式文字列。"""
    return datetime.now(timezone.utc).isoformat()
