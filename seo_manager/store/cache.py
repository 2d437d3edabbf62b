"""永続キー・バリューキャッシュ（kv_cache テーブル）。ロジックは持たない。"""
from __future__ import annotations

import json
import logging
import sqlite3
import threading
from typing import Any, Optional

from seo_manager.store import db
from seo_manager.util.datetime_utils import utc_now_iso

logger = logging.getLogger(__name__)


class PersistentCache:
    """storeInfo / accessToken / email / cachedProducts を保存・復元する。"""

    def __init__(self, conn: Optional[sqlite3.Connection] = None, db_path: Optional[str] = None) -> None:
        self._conn = conn or db.get_connection(db_path)
        db.init_schema(self._conn)
        self._lock = threading.Lock()

    def save(self, key: str, value: Any) -> None:
        """JSON にして保存。"""
        self.save_raw(key, json.dumps(value, ensure_ascii=False))

    def save_raw(self, key: str, text: str) -> None:
        """文字列をそのまま保存（accessToken / email 用）。"""
        with self._lock:
            self._conn.execute(
                "INSERT INTO kv_cache (key, value, updated_at) VALUES (?, ?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at",
                (key, text, utc_now_iso()),
            )
            self._conn.commit()

    def load_raw(self, key: str, fallback: Optional[str] = None) -> Optional[str]:
        with self._lock:
            row = self._conn.execute("SELECT value FROM kv_cache WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else fallback

    def load(self, key: str, fallback: Any = None) -> Any:
        """JSON として読み込む。壊れた値は例外にせず fallback を返す。"""
        text = self.load_raw(key)
        if text is None or text == "":
            return fallback
        try:
            return json.loads(text)
        except ValueError:
            logger.warning("キャッシュ %s の JSON が壊れています。既定値を使用します。", key)
            return fallback

    def remove(self, *keys: str) -> None:
        if not keys:
            return
        with self._lock:
            self._conn.executemany("DELETE FROM kv_cache WHERE key = ?", [(k,) for k in keys])
            self._conn.commit()

    def keys(self) -> list[str]:
        with self._lock:
            rows = self._conn.execute("SELECT key FROM kv_cache ORDER BY key").fetchall()
        return [r["key"] for r in rows]

    def clear(self) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM kv_cache")
            self._conn.commit()

    def close(self) -> None:
        self._conn.close()
