"""
resolve 結果（提案された修正）の解析。
バックエンドは JSON のほか Python の repr 文字列（None / True / シングルクォート）を返すことがある。
"""
from __future__ import annotations

import ast
import json
import logging
from typing import Any

from seo_manager.errors import ParseError

logger = logging.getLogger(__name__)


def _as_list(value: Any) -> list[dict[str, Any]]:
    if isinstance(value, dict):
        return [value]
    if isinstance(value, (list, tuple)):
        return [v for v in value if isinstance(v, dict)]
    raise ParseError(f"Unexpected solutions payload type: {type(value).__name__}")


def parse_solutions_strict(payload: Any) -> list[dict[str, Any]]:
    """解析できなければ ParseError。"""
    if payload is None or payload == "":
        return []
    if not isinstance(payload, str):
        return _as_list(payload)

    text = payload.strip()
    try:
        return _as_list(json.loads(text))
    except ValueError:
        pass
    try:
        return _as_list(ast.literal_eval(text))
    except (ValueError, SyntaxError, MemoryError, RecursionError):
        pass
    # 外側の [] が無く、辞書が並んでいるだけの形
    if not text.startswith("["):
        try:
            return _as_list(ast.literal_eval(f"[{text}]"))
        except (ValueError, SyntaxError, MemoryError, RecursionError):
            pass
    raise ParseError("Unable to load suggested fixes for this product.")


def parse_solutions(payload: Any) -> list[dict[str, Any]]:
    """画面用。壊れていても例外にせず空リスト。"""
    try:
        return parse_solutions_strict(payload)
    except ParseError:
        snippet = payload[:500] if isinstance(payload, str) else repr(payload)[:500]
        logger.warning("parse_solutions failed. raw snippet: %s", snippet)
        return []
