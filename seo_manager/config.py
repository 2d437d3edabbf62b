"""設定の読み込み・保存。web / state で共有。"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

load_dotenv()

ROOT = Path(__file__).resolve().parent.parent
logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "http://localhost:8000/shopify-manager/"


def default_config() -> dict[str, Any]:
    """デフォルト設定を返す。"""
    return {
        "api": {
            "base_url": DEFAULT_API_BASE_URL,
            "timeout_sec": 30,
        },
        "store": {"page_size": 10},
        "ui": {
            "toast_duration_ms": 4000,
            "poll_interval_sec": 2,  # バックグラウンド処理中の自動更新間隔
        },
        "cache": {"db_path": ""},
    }


def load_config(config_path: Optional[str] = None) -> dict[str, Any]:
    """config.yaml を読み込む。存在しなければデフォルトを返す。読み込みエラー時もデフォルトを返す。"""
    path = config_path or os.getenv("CONFIG_PATH") or str(ROOT / "config.yaml")
    if not os.path.isfile(path):
        return default_config()
    try:
        with open(path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("config.yaml の読み込みに失敗しました。デフォルトを使用します: %s", e)
        return default_config()
    if not isinstance(loaded, dict):
        return default_config()
    # 欠けているセクションはデフォルトで補う
    config = default_config()
    for section, values in loaded.items():
        if isinstance(values, dict) and isinstance(config.get(section), dict):
            config[section].update(values)
        else:
            config[section] = values
    return config


def save_config(config: dict[str, Any], config_path: Optional[str] = None) -> None:
    """config.yaml に保存する。"""
    path = config_path or str(ROOT / "config.yaml")
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(config, f, allow_unicode=True, default_flow_style=False)


@dataclass(frozen=True)
class AppSettings:
    """ダッシュボード全体の実行時設定。環境変数が config.yaml より優先。"""

    api_base_url: str
    timeout_sec: float
    page_size: int
    toast_duration_ms: int
    poll_interval_sec: float
    cache_db_path: Optional[str]

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> AppSettings:
        api_cfg = config.get("api", {})
        store_cfg = config.get("store", {})
        ui_cfg = config.get("ui", {})
        cache_cfg = config.get("cache", {})

        base_url = os.getenv("SEO_API_BASE_URL") or api_cfg.get("base_url") or DEFAULT_API_BASE_URL
        if not base_url.endswith("/"):
            base_url += "/"

        timeout_sec = float(os.getenv("SEO_API_TIMEOUT_SEC") or api_cfg.get("timeout_sec", 30))
        if timeout_sec <= 0:
            logger.warning("timeout_sec=%s は無効です。30秒に補正しました。", timeout_sec)
            timeout_sec = 30.0

        page_size = int(store_cfg.get("page_size", 10))
        if page_size < 1:
            logger.warning("page_size=%d は無効です。10に補正しました。", page_size)
            page_size = 10

        return cls(
            api_base_url=base_url,
            timeout_sec=timeout_sec,
            page_size=page_size,
            toast_duration_ms=int(ui_cfg.get("toast_duration_ms", 4000)),
            poll_interval_sec=float(ui_cfg.get("poll_interval_sec", 2)),
            cache_db_path=os.getenv("SEO_CACHE_DB_PATH") or cache_cfg.get("db_path") or None,
        )


def load_settings(config_path: Optional[str] = None) -> AppSettings:
    return AppSettings.from_config(load_config(config_path))
