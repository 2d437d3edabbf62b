"""設定の読み込み・環境変数の優先順位のテスト。"""
import pytest

from seo_manager.config import AppSettings, default_config, load_config, load_settings, save_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("SEO_API_BASE_URL", "SEO_API_TIMEOUT_SEC", "CONFIG_PATH", "SEO_CACHE_DB_PATH"):
        monkeypatch.delenv(name, raising=False)


def test_missing_file_returns_defaults(tmp_path):
    assert load_config(str(tmp_path / "none.yaml")) == default_config()


def test_partial_file_is_merged_with_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("store:\n  page_size: 25\n", encoding="utf-8")
    config = load_config(str(path))
    assert config["store"]["page_size"] == 25
    assert config["api"]["timeout_sec"] == 30


def test_broken_yaml_returns_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("api: [unclosed\n", encoding="utf-8")
    assert load_config(str(path)) == default_config()


def test_save_then_load(tmp_path):
    path = str(tmp_path / "config.yaml")
    config = default_config()
    config["ui"]["toast_duration_ms"] = 2500
    save_config(config, path)
    assert load_config(path)["ui"]["toast_duration_ms"] == 2500


def test_settings_from_config_defaults():
    settings = AppSettings.from_config(default_config())
    assert settings.api_base_url == "http://localhost:8000/shopify-manager/"
    assert settings.page_size == 10
    assert settings.toast_duration_ms == 4000
    assert settings.cache_db_path is None


def test_env_overrides_config(monkeypatch):
    monkeypatch.setenv("SEO_API_BASE_URL", "https://api.example.com/shopify-manager")
    monkeypatch.setenv("SEO_API_TIMEOUT_SEC", "12")
    monkeypatch.setenv("SEO_CACHE_DB_PATH", "/tmp/seo.db")
    settings = AppSettings.from_config(default_config())
    assert settings.api_base_url == "https://api.example.com/shopify-manager/"
    assert settings.timeout_sec == 12
    assert settings.cache_db_path == "/tmp/seo.db"


def test_invalid_values_are_clamped():
    config = default_config()
    config["store"]["page_size"] = 0
    config["api"]["timeout_sec"] = -1
    settings = AppSettings.from_config(config)
    assert settings.page_size == 10
    assert settings.timeout_sec == 30


def test_load_settings_uses_config_path_env(monkeypatch, tmp_path):
    path = tmp_path / "custom.yaml"
    path.write_text("store:\n  page_size: 5\n", encoding="utf-8")
    monkeypatch.setenv("CONFIG_PATH", str(path))
    assert load_settings().page_size == 5
