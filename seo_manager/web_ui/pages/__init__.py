"""Web UI ページモジュール。"""
from seo_manager.web_ui.pages.dashboard import render_dashboard
from seo_manager.web_ui.pages.gsc_metrics import render_gsc_metrics
from seo_manager.web_ui.pages.opportunities import render_opportunities
from seo_manager.web_ui.pages.reports import render_reports
from seo_manager.web_ui.pages.settings import render_settings

__all__ = [
    "render_dashboard",
    "render_reports",
    "render_opportunities",
    "render_gsc_metrics",
    "render_settings",
]
