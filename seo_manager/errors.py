"""ダッシュボードのエラー分類。すべて store / coordinator の境界で通知に変換される。"""
from __future__ import annotations

from typing import Any, Optional


class DashboardError(Exception):
    """全エラーの基底。message はそのままトーストに表示できる文言。"""

    kind = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DashboardError):
    """必須入力の欠落など。ネットワーク呼び出し前に検出。"""

    kind = "validation"


class NoSessionError(DashboardError):
    """接続済みセッションが必要な操作をセッションなしで呼んだ。"""

    kind = "no_session"


class RemoteError(DashboardError):
    """API が非 2xx、またはアプリケーションレベルの success:false を返した。"""

    kind = "remote"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Optional[Any] = None,
        server_message: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload
        self.server_message = server_message


class TransportError(DashboardError):
    """ネットワーク障害・タイムアウト。"""

    kind = "transport"

    def __init__(self, message: str, timeout: bool = False) -> None:
        super().__init__(message)
        self.timeout = timeout


class ParseError(DashboardError):
    """キャッシュやサーバー応答の構造化データが壊れている。"""

    kind = "parse"


def user_message(error: Exception, fallback: str) -> str:
    """トーストに出す文言。サーバーの文言があればそのまま、無ければ操作ごとの既定文言。"""
    if isinstance(error, RemoteError):
        return error.server_message or fallback
    if isinstance(error, (TransportError, ValidationError, NoSessionError)):
        return error.message
    return fallback
