"""SEO Manager バックエンド API の共通クライアント。全ストアはここを経由する。"""
from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from seo_manager.errors import ParseError, RemoteError, TransportError
from seo_manager.util import http

logger = logging.getLogger(__name__)


def build_headers(extra: Optional[dict[str, str]] = None) -> dict[str, str]:
    """全リクエスト共通のヘッダを構築。"""
    headers: dict[str, str] = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    if extra:
        headers.update(extra)
    return headers


def extract_server_message(payload: Any) -> Optional[str]:
    """応答ボディからユーザー向けメッセージを取り出す。message → error → detail の順。"""
    if not isinstance(payload, dict):
        return None
    for key in ("message", "error", "detail"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _response_payload(response: Optional[requests.Response]) -> Any:
    if response is None or not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class ApiClient:
    """base_url と既定ヘッダを持つ単一の HTTP クライアント。状態は持たない。"""

    def __init__(
        self,
        base_url: str,
        timeout_sec: Optional[float] = None,
        session: Optional[requests.Session] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.timeout_sec = timeout_sec or http.get_timeout_sec()
        self.session = session or requests.Session()
        self.session.headers.update(build_headers(headers))

    def url(self, path: str) -> str:
        return self.base_url + path.lstrip("/")

    def post(self, path: str, body: Any) -> dict[str, Any]:
        return self._call(
            "POST",
            path,
            lambda: http.post_json(
                self.url(path), body, timeout_sec=self.timeout_sec, session=self.session
            ),
        )

    def get(self, path: str, params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        return self._call(
            "GET",
            path,
            lambda: http.get_json(
                self.url(path), params=params, timeout_sec=self.timeout_sec, session=self.session
            ),
        )

    def post_multipart(self, path: str, data: dict[str, Any], files: dict[str, Any]) -> dict[str, Any]:
        return self._call(
            "POST",
            path,
            lambda: http.post_multipart(
                self.url(path), data, files, timeout_sec=self.timeout_sec, session=self.session
            ),
        )

    def _call(self, method: str, path: str, send) -> dict[str, Any]:
        """requests の例外をエラー分類に変換し、success:false も RemoteError にする。"""
        logger.debug("%s %s", method, path)
        try:
            payload = send()
        except requests.HTTPError as e:
            body = _response_payload(e.response)
            status = e.response.status_code if e.response is not None else None
            server_message = extract_server_message(body)
            logger.warning("%s %s failed: status=%s message=%s", method, path, status, server_message)
            raise RemoteError(
                server_message or f"Request failed with status {status}",
                status_code=status,
                payload=body,
                server_message=server_message,
            ) from e
        except requests.Timeout as e:
            logger.warning("%s %s timed out after %ss", method, path, self.timeout_sec)
            raise TransportError(
                f"Request timed out after {self.timeout_sec:g} seconds.", timeout=True
            ) from e
        except requests.JSONDecodeError as e:
            raise ParseError(f"Malformed response from {path}") from e
        except requests.RequestException as e:
            logger.warning("%s %s transport error: %s", method, path, e)
            raise TransportError("Network error. Please check your connection.") from e

        if not isinstance(payload, dict):
            # 一覧をそのまま返すエンドポイント用
            return {"data": payload}
        if payload.get("success") is False:
            server_message = extract_server_message(payload)
            raise RemoteError(
                server_message or "Request was rejected by the server.",
                payload=payload,
                server_message=server_message,
            )
        return payload
