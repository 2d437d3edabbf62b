"""HTTP ヘルパー：タイムアウト付き JSON / multipart 送受信。リトライはしない。"""
import os
from typing import Any, Optional

import requests

def get_timeout_sec() -> float:
    return float(os.getenv("SEO_API_TIMEOUT_SEC", "30"))

def _decode(r: requests.Response) -> Any:
    r.raise_for_status()
    return r.json() if r.content else {}

def post_json(
    url: str,
    json_body: Any,
    headers: Optional[dict[str, str]] = None,
    timeout_sec: Optional[float] = None,
    session: Optional[requests.Session] = None,
) -> Any:
    """POST application/json。"""
    timeout_sec = timeout_sec or get_timeout_sec()
    use_session = session or requests
    h = dict(headers or {})
    if "Content-Type" not in h:
        h["Content-Type"] = "application/json"
    r = use_session.post(url, json=json_body, headers=h, timeout=timeout_sec)
    return _decode(r)

def get_json(
    url: str,
    params: Optional[dict[str, Any]] = None,
    headers: Optional[dict[str, str]] = None,
    timeout_sec: Optional[float] = None,
    session: Optional[requests.Session] = None,
) -> Any:
    """GET で JSON を取得。"""
    timeout_sec = timeout_sec or get_timeout_sec()
    use_session = session or requests
    r = use_session.get(url, params=params, headers=headers or {}, timeout=timeout_sec)
    return _decode(r)

def post_multipart(
    url: str,
    data: dict[str, Any],
    files: dict[str, Any],
    headers: Optional[dict[str, str]] = None,
    timeout_sec: Optional[float] = None,
    session: Optional[requests.Session] = None,
) -> Any:
    """POST multipart/form-data。Content-Type は requests に境界付きで生成させる。"""
    timeout_sec = timeout_sec or get_timeout_sec()
    use_session = session or requests
    h: dict[str, Optional[str]] = {
        k: v for k, v in (headers or {}).items() if k.lower() != "content-type"
    }
    # None を渡すと Session の既定ヘッダ（application/json）が外れる
    h["Content-Type"] = None
    r = use_session.post(url, data=data, files=files, headers=h, timeout=timeout_sec)
    return _decode(r)
