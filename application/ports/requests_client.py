# application/ports/requests_client.py
from __future__ import annotations

import asyncio
from typing import Dict, Optional

import requests

from application.exceptions import TransportError
from application.ports.http_client import HttpClientPort, HttpResponse


class RequestsSessionHttpClient(HttpClientPort):
    """
    requests.Session をスレッドに逃がして呼ぶ。イベントループは待ち時間中もブロックされない。
    """

    def __init__(self, base_headers: Optional[Dict[str, str]] = None, timeout_sec: int = 20):
        self._session = requests.Session()
        self._base_headers = base_headers or {}
        self._timeout = timeout_sec

    async def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[str] = None,
    ) -> HttpResponse:
        return await asyncio.to_thread(self._send, method, url, headers, body)

    def _send(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]],
        body: Optional[str],
    ) -> HttpResponse:
        merged = dict(self._base_headers)
        if headers:
            merged.update(headers)

        try:
            resp = self._session.request(
                method=method.upper(),
                url=url,
                headers=merged,
                data=body.encode("utf-8") if body is not None else None,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise TransportError(method.upper(), url, str(e)) from e

        return HttpResponse(
            status=resp.status_code,
            text=resp.text,
            headers=dict(resp.headers),
            url=str(resp.url),
        )

    def close(self) -> None:
        self._session.close()
