"""
Real HTTP client for the upstream insurance-quoting API.

Forwards a request as-is and returns the decoded body. Any non-2xx answer is
raised as UpstreamError carrying the upstream status and payload, which the
augmentation layer may inspect and the proxy forwards unchanged.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import httpx

from src.integrations.policy.response_wrappers import UpstreamError

logger = logging.getLogger(__name__)


class FinuslugiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or os.getenv("FINUSLUGI_API_URL", "https://finuslugi.ru")).rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def request(
        self,
        method: str,
        path: str,
        headers: Optional[Dict[str, str]] = None,
        body: Any = None,
        params: Optional[Any] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        clean_headers = {k: v for k, v in (headers or {}).items() if v}
        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
            response = await client.request(
                method,
                url,
                headers=clean_headers,
                params=params,
                json=body if method.upper() == "POST" else None,
            )

        payload = _decode(response)
        if response.is_success:
            return payload

        logger.info(f"Upstream error: {method} {path} -> {response.status_code}")
        raise UpstreamError(response.status_code, payload)


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
