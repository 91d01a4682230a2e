"""공용 httpx 클라이언트"""
from typing import Optional

import httpx

from ..config import settings


# 싱글톤 인스턴스
_http_client: Optional[httpx.AsyncClient] = None


def get_http_client() -> httpx.AsyncClient:
    """모든 외부 호출에 명시적 타임아웃 적용"""
    global _http_client
    if _http_client is None or _http_client.is_closed:
        _http_client = httpx.AsyncClient(timeout=httpx.Timeout(settings.http_timeout_seconds, connect=10.0))
    return _http_client


async def close_http_client() -> None:
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None
