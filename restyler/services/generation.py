"""이미지 생성 백엔드 공통 인터페이스

배포마다 하나의 백엔드만 활성화된다 (GENERATION_PROVIDER).
"""
import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict

import httpx

from ..config import Settings


SleepFunc = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class SourceImage:
    """원본 이미지 (URL과 다운로드한 바이트)"""
    url: str
    content: bytes


class GenerationProvider(ABC):
    """원본 이미지 + 프롬프트 쌍 -> 생성된 이미지 바이트"""

    name = "provider"

    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self.settings = settings
        self.client = client

    @property
    @abstractmethod
    def api_key(self) -> str:
        ...

    @abstractmethod
    async def generate(self, source: SourceImage, positive_prompt: str, negative_prompt: str) -> bytes:
        ...

    @abstractmethod
    async def check_account(self) -> Dict[str, Any]:
        """자격 증명 검증 (생성 비용을 쓰기 전에 호출)"""
        ...


PROVIDER_CREDENTIALS = {
    "stability": ("stability_api_key", "STABILITY_API_KEY"),
    "replicate": ("replicate_api_token", "REPLICATE_API_TOKEN"),
}


def create_provider(
    settings: Settings,
    client: httpx.AsyncClient,
    sleep: SleepFunc = asyncio.sleep,
) -> GenerationProvider:
    """설정에 따라 백엔드 구현 선택"""
    from .stability_provider import StabilityProvider
    from .replicate_provider import ReplicateProvider

    provider = settings.generation_provider.lower()
    if provider == "stability":
        return StabilityProvider(settings, client)
    if provider == "replicate":
        return ReplicateProvider(settings, client, sleep=sleep)
    raise ValueError(f"Unknown generation provider: {settings.generation_provider}")
