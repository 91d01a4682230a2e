"""Replicate predictions API (비동기 제출 + 상태 polling)"""
import asyncio
import base64
import time
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlparse

import httpx

from ..config import Settings
from .errors import (
    GenerationFailed,
    GenerationTimeout,
    InvalidOutputReference,
    OutputDownloadFailed,
    classify_response,
)
from .generation import GenerationProvider, SleepFunc, SourceImage
from .image_fetcher import prepare_square
from ..utils.logger import logger


TERMINAL_FAILURES = ("failed", "canceled")


def is_absolute_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class ReplicateProvider(GenerationProvider):
    """job 제출 -> 고정 간격 polling -> 결과 URL 다운로드"""

    name = "replicate"

    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient,
        sleep: SleepFunc = asyncio.sleep,
        poll_interval: Optional[float] = None,
        max_attempts: Optional[int] = None,
        deadline: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(settings, client)
        self.sleep = sleep
        self.poll_interval = poll_interval if poll_interval is not None else settings.replicate_poll_interval_seconds
        self.max_attempts = max_attempts if max_attempts is not None else settings.replicate_poll_max_attempts
        self.deadline = deadline if deadline is not None else settings.replicate_poll_deadline_seconds
        self.poll_timeout = httpx.Timeout(settings.replicate_poll_timeout_seconds, connect=10.0)
        self.clock = clock

    @property
    def api_key(self) -> str:
        return self.settings.replicate_api_token

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Token {self.api_key}",
            "Content-Type": "application/json",
        }

    def _url(self, path: str) -> str:
        return f"{self.settings.replicate_base_url.rstrip('/')}{path}"

    async def check_account(self) -> Dict[str, Any]:
        try:
            response = await self.client.get(self._url("/v1/account"), headers=self._headers())
        except httpx.HTTPError as e:
            raise GenerationFailed(f"Network error communicating with Replicate: {e}")

        if response.is_error:
            logger.error(f"Replicate account check failed: {response.status_code} {response.text}")
            raise classify_response(response.status_code, response.text, self.name, stage="account check")
        return response.json()

    def _image_reference(self, source: SourceImage) -> str:
        if not self.settings.replicate_resize_source:
            return source.url
        square = prepare_square(source.content, self.settings.source_image_size)
        return f"data:image/png;base64,{base64.b64encode(square).decode('utf-8')}"

    async def submit(self, source: SourceImage, positive_prompt: str, negative_prompt: str) -> str:
        """prediction 생성 후 상태 확인 URL 반환"""
        s = self.settings
        payload = {
            "version": s.replicate_model_version.split(":")[-1],
            "input": {
                "image": self._image_reference(source),
                "prompt": positive_prompt,
                "guidance_scale": s.replicate_guidance_scale,
                "negative_prompt": negative_prompt,
                "prompt_strength": s.replicate_prompt_strength,
                "num_inference_steps": s.replicate_inference_steps,
            },
        }

        logger.info("Creating Replicate prediction...")
        try:
            response = await self.client.post(self._url("/v1/predictions"), headers=self._headers(), json=payload)
        except httpx.HTTPError as e:
            raise GenerationFailed(f"Network error communicating with Replicate: {e}")

        if response.is_error:
            logger.error(f"Replicate API failed: {response.status_code} - {response.text}")
            raise classify_response(response.status_code, response.text, self.name)

        prediction = response.json()
        status_url = (prediction.get("urls") or {}).get("get")
        if not prediction.get("id") or not status_url:
            logger.error(f"Unexpected Replicate response structure: {prediction}")
            raise GenerationFailed("Replicate API returned unexpected response format")

        logger.info(f"Replicate prediction created: {prediction['id']}")
        return status_url

    async def wait_for_output(self, status_url: str) -> str:
        """terminal 상태까지 polling, 성공 시 output URL 반환"""
        expires_at = self.clock() + self.deadline
        for attempt in range(1, self.max_attempts + 1):
            if self.clock() >= expires_at:
                raise GenerationTimeout(
                    f"Replicate generation did not finish within {self.deadline:.0f}s "
                    f"({attempt - 1} status checks)"
                )
            try:
                response = await self.client.get(status_url, headers=self._headers(), timeout=self.poll_timeout)
            except httpx.HTTPError as e:
                raise GenerationFailed(f"Network error while polling Replicate: {e}")
            if response.is_error:
                raise classify_response(response.status_code, response.text, self.name, stage="status check")

            prediction = response.json()
            status = prediction.get("status")
            logger.info(f"Replicate prediction status: {status} (poll {attempt}/{self.max_attempts})")

            if status == "succeeded":
                output = prediction.get("output")
                if isinstance(output, list):
                    output = output[0] if output else None
                if not is_absolute_url(output):
                    raise InvalidOutputReference(f"Replicate returned an invalid output reference: {output!r}")
                return output

            if status in TERMINAL_FAILURES:
                error_msg = prediction.get("error") or "Unknown error"
                raise GenerationFailed(f"Replicate prediction {status}: {error_msg}", body=str(error_msg))

            if attempt < self.max_attempts:
                await self.sleep(self.poll_interval)

        raise GenerationTimeout(
            f"Replicate generation did not finish after {self.max_attempts} status checks "
            f"({self.max_attempts * self.poll_interval:.0f}s)"
        )

    async def download(self, output_url: str) -> bytes:
        try:
            response = await self.client.get(output_url, follow_redirects=True)
        except httpx.HTTPError as e:
            raise OutputDownloadFailed(f"Failed to download generated image: {e}")

        if response.is_error or not response.content:
            raise OutputDownloadFailed(f"Failed to download generated image from Replicate: {response.status_code}")
        return response.content

    async def generate(self, source: SourceImage, positive_prompt: str, negative_prompt: str) -> bytes:
        status_url = await self.submit(source, positive_prompt, negative_prompt)
        output_url = await self.wait_for_output(status_url)
        image_bytes = await self.download(output_url)
        logger.info(f"Replicate generation completed ({len(image_bytes)} bytes)")
        return image_bytes
