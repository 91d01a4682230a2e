"""Stability AI image-to-image (동기 multipart)"""
import base64
import binascii
from typing import Any, Dict, List

import httpx

from .errors import EmptyResult, GenerationFailed, classify_response
from .generation import GenerationProvider, SourceImage
from .image_fetcher import prepare_square
from ..utils.logger import logger


class StabilityProvider(GenerationProvider):
    """계정 확인 후 multipart로 생성 요청, 첫 번째 artifact 반환"""

    name = "stability"

    @property
    def api_key(self) -> str:
        return self.settings.stability_api_key

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }

    def _url(self, path: str) -> str:
        return f"{self.settings.stability_base_url.rstrip('/')}{path}"

    async def check_account(self) -> Dict[str, Any]:
        logger.info("Testing Stability AI API key...")
        try:
            response = await self.client.get(self._url("/v1/user/account"), headers=self._headers())
        except httpx.HTTPError as e:
            raise GenerationFailed(f"Network error communicating with Stability AI: {e}")

        if response.is_error:
            logger.error(f"Stability AI account check failed: {response.status_code} {response.text}")
            raise classify_response(response.status_code, response.text, self.name, stage="account check")

        account = response.json()
        logger.info(f"Account validation successful. Credits available: {account.get('credits', 'Unknown')}")
        return account

    async def list_engines(self) -> List[Dict[str, Any]]:
        response = await self.client.get(self._url("/v1/engines/list"), headers=self._headers())
        response.raise_for_status()
        return response.json()

    def _form_fields(self, positive_prompt: str, negative_prompt: str) -> Dict[str, str]:
        s = self.settings
        return {
            "sampler": s.stability_sampler,
            "text_prompts[0][text]": positive_prompt,
            "text_prompts[0][weight]": "1",
            "text_prompts[1][text]": negative_prompt,
            "text_prompts[1][weight]": "-1",
            "init_image_mode": "IMAGE_STRENGTH",
            "image_strength": str(s.stability_image_strength),
            "cfg_scale": str(s.stability_cfg_scale),
            "samples": "1",
            "steps": str(s.stability_steps),
        }

    async def generate(self, source: SourceImage, positive_prompt: str, negative_prompt: str) -> bytes:
        # 생성 비용을 쓰기 전에 키/크레딧 확인
        await self.check_account()

        init_image = prepare_square(source.content, self.settings.source_image_size)
        url = self._url(f"/v1/generation/{self.settings.stability_engine}/image-to-image")

        logger.info("Calling Stability AI image-to-image API...")
        try:
            response = await self.client.post(
                url,
                headers=self._headers(),
                data=self._form_fields(positive_prompt, negative_prompt),
                files={"init_image": ("init.png", init_image, "image/png")},
            )
        except httpx.HTTPError as e:
            raise GenerationFailed(f"Network error communicating with Stability AI: {e}")

        if response.is_error:
            logger.error(f"Stability AI generation error: {response.status_code} {response.text}")
            raise classify_response(response.status_code, response.text, self.name)

        artifacts = response.json().get("artifacts") or []
        if not artifacts:
            logger.error("No artifacts in Stability AI response")
            raise EmptyResult("No image generated by Stability AI. The generation may have failed.")

        try:
            image_bytes = base64.b64decode(artifacts[0].get("base64") or "", validate=True)
        except binascii.Error:
            raise EmptyResult("Stability AI returned an artifact that is not valid base64.")
        if not image_bytes:
            raise EmptyResult("Stability AI returned an empty artifact.")

        logger.info(f"Stability AI generation completed ({len(image_bytes)} bytes)")
        return image_bytes
