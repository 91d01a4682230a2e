"""Supabase Storage 업로드 및 공개 URL"""
import time
from typing import Callable

import httpx

from .errors import StorageUploadError
from ..utils.logger import logger


class SupabaseStorage:
    """Storage REST API 얇은 래퍼 (버킷 하나)"""

    def __init__(self, client: httpx.AsyncClient, base_url: str, service_key: str, bucket: str):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self.bucket = bucket

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
        }

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{path}"

    async def upload(
        self,
        path: str,
        content: bytes,
        content_type: str,
        upsert: bool = False,
        cache_control: str = "3600",
    ) -> str:
        headers = {
            **self._headers(),
            "Content-Type": content_type,
            "x-upsert": "true" if upsert else "false",
            "cache-control": f"max-age={cache_control}",
        }
        url = f"{self.base_url}/storage/v1/object/{self.bucket}/{path}"
        try:
            response = await self.client.post(url, headers=headers, content=content)
        except httpx.HTTPError as e:
            raise StorageUploadError(f"Failed to upload image: {e}")

        if response.is_error:
            raise StorageUploadError(f"Failed to upload image: {_error_message(response)}")
        return path


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"{response.status_code} {response.text}"
    if isinstance(body, dict):
        return body.get("message") or body.get("error") or str(body)
    return str(body)


class StoragePublisher:
    """{kind}/{kind}_{roomId}_{epochMillis}.{ext} 경로로 업로드"""

    def __init__(self, storage: SupabaseStorage, cache_control: str = "3600", clock: Callable[[], float] = time.time):
        self.storage = storage
        self.cache_control = cache_control
        self.clock = clock

    def build_path(self, kind: str, room_id: str, ext: str) -> str:
        millis = int(self.clock() * 1000)
        return f"{kind}/{kind}_{room_id}_{millis}.{ext.lstrip('.')}"

    async def publish_transformed(self, image_bytes: bytes, room_id: str) -> str:
        """생성 이미지 업로드 (이전 결과는 삭제하지 않음)"""
        path = self.build_path("transformed", room_id, "png")
        await self.storage.upload(
            path,
            image_bytes,
            content_type="image/png",
            upsert=True,
            cache_control=self.cache_control,
        )
        logger.info(f"Image uploaded successfully to: {path}")
        return self.storage.public_url(path)

    async def publish_original(self, image_bytes: bytes, room_id: str, ext: str, content_type: str) -> str:
        path = self.build_path("original", room_id, ext)
        await self.storage.upload(
            path,
            image_bytes,
            content_type=content_type,
            upsert=False,
            cache_control=self.cache_control,
        )
        logger.info(f"Original image uploaded to: {path}")
        return self.storage.public_url(path)
