"""원본 이미지 다운로드 및 전처리"""
from io import BytesIO

import httpx
from PIL import Image, ImageOps, UnidentifiedImageError

from .errors import UpstreamFetchError
from ..utils.logger import logger


class ImageFetcher:
    """URL에서 원본 이미지를 가져온다 (재시도 없음)"""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def fetch(self, url: str) -> bytes:
        logger.info(f"Downloading original image: {url}")
        try:
            response = await self.client.get(url, follow_redirects=True)
        except httpx.HTTPError as e:
            raise UpstreamFetchError(f"Failed to fetch original image: {e}")

        if response.is_error:
            logger.error(f"Failed to fetch image: {response.status_code} {response.reason_phrase}")
            raise UpstreamFetchError(
                f"Failed to fetch original image: {response.status_code} {response.reason_phrase}",
                upstream_status=response.status_code,
            )

        logger.info(f"Downloaded original image, size: {len(response.content)} bytes")
        return response.content


def prepare_square(image_bytes: bytes, size: int = 1024) -> bytes:
    """가운데 기준 cover 크롭 후 size x size PNG로 인코딩"""
    try:
        source = Image.open(BytesIO(image_bytes))
    except UnidentifiedImageError:
        raise UpstreamFetchError("Original image could not be decoded as an image.")

    with source as img:
        img = ImageOps.exif_transpose(img)
        if img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGB")
        fitted = ImageOps.fit(img, (size, size), method=Image.Resampling.LANCZOS)
        buffer = BytesIO()
        fitted.save(buffer, format="PNG")
    return buffer.getvalue()
