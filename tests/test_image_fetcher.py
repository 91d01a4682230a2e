"""Tests for source image retrieval and square preprocessing."""

import io

import pytest
from PIL import Image

from restyler.services.errors import UpstreamFetchError
from restyler.services.image_fetcher import ImageFetcher, prepare_square

from .conftest import SOURCE_IMAGE_URL, make_image_bytes


@pytest.mark.asyncio
async def test_fetch_returns_raw_bytes(backend, http_client) -> None:
    content = await ImageFetcher(http_client).fetch(SOURCE_IMAGE_URL)

    assert content == backend.source_bytes


@pytest.mark.asyncio
async def test_fetch_raises_with_status_code(backend, http_client) -> None:
    backend.source_status = 404

    with pytest.raises(UpstreamFetchError) as exc_info:
        await ImageFetcher(http_client).fetch(SOURCE_IMAGE_URL)

    assert exc_info.value.upstream_status == 404
    assert len(backend.requests_to("images.test")) == 1


def test_prepare_square_crops_to_png() -> None:
    result = prepare_square(make_image_bytes((800, 300)), size=256)

    with Image.open(io.BytesIO(result)) as img:
        assert img.format == "PNG"
        assert img.size == (256, 256)


def test_prepare_square_is_deterministic() -> None:
    source = make_image_bytes((300, 500), "olive")

    assert prepare_square(source, 128) == prepare_square(source, 128)


def test_prepare_square_rejects_non_images() -> None:
    with pytest.raises(UpstreamFetchError):
        prepare_square(b"<html>not an image</html>")
