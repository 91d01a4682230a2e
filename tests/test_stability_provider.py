"""Tests for the synchronous multipart backend."""

import pytest

from restyler.services.errors import EmptyResult, GenerationFailed, InsufficientQuota, InvalidCredential, RateLimited
from restyler.services.generation import SourceImage, create_provider
from restyler.services.stability_provider import StabilityProvider

from .conftest import SOURCE_IMAGE_URL


@pytest.fixture
def provider(settings, http_client) -> StabilityProvider:
    return StabilityProvider(settings, http_client)


@pytest.fixture
def source(backend) -> SourceImage:
    return SourceImage(url=SOURCE_IMAGE_URL, content=backend.source_bytes)


def test_factory_selects_stability(settings, http_client) -> None:
    assert isinstance(create_provider(settings, http_client), StabilityProvider)


@pytest.mark.asyncio
async def test_generate_returns_first_artifact(provider, source, backend) -> None:
    result = await provider.generate(source, "positive prompt", "negative prompt")

    assert result == backend.generated_bytes


@pytest.mark.asyncio
async def test_generate_sends_expected_form(provider, source, backend) -> None:
    await provider.generate(source, "positive prompt", "negative prompt")

    request = backend.requests_to("api.stability.ai", "POST")[0]
    body = request.read()
    assert request.url.path == "/v1/generation/stable-diffusion-xl-1024-v1-0/image-to-image"
    assert request.headers["Authorization"] == "Bearer sk-test-stability-key"
    assert request.headers["Content-Type"].startswith("multipart/form-data")
    for field, value in [
        (b'name="sampler"', b"K_DPMPP_2M"),
        (b'name="text_prompts[0][weight]"', b"1"),
        (b'name="text_prompts[1][weight]"', b"-1"),
        (b'name="image_strength"', b"0.35"),
        (b'name="cfg_scale"', b"11.0"),
        (b'name="samples"', b"1"),
        (b'name="steps"', b"30"),
    ]:
        assert field in body
        assert value in body
    assert b'name="init_image"; filename="init.png"' in body
    assert b"positive prompt" in body and b"negative prompt" in body


@pytest.mark.asyncio
async def test_account_is_checked_before_generation(provider, source, backend) -> None:
    await provider.generate(source, "p", "n")

    paths = [r.url.path for r in backend.requests_to("api.stability.ai")]
    assert paths[0] == "/v1/user/account"
    assert paths[1].endswith("/image-to-image")


@pytest.mark.parametrize(
    "status, expected",
    [(401, InvalidCredential), (402, InsufficientQuota), (429, RateLimited)],
)
@pytest.mark.asyncio
async def test_preflight_failure_skips_generation(provider, source, backend, status, expected) -> None:
    backend.account_status = status

    with pytest.raises(expected):
        await provider.generate(source, "p", "n")

    assert backend.requests_to("api.stability.ai", "POST") == []


@pytest.mark.asyncio
async def test_generation_error_carries_status_and_body(provider, source, backend) -> None:
    backend.generation_status = 500

    with pytest.raises(GenerationFailed) as exc_info:
        await provider.generate(source, "p", "n")

    assert exc_info.value.upstream_status == 500
    assert exc_info.value.body == "generation problem"


@pytest.mark.asyncio
async def test_generation_402_maps_to_quota(provider, source, backend) -> None:
    backend.generation_status = 402

    with pytest.raises(InsufficientQuota):
        await provider.generate(source, "p", "n")


@pytest.mark.asyncio
async def test_empty_artifacts_raise_empty_result(provider, source, backend) -> None:
    backend.artifacts = []

    with pytest.raises(EmptyResult):
        await provider.generate(source, "p", "n")


@pytest.mark.asyncio
async def test_custom_defaults_are_sent(settings, http_client, source, backend) -> None:
    tuned = settings.model_copy(update={"stability_cfg_scale": 7.0, "stability_image_strength": 0.5})
    await StabilityProvider(tuned, http_client).generate(source, "p", "n")

    body = backend.requests_to("api.stability.ai", "POST")[0].read()
    assert b"7.0" in body
    assert b"0.5" in body


@pytest.mark.asyncio
async def test_list_engines(provider) -> None:
    engines = await provider.list_engines()

    assert len(engines) == 2
