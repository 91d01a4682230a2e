"""방 이미지 변환 파이프라인

프롬프트 구성 -> 원본 다운로드 -> 이미지 생성 -> 스토리지 업로드 -> 방 레코드 갱신.
첫 실패에서 중단하고 분류된 결과를 반환한다. 중간 실패 시 정리 작업은 하지 않는다.
"""
import asyncio
from typing import Optional

import httpx

from ..config import Settings
from ..models.schemas import TransformResult
from .database import PostgrestClient
from .errors import ConfigurationError, MissingParameter, TransformError, UnexpectedError
from .generation import PROVIDER_CREDENTIALS, GenerationProvider, SleepFunc, SourceImage, create_provider
from .image_fetcher import ImageFetcher
from .prompt_builder import build_prompts
from .records import RoomRecordUpdater
from .storage import StoragePublisher, SupabaseStorage
from ..utils.logger import logger, mask_secret


SUCCESS_MESSAGE = "Room transformation completed successfully"


def validate_request(image_url: Optional[str], interior_style: Optional[str], room_id: Optional[str]) -> None:
    missing = [
        name for name, value in (
            ("imageUrl", image_url),
            ("interiorStyle", interior_style),
            ("roomId", room_id),
        )
        if not value
    ]
    if missing:
        raise MissingParameter(
            "Missing required parameters: imageUrl, interiorStyle, and roomId are required "
            f"(missing: {', '.join(missing)})"
        )


def validate_configuration(settings: Settings) -> None:
    """네트워크 호출 전에 필수 설정 확인"""
    provider = settings.generation_provider.lower()
    if provider not in PROVIDER_CREDENTIALS:
        raise ConfigurationError(
            f"Unknown generation provider: {settings.generation_provider}",
            hint=f"Set GENERATION_PROVIDER to one of: {', '.join(PROVIDER_CREDENTIALS)}",
        )

    field, env_name = PROVIDER_CREDENTIALS[provider]
    logger.info("Environment variables status:")
    logger.info(f"- {env_name}: {mask_secret(getattr(settings, field))}")
    logger.info(f"- SB_URL: {'SET' if settings.supabase_url else 'NOT SET'}")
    logger.info(f"- SB_SERVICE_ROLE_KEY: {'SET' if settings.supabase_service_role_key else 'NOT SET'}")

    if not getattr(settings, field):
        raise ConfigurationError(
            f"{env_name} is not configured.",
            hint=(
                f"IMPORTANT: You must set {env_name} as a deployment SECRET, not just a plain "
                "environment variable, then redeploy the service."
            ),
            setup_instructions={
                "step1": f"Create an API key in your {provider} account dashboard",
                "step2": f'Store it as a secret: {env_name}="your-key-here"',
                "step3": "Redeploy the service so the secret is picked up",
                "step4": "Call GET /api/test-stability to confirm the key works",
            },
        )
    if not settings.supabase_url:
        raise ConfigurationError(
            "Supabase URL not configured. Please set SB_URL as a secret.",
            hint='Set the secret SB_URL="https://<project>.supabase.co"',
            setup_instructions={
                "step1": "Open your Supabase project settings and copy the Project URL",
                "step2": 'Store it as a secret: SB_URL="https://<project>.supabase.co"',
                "step3": "Redeploy the service so the secret is picked up",
            },
        )
    if not settings.supabase_service_role_key:
        raise ConfigurationError(
            "Supabase service role key not configured. Please set SB_SERVICE_ROLE_KEY as a secret.",
            hint='Set the secret SB_SERVICE_ROLE_KEY="your-service-role-key"',
            setup_instructions={
                "step1": "Open your Supabase project API settings and copy the service_role key",
                "step2": 'Store it as a secret: SB_SERVICE_ROLE_KEY="your-service-role-key"',
                "step3": "Redeploy the service so the secret is picked up",
            },
        )


def failure_result(error: TransformError) -> TransformResult:
    return TransformResult(
        success=False,
        error_kind=error.kind,
        message=error.message,
        hint=error.hint,
        setup_instructions=error.setup_instructions,
        status_code=error.status_code,
    )


class TransformPipeline:
    """한 번의 요청 = 한 번의 독립 실행 (공유 상태 없음)"""

    def __init__(
        self,
        settings: Settings,
        fetcher: ImageFetcher,
        provider: GenerationProvider,
        publisher: StoragePublisher,
        updater: RoomRecordUpdater,
    ):
        self.settings = settings
        self.fetcher = fetcher
        self.provider = provider
        self.publisher = publisher
        self.updater = updater

    async def transform(
        self,
        image_url: Optional[str],
        interior_style: Optional[str],
        room_id: Optional[str],
    ) -> TransformResult:
        try:
            validate_request(image_url, interior_style, room_id)
            validate_configuration(self.settings)
            return await self._run(image_url, interior_style, room_id)
        except TransformError as e:
            logger.error(f"Transform failed for room {room_id}: {e.kind}: {e.message}")
            return failure_result(e)
        except Exception as e:
            logger.error(f"Transform room error: {type(e).__name__}: {str(e)}", exc_info=True)
            return failure_result(UnexpectedError(
                str(e),
                hint="Please check the service logs for more details. If the issue persists, "
                     "verify your generation backend account status.",
            ))

    async def _run(self, image_url: str, interior_style: str, room_id: str) -> TransformResult:
        logger.info(f"Starting room transformation for room: {room_id} (style: {interior_style})")

        prompts = build_prompts(interior_style)
        content = await self.fetcher.fetch(image_url)
        output = await self.provider.generate(
            SourceImage(url=image_url, content=content),
            prompts.positive,
            prompts.negative,
        )

        public_url = await self.publisher.publish_transformed(output, room_id)
        try:
            await self.updater.record_transformation(room_id, public_url, interior_style)
        except Exception:
            logger.warning(f"Orphaned upload, needs manual cleanup: {public_url}")
            raise

        logger.info(f"Room transformation completed successfully for room: {room_id}")
        return TransformResult(
            success=True,
            transformed_image_url=public_url,
            interior_style=interior_style,
            room_id=room_id,
            message=SUCCESS_MESSAGE,
        )


def build_pipeline(
    settings: Settings,
    client: httpx.AsyncClient,
    sleep: SleepFunc = asyncio.sleep,
) -> TransformPipeline:
    """설정으로부터 파이프라인 구성 (알 수 없는 provider는 transform 시점에 ConfigurationError)"""
    try:
        provider = create_provider(settings, client, sleep=sleep)
    except ValueError:
        provider = None

    storage = SupabaseStorage(
        client,
        settings.supabase_url,
        settings.supabase_service_role_key,
        settings.storage_bucket,
    )
    db = PostgrestClient(client, settings.supabase_url, settings.supabase_service_role_key)
    return TransformPipeline(
        settings=settings,
        fetcher=ImageFetcher(client),
        provider=provider,
        publisher=StoragePublisher(storage, cache_control=settings.storage_cache_control),
        updater=RoomRecordUpdater(db),
    )
