"""라우터 의존성"""
from typing import Optional

import httpx
from fastapi import Depends, HTTPException

from ..config import Settings, settings
from ..services.database import FlatRepository, PostgrestClient
from ..services.generation import GenerationProvider, create_provider
from ..services.http_client import get_http_client
from ..services.pipeline import TransformPipeline, build_pipeline
from ..services.storage import StoragePublisher, SupabaseStorage


def get_settings() -> Settings:
    return settings


def get_pipeline(
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> TransformPipeline:
    return build_pipeline(settings, client)


def get_provider(
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> Optional[GenerationProvider]:
    try:
        return create_provider(settings, client)
    except ValueError:
        return None


def _require_supabase(settings: Settings) -> None:
    if not settings.supabase_url or not settings.supabase_service_role_key:
        raise HTTPException(
            status_code=500,
            detail="Supabase 설정이 없습니다. SB_URL과 SB_SERVICE_ROLE_KEY를 secret으로 등록하세요.",
        )


def get_repository(
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> FlatRepository:
    _require_supabase(settings)
    return FlatRepository(PostgrestClient(client, settings.supabase_url, settings.supabase_service_role_key))


def get_publisher(
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> StoragePublisher:
    _require_supabase(settings)
    storage = SupabaseStorage(
        client,
        settings.supabase_url,
        settings.supabase_service_role_key,
        settings.storage_bucket,
    )
    return StoragePublisher(storage, cache_control=settings.storage_cache_control)
