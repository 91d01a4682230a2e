"""애플리케이션 설정"""
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """환경변수 기반 설정"""

    # API Keys (요청 시점에 검증하므로 기본값은 빈 문자열)
    stability_api_key: str = ""
    replicate_api_token: str = ""

    # Supabase
    supabase_url: str = Field(
        default="",
        validation_alias=AliasChoices("sb_url", "supabase_url"),
    )
    supabase_service_role_key: str = Field(
        default="",
        validation_alias=AliasChoices("sb_service_role_key", "supabase_service_role_key"),
    )
    storage_bucket: str = "room-images"
    storage_cache_control: str = "3600"

    # Application
    app_name: str = "Room Restyler API"
    app_version: str = "1.0.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS
    cors_origins: List[str] = ["*"]

    # File Upload
    max_upload_size_mb: int = 10
    allowed_extensions: List[str] = [".jpg", ".jpeg", ".png", ".webp"]

    # Generation backend: "stability" 또는 "replicate"
    generation_provider: str = "stability"
    http_timeout_seconds: float = 60.0

    # Stability AI (동기 multipart)
    stability_base_url: str = "https://api.stability.ai"
    stability_engine: str = "stable-diffusion-xl-1024-v1-0"
    stability_sampler: str = "K_DPMPP_2M"
    stability_image_strength: float = 0.35  # 낮을수록 원본 구조 유지
    stability_cfg_scale: float = 11.0
    stability_steps: int = 30
    source_image_size: int = 1024

    # Replicate (비동기 poll)
    replicate_base_url: str = "https://api.replicate.com"
    replicate_model_version: str = "stability-ai/sdxl:7762fd07cf82c948538e41f63f77d685e02b063e37e496e96eefd46c929f9bdc"
    replicate_guidance_scale: float = 7.5
    replicate_prompt_strength: float = 0.8
    replicate_inference_steps: int = 50
    replicate_poll_interval_seconds: float = 2.0
    replicate_poll_max_attempts: int = 60
    replicate_poll_timeout_seconds: float = 30.0
    replicate_poll_deadline_seconds: float = 300.0  # polling 전체 상한
    replicate_resize_source: bool = False

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False
        populate_by_name = True


# 전역 설정 인스턴스
settings = Settings()
