from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import flats, transform
from .config import settings
from .services.http_client import close_http_client
from .utils.logger import logger, mask_secret

logger.info(f"Starting {settings.app_name} v{settings.app_version}")

# FastAPI 앱 생성
app = FastAPI(
    title=settings.app_name,
    description="방 사진 인테리어 스타일 변환 API",
    version=settings.app_version,
    debug=settings.debug
)

# CORS 설정 (환경변수 기반)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger.info(f"CORS enabled for origins: {settings.cors_origins}")

# 라우터 등록
app.include_router(transform.router)
app.include_router(flats.router)


@app.get("/health")
async def health_check():
    """헬스 체크 및 시스템 상태"""
    return {
        "status": "healthy",
        "version": settings.app_version,
        "generation_provider": settings.generation_provider,
        "stability_api_key_configured": bool(settings.stability_api_key),
        "replicate_api_token_configured": bool(settings.replicate_api_token),
        "supabase_configured": bool(settings.supabase_url and settings.supabase_service_role_key),
        "config": {
            "max_upload_size_mb": settings.max_upload_size_mb,
            "timeout_seconds": settings.http_timeout_seconds,
            "poll_interval_seconds": settings.replicate_poll_interval_seconds,
            "poll_max_attempts": settings.replicate_poll_max_attempts,
        }
    }


@app.on_event("startup")
async def startup_event():
    """애플리케이션 시작 시 실행"""
    logger.info("="*50)
    logger.info("Application startup")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"Generation provider: {settings.generation_provider}")
    logger.info(f"STABILITY_API_KEY: {mask_secret(settings.stability_api_key)}")
    logger.info(f"REPLICATE_API_TOKEN: {mask_secret(settings.replicate_api_token)}")
    logger.info(f"Max upload size: {settings.max_upload_size_mb}MB")
    logger.info("="*50)


@app.on_event("shutdown")
async def shutdown_event():
    """애플리케이션 종료 시 실행"""
    await close_http_client()
    logger.info("Application shutdown")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )
