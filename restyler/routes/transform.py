from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError

from ..config import Settings
from ..models.schemas import StyleOption, TransformRequest, TransformResult
from ..services.diagnostics import check_generation_backend
from ..services.generation import GenerationProvider
from ..services.pipeline import TransformPipeline
from ..services.styles import list_styles
from ..utils.logger import logger
from .deps import get_pipeline, get_provider, get_settings

router = APIRouter(prefix="/api", tags=["transform"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


def render_result(result: TransformResult) -> JSONResponse:
    """파이프라인 결과 -> HTTP 응답"""
    if result.success:
        content = {
            "success": True,
            "transformedImageUrl": result.transformed_image_url,
            "interiorStyle": result.interior_style,
            "roomId": result.room_id,
            "message": result.message,
            "creditsUsed": 1,
        }
        return JSONResponse(content=content, status_code=200, headers=CORS_HEADERS)

    content = {
        "success": False,
        "error": result.message,
        "errorKind": result.error_kind,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "hint": result.hint,
    }
    if result.setup_instructions:
        content["setupInstructions"] = result.setup_instructions
    return JSONResponse(content=content, status_code=result.status_code, headers=CORS_HEADERS)


async def _read_request(request: Request) -> TransformRequest:
    """본문이 비었거나 형식이 틀리면 빈 요청으로 취급 (MissingParameter로 처리됨)"""
    try:
        payload = await request.json()
    except ValueError:
        logger.warning("Transform request body is not valid JSON")
        return TransformRequest()

    if not isinstance(payload, dict):
        return TransformRequest()
    try:
        return TransformRequest.model_validate(payload)
    except ValidationError as e:
        invalid = {err["loc"][0] for err in e.errors() if err["loc"]}
        logger.warning(f"Invalid transform request fields: {', '.join(map(str, sorted(invalid, key=str)))}")

    # 형식이 틀린 필드만 버리고 나머지는 유지 (누락으로 보고됨)
    valid = {k: v for k, v in payload.items() if k not in invalid}
    try:
        return TransformRequest.model_validate(valid)
    except ValidationError:
        return TransformRequest()


@router.get("/styles", response_model=List[StyleOption])
async def get_styles():
    """사용 가능한 인테리어 스타일 목록 반환"""
    return list_styles()


@router.options("/transform-room")
async def transform_room_preflight():
    """CORS preflight"""
    return PlainTextResponse("ok", headers=CORS_HEADERS)


@router.post("/transform-room")
async def transform_room(request: Request, pipeline: TransformPipeline = Depends(get_pipeline)):
    """방 사진을 선택한 인테리어 스타일로 변환"""
    body = await _read_request(request)
    result = await pipeline.transform(body.image_url, body.interior_style, body.room_id)
    return render_result(result)


@router.api_route("/test-stability", methods=["GET", "POST"])
async def diagnose_generation_backend(
    settings: Settings = Depends(get_settings),
    provider: Optional[GenerationProvider] = Depends(get_provider),
):
    """생성 백엔드 키/크레딧 진단 (오류 내용도 200으로 반환)"""
    try:
        content = await check_generation_backend(settings, provider)
    except Exception as e:
        logger.error(f"Backend diagnostics error: {str(e)}", exc_info=True)
        content = {
            "success": False,
            "error": str(e),
            "type": "unexpected",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "hint": "An unexpected error occurred during testing. Check the service logs for more details.",
        }
    return JSONResponse(content=content, status_code=200, headers=CORS_HEADERS)
