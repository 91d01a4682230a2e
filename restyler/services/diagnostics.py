"""생성 백엔드 자격 증명 진단 (실제 변환 없이 키/크레딧 확인)"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from ..config import Settings
from .errors import InsufficientQuota, InvalidCredential, RateLimited, TransformError
from .generation import PROVIDER_CREDENTIALS, GenerationProvider
from .stability_provider import StabilityProvider
from ..utils.logger import logger


ERROR_TYPES = {
    InvalidCredential: "invalid_key",
    InsufficientQuota: "insufficient_credits",
    RateLimited: "rate_limit",
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def check_generation_backend(settings: Settings, provider: Optional[GenerationProvider]) -> Dict[str, Any]:
    """항상 dict를 반환 (호출자가 오류 내용을 읽을 수 있도록)"""
    env_name = PROVIDER_CREDENTIALS.get(settings.generation_provider.lower(), ("", "GENERATION_PROVIDER"))[1]

    if provider is None or not provider.api_key:
        return {
            "success": False,
            "error": f"{env_name} not configured",
            "type": "configuration",
            "timestamp": _now(),
            "hint": f"Add {env_name} to the deployment secrets and redeploy.",
        }

    logger.info(f"Testing {provider.name} API configuration...")
    try:
        account = await provider.check_account()
    except TransformError as e:
        return {
            "success": False,
            "error": e.message,
            "type": ERROR_TYPES.get(type(e), "api_error"),
            "timestamp": _now(),
            "hint": e.hint,
            "debugInfo": {"apiKeyPrefix": provider.api_key[:8] + "..."},
        }

    engines_info = "Not applicable"
    engines_status = "Skipped"
    if isinstance(provider, StabilityProvider):
        try:
            engines = await provider.list_engines()
            engines_info = f"{len(engines)} engines available"
            engines_status = "OK"
        except httpx.HTTPError as e:
            logger.warning(f"Engines endpoint failed: {e}")
            engines_info = "Unable to fetch engines"
            engines_status = "Failed"

    return {
        "success": True,
        "message": f"{provider.name} API is properly configured and accessible",
        "accountInfo": {
            "credits": account.get("credits", "Unknown"),
            "engines": engines_info,
        },
        "timestamp": _now(),
        "debugInfo": {
            "apiKeyPrefix": provider.api_key[:8] + "...",
            "accountEndpoint": "OK",
            "enginesEndpoint": engines_status,
        },
    }
