"""변환 파이프라인 오류 분류

모든 외부 호출 실패는 TransformError 하위 클래스로 올라오고,
파이프라인 경계에서 구조화된 결과로 바뀐다.
"""
from typing import Dict, Optional


CREDITS_URLS = {
    "stability": "https://platform.stability.ai/account/credits",
    "replicate": "https://replicate.com/account/billing",
}
KEYS_URLS = {
    "stability": "https://platform.stability.ai/account/keys",
    "replicate": "https://replicate.com/account/api-tokens",
}
PROVIDER_NAMES = {
    "stability": "Stability AI",
    "replicate": "Replicate",
}


class TransformError(Exception):
    """분류된 파이프라인 오류의 기반 클래스"""

    kind = "UnexpectedError"
    status_code = 500
    default_hint = "Please check the service logs for more details."

    def __init__(
        self,
        message: str,
        hint: Optional[str] = None,
        setup_instructions: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint or self.default_hint
        self.setup_instructions = setup_instructions


class MissingParameter(TransformError):
    kind = "MissingParameter"
    status_code = 400
    default_hint = "Send imageUrl, interiorStyle and roomId in the JSON body."


class ConfigurationError(TransformError):
    kind = "ConfigurationError"
    default_hint = "Set the missing value as a deployment secret, not a plain environment variable, then redeploy."


class UpstreamFetchError(TransformError):
    kind = "UpstreamFetchError"
    status_code = 400
    default_hint = "Make sure the original image URL is public and still exists."

    def __init__(self, message: str, upstream_status: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.upstream_status = upstream_status


class InvalidCredential(TransformError):
    kind = "InvalidCredential"


class InsufficientQuota(TransformError):
    kind = "InsufficientQuota"


class RateLimited(TransformError):
    kind = "RateLimited"
    default_hint = "Wait a few minutes before trying again."


class GenerationFailed(TransformError):
    kind = "GenerationFailed"
    default_hint = "Please try again or contact support if the issue persists."

    def __init__(self, message: str, upstream_status: Optional[int] = None, body: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.upstream_status = upstream_status
        self.body = body


class GenerationTimeout(TransformError):
    kind = "GenerationTimeout"
    default_hint = "The generation backend is busy. Try again in a few minutes."


class InvalidOutputReference(TransformError):
    kind = "InvalidOutputReference"
    default_hint = "The generation backend returned an unusable result. Try again."


class OutputDownloadFailed(TransformError):
    kind = "OutputDownloadFailed"
    default_hint = "The generated image could not be downloaded. Try again."


class EmptyResult(TransformError):
    kind = "EmptyResult"
    default_hint = "Try again with a different image or style."


class StorageUploadError(TransformError):
    kind = "StorageUploadError"
    default_hint = "Check that the storage bucket exists and the service role key can write to it."


class RecordUpdateError(TransformError):
    kind = "RecordUpdateError"
    default_hint = "Check that the room still exists and the service role key can update it."


class UnexpectedError(TransformError):
    kind = "UnexpectedError"


def classify_response(
    status_code: int,
    body: str,
    provider: str,
    stage: str = "generation",
) -> TransformError:
    """백엔드 HTTP 응답 코드를 오류 분류로 매핑"""
    name = PROVIDER_NAMES.get(provider, provider)

    if status_code == 401:
        return InvalidCredential(
            f"Invalid {name} API key. The key is not valid or has been revoked.",
            hint=f"Please verify your API key at {KEYS_URLS.get(provider, name)}",
        )
    if status_code == 403:
        return InvalidCredential(
            f"Access forbidden. Your {name} API key may not have the required permissions.",
            hint=f"Check your API key permissions at {KEYS_URLS.get(provider, name)}",
        )
    if status_code == 402:
        return InsufficientQuota(
            f"Insufficient credits in your {name} account.",
            hint=f"Please add credits to your {name} account at {CREDITS_URLS.get(provider, name)}",
        )
    if status_code == 429:
        return RateLimited(f"Rate limit exceeded. Too many requests to {name}.")
    if status_code == 400 and stage == "generation":
        return GenerationFailed(
            "Invalid request parameters for image generation.",
            upstream_status=status_code,
            body=body,
            hint="The image or parameters may be invalid. Try with a different image.",
        )

    return GenerationFailed(
        f"{name} {stage} error: {status_code} - {body}",
        upstream_status=status_code,
        body=body,
    )
