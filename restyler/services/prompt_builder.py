"""생성 프롬프트 구성"""
from dataclasses import dataclass

from .styles import style_description


STRUCTURE_CLAUSE = (
    "Keep the same layout, size, height, and perspective. "
    "Add realistic, accurate furniture and decor matching the style. "
    "Do not change walls, windows, or structure."
)

NEGATIVE_PROMPT = (
    "low resolution, painting, changing room layout, moving walls, changing windows, "
    "changing doors, changing room dimensions, changing architectural features, "
    "blurry, low quality, distorted, unrealistic, cartoon, painting, sketch"
)


@dataclass(frozen=True)
class PromptPair:
    positive: str
    negative: str


def build_prompts(style: str) -> PromptPair:
    """스타일 설명 + 구조 보존 문구로 positive/negative 프롬프트 생성"""
    positive = f"Recreate this room in {style_description(style)}. {STRUCTURE_CLAUSE}"
    return PromptPair(positive=positive, negative=NEGATIVE_PROMPT)
