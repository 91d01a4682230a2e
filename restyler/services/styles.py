"""인테리어 스타일 카탈로그"""
from types import MappingProxyType
from typing import List

from ..models.schemas import StyleOption


# 프로세스 시작 시 한 번 로드되는 읽기 전용 테이블
STYLE_PROMPTS = MappingProxyType({
    "Scandinavian": "Scandinavian style: Light wood furniture, minimal decor, neutral colors (whites, grays, beiges), natural materials, clean lines, functional design, lots of natural light, cozy hygge elements, simple geometric patterns, natural textures like wool and linen",
    "Modern": "Modern style: Sleek furniture, geometric shapes, neutral color palette, clean lines, minimal clutter, open spaces, contemporary art, statement lighting, smooth surfaces, bold accents, technology integration",
    "Bohemian": "Bohemian style: Eclectic mix of patterns and textures, warm earthy colors, layered textiles, vintage furniture, plants, artistic elements, free-spirited and creative atmosphere, global influences, handmade items, rich jewel tones",
    "Rustic": "Rustic style: Natural wood elements, stone features, warm earth tones, vintage or distressed furniture, cozy textiles, natural materials, exposed beams, farmhouse charm, comfortable and inviting atmosphere, traditional craftsmanship",
    "Industrial": "Industrial style: Exposed brick walls, metal fixtures, raw materials, neutral color palette, vintage machinery elements, open ductwork, concrete floors, leather furniture, Edison bulbs, urban warehouse aesthetic",
    "Minimalist": "Minimalist style: Clean lines, uncluttered spaces, neutral color palette, functional furniture, hidden storage, simple geometric shapes, natural light, quality over quantity, zen-like atmosphere, essential items only",
    "Traditional": "Traditional style: Classic furniture, rich fabrics, warm color palette, ornate details, symmetry, formal arrangement, antique pieces, elegant lighting, sophisticated patterns, timeless elegance",
    "Contemporary": "Contemporary style: Current design trends, clean lines, neutral colors with bold accents, open floor plans, natural materials, large windows, comfortable yet sophisticated, current technology integration",
    "Art Deco": "Art Deco style: Geometric patterns, bold colors, luxurious materials, symmetrical designs, metallic accents, glamorous lighting, rich textures, sophisticated elegance, 1920s-1930s aesthetic, statement pieces",
    "Mediterranean": "Mediterranean style: Warm earth tones, terracotta tiles, wrought iron details, natural stone, arched doorways, rustic furniture, vibrant colors, outdoor-indoor living, coastal influences, relaxed elegance",
})


def style_description(style: str) -> str:
    """알 수 없는 스타일은 '<style> style' 문구로 대체"""
    return STYLE_PROMPTS.get(style, f"{style} style")


def list_styles() -> List[StyleOption]:
    """API 응답용 스타일 목록"""
    return [
        StyleOption(
            id=name.lower().replace(" ", "-"),
            name=name,
            description=description.split(": ", 1)[-1],
        )
        for name, description in STYLE_PROMPTS.items()
    ]
