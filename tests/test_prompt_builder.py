"""Tests for the style catalog and prompt builder."""

import pytest

from restyler.services.prompt_builder import NEGATIVE_PROMPT, STRUCTURE_CLAUSE, build_prompts
from restyler.services.styles import STYLE_PROMPTS, list_styles, style_description


def test_catalog_has_ten_styles() -> None:
    assert len(STYLE_PROMPTS) == 10
    assert "Art Deco" in STYLE_PROMPTS


def test_catalog_is_read_only() -> None:
    with pytest.raises(TypeError):
        STYLE_PROMPTS["Gothic"] = "Gothic style"


@pytest.mark.parametrize("style", list(STYLE_PROMPTS))
def test_known_style_prompt_embeds_description(style: str) -> None:
    prompts = build_prompts(style)

    assert prompts.positive
    assert STYLE_PROMPTS[style] in prompts.positive
    assert STRUCTURE_CLAUSE in prompts.positive
    assert "Do not change walls, windows, or structure." in prompts.positive


def test_unknown_style_falls_back_to_generic_phrase() -> None:
    prompts = build_prompts("Cyberpunk")

    assert "Cyberpunk style" in prompts.positive
    assert STRUCTURE_CLAUSE in prompts.positive
    assert style_description("Cyberpunk") == "Cyberpunk style"


def test_negative_prompt_discourages_layout_changes_and_blur() -> None:
    prompts = build_prompts("Modern")

    assert prompts.negative == NEGATIVE_PROMPT
    assert "changing room layout" in prompts.negative
    assert "blurry" in prompts.negative
    assert "cartoon" in prompts.negative


def test_list_styles_strips_style_prefix() -> None:
    styles = {s.name: s for s in list_styles()}

    assert styles["Art Deco"].id == "art-deco"
    assert styles["Modern"].description.startswith("Sleek furniture")
