"""
Instruction text sent with every gateway call.
Analysis: fixed instruction + response schema. Generation: scene blocks, product
context from the analysis and refinement turns appended verbatim.
"""
from __future__ import annotations

from studio.schemas.analysis import MarketAnalysis
from studio.schemas.generation import ChatTurn, ImageCategory, SceneParameters
from studio.services.prompts.catalog import (
    CATEGORY_PROMPTS,
    FINE_TUNE_PROMPTS,
    LIGHTING_PROMPTS,
    SCENARIO_PROMPTS,
    STYLE_PROMPTS,
)

ANALYSIS_INSTRUCTION = (
    "You are the lead visual director of an e-commerce studio. "
    "Analyze the product shown in the provided image(s); several images are "
    "different angles, details or packaging of the same product. "
    "Respond with pure JSON only (no markdown) containing: "
    "productType, targetAudience, sellingPoints (array), suggestedPrompt, "
    "recommendedCategories (array, values from: "
    + ", ".join(c.value for c in ImageCategory)
    + "), marketingCopy (object: title, shortDesc, tags), isApparel (boolean)."
)

ANALYSIS_RESPONSE_SCHEMA: dict = {
    "type": "OBJECT",
    "properties": {
        "productType": {"type": "STRING"},
        "targetAudience": {"type": "STRING"},
        "sellingPoints": {"type": "ARRAY", "items": {"type": "STRING"}},
        "suggestedPrompt": {"type": "STRING"},
        "recommendedCategories": {"type": "ARRAY", "items": {"type": "STRING"}},
        "marketingCopy": {
            "type": "OBJECT",
            "properties": {
                "title": {"type": "STRING"},
                "shortDesc": {"type": "STRING"},
                "tags": {"type": "ARRAY", "items": {"type": "STRING"}},
            },
        },
        "isApparel": {"type": "BOOLEAN"},
    },
    "required": ["productType", "targetAudience", "sellingPoints", "suggestedPrompt"],
}

_MANDATE = (
    "ROLE: AI product photography engine.\n"
    "MANDATE: Re-render the environment completely and erase the original background. "
    "Keep the product itself intact (shape, color, logo, proportions) and retain its 3D "
    "structure from the provided multi-angle references.\n"
    "LIGHTING: Re-calculate all shadows based on the new scene.\n"
    "QUALITY: Commercial product photography, photorealistic."
)


def _text_overlay_block(scene: SceneParameters) -> str:
    overlay = scene.text_overlay
    if overlay is None or overlay.is_empty:
        return "TEXT OVERLAY: none."
    lines = ["TEXT OVERLAY INSTRUCTIONS:"]
    if overlay.title.strip():
        lines.append(f'- Main title: "{overlay.title.strip()}" (bold commercial font, prominent position)')
    if overlay.detail.strip():
        lines.append(f'- Detail: "{overlay.detail.strip()}" (elegant sub-text, professional spacing)')
    return "\n".join(lines)


def _scene_block(scene: SceneParameters) -> str:
    if scene.scenario is None:
        return f"TARGET SCENE: {CATEGORY_PROMPTS[scene.category]}"
    who = (scene.model_nationality or "").strip() or "professional"
    rules = SCENARIO_PROMPTS[scene.scenario].format(model=who)
    return f"TARGET SCENARIO: {scene.scenario.value}\nSCENARIO RULES: {rules}"


def build_generation_prompt(
    scene: SceneParameters,
    analysis: MarketAnalysis,
    history: list[ChatTurn] | None = None,
) -> str:
    """Compose the image instruction; history turns are included as given."""
    technical = [FINE_TUNE_PROMPTS[t] for t in scene.fine_tunes]
    technical.append(LIGHTING_PROMPTS[scene.lighting])

    blocks = [
        _MANDATE,
        _scene_block(scene),
        f"VISUAL STYLE: {STYLE_PROMPTS[scene.style]}",
        f"ASPECT RATIO: {scene.aspect_ratio.value}",
        f"TECHNICAL: {', '.join(technical)}",
        f"CONTEXT: {analysis.product_type}, {', '.join(analysis.selling_points)}.",
    ]
    if analysis.suggested_prompt.strip():
        blocks.append(f"PHOTOGRAPHY NOTES: {analysis.suggested_prompt.strip()}")
    if scene.scenario is None and scene.category == ImageCategory.MODEL:
        who = (scene.model_nationality or "").strip() or "professional"
        blocks.append(f"MODEL: Featuring a {who} model wearing or using the product. Realistic skin.")
    if scene.user_intent.strip():
        blocks.append(f"USER CUSTOM INTENT: {scene.user_intent.strip()}")
    blocks.append(_text_overlay_block(scene))
    if history:
        turns = "\n".join(f"{t.role.upper()}: {t.text}" for t in history)
        blocks.append(f"REFINEMENT REQUESTS:\n{turns}")
    blocks.append("OUTPUT: Return the final generated image.")
    return "\n".join(blocks)
