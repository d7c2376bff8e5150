"""
Marketing suite: one generation per platform preset, run concurrently.
Each branch is isolated: a failed branch becomes an item with an empty url and
an error report, so the suite always has one item per preset. The batch only
fails when no branch produced an image.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from studio.schemas.analysis import MarketAnalysis
from studio.schemas.generation import (
    AspectRatio,
    GeneratedImage,
    GeneratedSuite,
    ImageCategory,
    SceneParameters,
)
from studio.services.gateway import GatewayError, GeminiGateway
from studio.services.prompts.catalog import MODEL_SHOT_PRESET, SUITE_PRESETS
from studio.utils.images import EncodedImage
from studio.utils.metrics import suite_items_failed_total

logger = logging.getLogger(__name__)

Preset = tuple[str, ImageCategory, AspectRatio, str]


async def _render_item(
    gateway: GeminiGateway,
    images: Sequence[EncodedImage],
    scene: SceneParameters,
    analysis: MarketAnalysis,
    preset: Preset,
) -> tuple[GeneratedImage, GatewayError | None]:
    platform, category, ratio, description = preset
    # suite items always render by preset category
    # presets carry their own category; a selected scenario would override it
    item_scene = scene.model_copy(update={"category": category, "aspect_ratio": ratio, "scenario": None})
    try:
        image = await gateway.generate(images, item_scene, analysis)
    except GatewayError as e:
        suite_items_failed_total.labels(platform=platform).inc()
        logger.warning(
            "suite_item_failed",
            extra={"platform": platform, "failure_type": e.code, "error": e.message},
        )
        item = GeneratedImage(
            url="",
            category=category,
            platform_name=platform,
            description=description,
            aspect_ratio=ratio,
            error=e.to_report(title=f"{platform} image failed"),
        )
        return item, e
    item = GeneratedImage(
        url=image.to_data_uri(),
        category=category,
        platform_name=platform,
        description=description,
        aspect_ratio=ratio,
    )
    return item, None


async def generate_suite(
    gateway: GeminiGateway,
    images: Sequence[EncodedImage],
    scene: SceneParameters,
    analysis: MarketAnalysis,
    presets: Sequence[Preset] = SUITE_PRESETS,
) -> GeneratedSuite:
    """
    Fan out one generate call per preset (plus a model shot for apparel).
    Raises the first branch error only if every branch failed.
    """
    if analysis is None:
        raise ValueError("Market analysis is required before generating a suite")

    presets = list(presets)
    with_model_shot = analysis.is_apparel
    if with_model_shot:
        presets.append(MODEL_SHOT_PRESET)

    outcomes = await asyncio.gather(
        *(_render_item(gateway, images, scene, analysis, p) for p in presets)
    )

    errors = [err for _, err in outcomes if err is not None]
    if outcomes and len(errors) == len(outcomes):
        logger.warning("suite_all_items_failed", extra={"items_failed": len(errors)})
        raise errors[0]

    items = [item for item, _ in outcomes]
    model_image: str | None = None
    if with_model_shot:
        model_item = items.pop()
        model_image = model_item.url or None

    preview = next((i.url for i in items if i.url), model_image or "")
    logger.info(
        "suite_generated",
        extra={"image_count": len(items), "items_failed": len(errors)},
    )
    return GeneratedSuite(preview=preview, items=items, model_image=model_image)
