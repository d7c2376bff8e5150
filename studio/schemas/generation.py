"""
Generation DTOs: scene enums, SceneParameters, chat turns, results, ErrorReport.
"""
from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class ImageCategory(str, Enum):
    """Background / scene category."""

    DISPLAY = "DISPLAY"  # standard display
    POSTER = "POSTER"  # marketing poster
    MODEL = "MODEL"  # virtual model, worn / hand-held
    DETAIL = "DETAIL"  # macro detail
    SOCIAL = "SOCIAL"  # social feed aesthetic
    WHITEBG = "WHITEBG"  # marketplace white background
    GIFT = "GIFT"  # gifting scene
    LIFESTYLE = "LIFESTYLE"  # product placed in a real interior


class Scenario(str, Enum):
    """Fixed marketing scenario; selects its own rules and default ratio."""

    CROSS_BORDER_LOCAL = "CROSS_BORDER_LOCAL"  # localized for overseas marketplaces
    TEXT_EDIT_TRANSLATE = "TEXT_EDIT_TRANSLATE"  # erase source text, add translated copy
    MODEL_REPLACEMENT = "MODEL_REPLACEMENT"  # swap the person for another model
    MOMENTS_POSTER = "MOMENTS_POSTER"  # vertical promo poster for social feeds
    PLATFORM_MAIN_DETAIL = "PLATFORM_MAIN_DETAIL"  # marketplace main / detail image
    BUYER_SHOW = "BUYER_SHOW"  # amateur customer photo
    LIVE_OVERLAY = "LIVE_OVERLAY"  # live-stream corner graphics
    LIVE_GREEN_SCREEN = "LIVE_GREEN_SCREEN"  # virtual live-stream studio


class ImageStyle(str, Enum):
    MINIMALIST = "minimalist"
    CYBERPUNK = "cyberpunk"
    STUDIO = "studio"
    COZY = "cozy"
    OUTDOOR = "outdoor"
    LUXURY = "luxury"
    CREAM = "cream"
    RETRO = "retro"


class AspectRatio(str, Enum):
    SQUARE = "1:1"
    PORTRAIT = "3:4"
    VERTICAL = "9:16"
    WIDE = "16:9"


class FineTune(str, Enum):
    WATER = "water"
    SUN = "sun"
    SHADOW = "shadow"
    METAL = "metal"
    BLUR = "blur"
    SOFT = "soft"


class Lighting(str, Enum):
    RIM = "rim"
    TOP = "top"
    SIDE = "side"
    AMBIENT = "ambient"


class TextOverlay(BaseModel):
    title: str = ""
    detail: str = ""

    model_config = {"frozen": True}

    @property
    def is_empty(self) -> bool:
        return not (self.title.strip() or self.detail.strip())


class SceneParameters(BaseModel):
    """User-selected combination of category (or scenario), style and ratio (plus extras)."""

    category: ImageCategory = ImageCategory.SOCIAL
    style: ImageStyle = ImageStyle.STUDIO
    aspect_ratio: AspectRatio = AspectRatio.SQUARE
    fine_tunes: list[FineTune] = Field(default_factory=list)
    lighting: Lighting = Lighting.AMBIENT
    ultra_hd: bool = False
    user_intent: str = ""
    text_overlay: TextOverlay | None = None
    model_nationality: str | None = None
    # When set, the scenario rules replace the category scene block
    scenario: Scenario | None = None

    model_config = {"frozen": True}


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    text: str

    model_config = {"frozen": True}


class ErrorReport(BaseModel):
    """User-facing error: toast title, message and classification code."""

    title: str
    message: str
    code: str

    model_config = {"frozen": True}


class GeneratedImage(BaseModel):
    url: str = ""  # data URI; empty when this item failed
    category: ImageCategory
    platform_name: str = ""
    description: str = ""
    aspect_ratio: AspectRatio
    error: ErrorReport | None = None
    scenario: Scenario | None = None

    model_config = {"frozen": True}

    @property
    def ok(self) -> bool:
        return bool(self.url)


class GeneratedSuite(BaseModel):
    preview: str = ""
    items: list[GeneratedImage] = Field(default_factory=list)
    model_image: str | None = None

    model_config = {"frozen": True}
