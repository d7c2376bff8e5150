"""
Fixed prompt fragments for every enumerated scene option.
"""
from studio.schemas.generation import (
    AspectRatio,
    FineTune,
    ImageCategory,
    ImageStyle,
    Lighting,
    Scenario,
)


CATEGORY_PROMPTS: dict[ImageCategory, str] = {
    ImageCategory.WHITEBG: "Pure white infinity cove studio background.",
    ImageCategory.POSTER: "Modern editorial poster layout with clean space for copy.",
    ImageCategory.MODEL: "Fashion lifestyle setting with soft human interaction, product worn or hand-held.",
    ImageCategory.DETAIL: "Macro professional product photography with extreme bokeh.",
    ImageCategory.SOCIAL: "Trendy social feed aesthetic with soft warm lighting.",
    ImageCategory.GIFT: "Exquisite festive gift setting with ribbons and bokeh.",
    ImageCategory.LIFESTYLE: "High-end contemporary interior architecture.",
    ImageCategory.DISPLAY: "Art gallery pedestal in a clean bright room.",
}

STYLE_PROMPTS: dict[ImageStyle, str] = {
    ImageStyle.MINIMALIST: "Scandinavian minimalism, muted palette, natural materials",
    ImageStyle.CYBERPUNK: "Cyberpunk neon, magenta and cyan rim light, wet reflective surfaces",
    ImageStyle.STUDIO: "Professional photo studio, controlled softbox lighting",
    ImageStyle.COZY: "Warm cozy home, late afternoon sun, soft textiles",
    ImageStyle.OUTDOOR: "Outdoor natural light, greenery, shallow depth of field",
    ImageStyle.LUXURY: "Luxury champagne tones, marble and brushed gold accents",
    ImageStyle.CREAM: "Cream-toned airy aesthetic, pastel gradients, diffused light",
    ImageStyle.RETRO: "Hong Kong retro film look, warm grain, vintage props",
}

FINE_TUNE_PROMPTS: dict[FineTune, str] = {
    FineTune.WATER: "Subsurface scattering, wet gloss, professional product lighting",
    FineTune.SUN: "Cinematic god rays, volumetric lighting beams",
    FineTune.SHADOW: "Product hovering with soft contact shadows and floor reflections",
    FineTune.METAL: "High-contrast metallic reflections, studio specular highlights",
    FineTune.BLUR: "F/1.8 aperture bokeh, creamy background separation",
    FineTune.SOFT: "Softbox diffusion, elegant professional product retouching feel",
}

LIGHTING_PROMPTS: dict[Lighting, str] = {
    Lighting.RIM: "Hard rim lighting to separate product from background",
    Lighting.TOP: "Professional top-down spotlighting",
    Lighting.SIDE: "Dramatic side lighting for texture depth",
    Lighting.AMBIENT: "Evenly distributed soft ambient studio light",
}

# {model} is filled with the requested model nationality
SCENARIO_PROMPTS: dict[Scenario, str] = {
    Scenario.CROSS_BORDER_LOCAL: (
        "Localized for global marketplaces (Amazon/Shopee). Match the aesthetic of the target "
        "region (minimalist for US, vibrant for SE Asia). Realistic background."
    ),
    Scenario.TEXT_EDIT_TRANSLATE: (
        "Strictly erase all existing text from the source image. Replace it with professional, "
        "translated marketing copy. High texture background."
    ),
    Scenario.MODEL_REPLACEMENT: (
        "Replace the original person with a {model} model. High fashion skin texture and "
        "lighting. Product must be worn or held naturally."
    ),
    Scenario.MOMENTS_POSTER: (
        "9:16 vertical poster with high impact stickers, bold discount text and viral "
        "marketing graphic elements."
    ),
    Scenario.PLATFORM_MAIN_DETAIL: (
        "1:1 ratio optimized for Taobao/JD. Professional studio setup, clean lighting, clear "
        "product features and a high-conversion graphic layout."
    ),
    Scenario.BUYER_SHOW: (
        "Simulated amateur smartphone photography. Home lifestyle background, natural messy "
        "lighting, realistic shadows. Casual placement."
    ),
    Scenario.LIVE_OVERLAY: (
        "16:9 live streaming asset. Clear product in focus, graphics on corners and sides. "
        "Leave the center area clear for human placement."
    ),
    Scenario.LIVE_GREEN_SCREEN: (
        "16:9 high-end virtual live studio. Showroom or modern interior, soft lighting, bokeh "
        "background. Optimized for chroma keying."
    ),
}

SCENARIO_ASPECT_RATIOS: dict[Scenario, AspectRatio] = {
    Scenario.MOMENTS_POSTER: AspectRatio.VERTICAL,
    Scenario.LIVE_OVERLAY: AspectRatio.WIDE,
    Scenario.LIVE_GREEN_SCREEN: AspectRatio.WIDE,
    Scenario.PLATFORM_MAIN_DETAIL: AspectRatio.SQUARE,
    Scenario.CROSS_BORDER_LOCAL: AspectRatio.SQUARE,
    Scenario.TEXT_EDIT_TRANSLATE: AspectRatio.SQUARE,
    Scenario.MODEL_REPLACEMENT: AspectRatio.PORTRAIT,
    Scenario.BUYER_SHOW: AspectRatio.PORTRAIT,
}

# (platform label, category, ratio, description) for the marketing suite
SUITE_PRESETS: tuple[tuple[str, ImageCategory, AspectRatio, str], ...] = (
    ("Taobao", ImageCategory.DISPLAY, AspectRatio.SQUARE, "Marketplace main image"),
    ("JD.com", ImageCategory.WHITEBG, AspectRatio.SQUARE, "White background listing image"),
    ("Amazon", ImageCategory.WHITEBG, AspectRatio.SQUARE, "Compliant pure white main image"),
    ("Xiaohongshu", ImageCategory.SOCIAL, AspectRatio.PORTRAIT, "Lifestyle seeding post"),
)

MODEL_SHOT_PRESET: tuple[str, ImageCategory, AspectRatio, str] = (
    "Model", ImageCategory.MODEL, AspectRatio.PORTRAIT, "Worn by a virtual model",
)

ASSISTANT_REFINE_ACK = "The scene has been adjusted to your request."
