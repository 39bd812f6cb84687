"""Default style presets and AI model catalogue.

Both backends start from the same catalogue.  Seeding is idempotent: it only
runs against a store that has no presets and no models yet, so a durable
store opened a second time keeps whatever it already holds.
"""

from __future__ import annotations

import logging

from pixelsmith.core.schemas import AiModelCreate, StylePresetCreate

from .base import ArtifactStore

logger = logging.getLogger(__name__)

DEFAULT_STYLE_PRESETS: list[StylePresetCreate] = [
    StylePresetCreate(
        name="Cyberpunk",
        description="Neon-lit urban dystopia with high tech and low life aesthetics",
        thumbnail_url="https://images.unsplash.com/photo-1508695666381-69deeaa78ccb?q=80&w=424",
        prompt="cyberpunk style, neon lights, dystopian future, high technology, urban night scene",
        category="Sci-Fi",
    ),
    StylePresetCreate(
        name="Oil Painting",
        description="Classic oil painting style with rich textures and colors",
        thumbnail_url="https://images.unsplash.com/photo-1619946794135-5bc917a27793?q=80&w=424",
        prompt="oil painting style, textured canvas, rich colors, painterly strokes, artistic",
        category="Art",
    ),
    StylePresetCreate(
        name="Anime",
        description="Japanese anime style illustration with vibrant colors",
        thumbnail_url="https://images.unsplash.com/photo-1598550476439-6847785fcea6?q=80&w=424",
        prompt="anime style, vibrant colors, clean lines, Japanese animation, stylized characters",
        category="Illustration",
    ),
    StylePresetCreate(
        name="Fantasy",
        description="Epic fantasy worlds with magical elements and landscapes",
        thumbnail_url="https://images.unsplash.com/photo-1535263531122-04b6c6f3a7ca?q=80&w=424",
        prompt=(
            "fantasy style, magical world, epic landscape, mythical creatures, "
            "fairy tale atmosphere"
        ),
        category="Fantasy",
    ),
    StylePresetCreate(
        name="Photorealistic",
        description="Ultra-realistic images that look like real photographs",
        thumbnail_url="https://images.unsplash.com/photo-1482501157762-56897a411e05?q=80&w=424",
        prompt=(
            "photorealistic, ultra detailed, high resolution, professional photography, "
            "hyper realistic"
        ),
        category="Photography",
    ),
    StylePresetCreate(
        name="Neon",
        description="Vibrant neon aesthetic with glowing elements and dark backgrounds",
        thumbnail_url="https://images.unsplash.com/photo-1545569341-9eb8b30979d9?q=80&w=424",
        prompt=(
            "neon style, vibrant glowing lights, dark background, high contrast, "
            "synthwave aesthetic"
        ),
        category="Modern",
    ),
]

DEFAULT_AI_MODELS: list[AiModelCreate] = [
    AiModelCreate(
        name="DALL-E 3",
        slug="dalle",
        description=(
            "OpenAI's most advanced text-to-image model with exceptional photorealism "
            "and prompt following."
        ),
        provider="OpenAI",
        is_active=True,
        capabilities={
            "tags": ["Photorealistic", "Artistic", "High Detail"],
            "maxResolution": "1024x1024",
        },
    ),
    AiModelCreate(
        name="Stable Diffusion",
        slug="stable-diffusion",
        description=(
            "Versatile open-source model with excellent style transfer and artistic "
            "capabilities."
        ),
        provider="Stability AI",
        is_active=True,
        capabilities={
            "tags": ["Stylized", "Open Source", "Fast"],
            "maxResolution": "1024x1024",
        },
    ),
    AiModelCreate(
        name="Gemini Vision",
        slug="gemini-vision",
        description=(
            "Google's multimodal AI with excellent image understanding and generation "
            "capabilities."
        ),
        provider="Google",
        is_active=False,
        capabilities={
            "tags": ["Multimodal", "Versatile", "Advanced"],
            "maxResolution": "1024x1024",
        },
    ),
]


async def seed_defaults(store: ArtifactStore) -> bool:
    """Populate an empty store with the default presets and models.

    Args:
        store: Store to seed.

    Returns:
        True if the defaults were written, False if the store already had
        catalogue data.
    """
    if await store.list_style_presets() or await store.list_ai_models():
        logger.debug("Store already has catalogue data, skipping seed")
        return False

    for preset in DEFAULT_STYLE_PRESETS:
        await store.create_style_preset(preset)
    for model in DEFAULT_AI_MODELS:
        await store.create_ai_model(model)

    logger.info(
        f"Seeded {len(DEFAULT_STYLE_PRESETS)} style presets and "
        f"{len(DEFAULT_AI_MODELS)} AI models ({store.backend} backend)"
    )
    return True
