"""Close-up image prompts for newly created materials and textures."""

from __future__ import annotations

from models.catalogue import EntityKind, QualityTier

_MATERIAL_KEYWORDS = {
    QualityTier.LUXURY: "Exclusive, Premium, High-end, Artisanal, Precious, Hand-crafted, Designer-grade",
    QualityTier.REGULAR: "Quality, Functional, Accessible, Standard, Practical, Cost-effective, Versatile",
}

_TEXTURE_KEYWORDS = {
    QualityTier.LUXURY: "Sophisticated, Refined, Premium finish, Artisanal, High-quality",
    QualityTier.REGULAR: "Practical, Quality, Accessible, Standard finish, Functional",
}

MATERIAL_IMAGE_PROMPT = """\
Create a stunning, professional CLOSE-UP photograph of {name} material.

Price Tier: {tier}
Keywords: {keywords}

The image should:
- EXTREME CLOSE-UP showing surface texture, grain, and finish in detail
- Capture the tactile quality and visual character of the material
- Show authentic {tier_lower}-tier material quality
- Perfect lighting that highlights texture and surface properties
- Showcase natural variations, patterns, or grain (if applicable)
- Be photorealistic and professionally shot (macro photography quality)

CRITICAL CONSTRAINT: NO humans, NO furniture, NO room context - ONLY the material surface in extreme close-up detail.

Style: Professional macro photography, studio lighting, high resolution, material swatch documentation."""

TEXTURE_IMAGE_PROMPT = """\
Create a stunning, professional CLOSE-UP photograph showcasing "{name}" texture with {finish} finish.

Price Tier: {tier}
Finish: {finish}
Keywords: {keywords}

The image should:
- MACRO CLOSE-UP showing the texture's surface pattern and finish
- Capture the visual and tactile character of the {finish} finish
- Show {tier_lower}-tier texture quality and craftsmanship
- Demonstrate how light interacts with the {finish} finish
- Show repeating patterns or natural variations (if applicable)
- Be photorealistic and professionally shot (texture documentation quality)

CRITICAL CONSTRAINT: NO humans, NO furniture, NO room context - ONLY the texture surface in detailed close-up.

Style: Professional texture photography, controlled lighting, high detail, surface documentation."""


def build_image_prompt(
    kind: EntityKind,
    name_en: str,
    tier: QualityTier,
    finish: str | None = None,
) -> str:
    if kind == EntityKind.TEXTURE:
        return TEXTURE_IMAGE_PROMPT.format(
            name=name_en,
            finish=finish or "natural",
            tier=tier.value,
            tier_lower=tier.value.lower(),
            keywords=_TEXTURE_KEYWORDS[tier],
        )
    return MATERIAL_IMAGE_PROMPT.format(
        name=name_en,
        tier=tier.value,
        tier_lower=tier.value.lower(),
        keywords=_MATERIAL_KEYWORDS[tier],
    )
