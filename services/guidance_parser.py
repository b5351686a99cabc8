"""Parse free-text material guidance into texture references.

Example::

    >>> refs = parse_material_guidance("Brushed brass hardware; matte oak floors", QualityTier.LUXURY)
    >>> [(r.name, r.finish, r.category_slug) for r in refs]
    [('Brass', 'brushed', 'metal-finishes'), ('Oak', 'matte', 'wood-finishes')]
"""

from __future__ import annotations

import re

from models.catalogue import QualityTier
from models.resolution import ElementReference
from services.vocabulary import FINISH_KEYWORDS

# Material keyword → texture category slug.  First keyword found wins, so
# generic terms ("wood", "metal") sit before their specific variants.
MATERIAL_TO_TEXTURE_CATEGORY: dict[str, str] = {
    # Wall finishes
    "paint": "wall-finishes",
    "plaster": "wall-finishes",
    "wallpaper": "wall-finishes",
    "stucco": "wall-finishes",
    # Wood
    "wood": "wood-finishes",
    "oak": "wood-finishes",
    "walnut": "wood-finishes",
    "maple": "wood-finishes",
    "teak": "wood-finishes",
    "pine": "wood-finishes",
    "mahogany": "wood-finishes",
    "cherry": "wood-finishes",
    "veneer": "wood-finishes",
    # Metal
    "metal": "metal-finishes",
    "steel": "metal-finishes",
    "iron": "metal-finishes",
    "brass": "metal-finishes",
    "copper": "metal-finishes",
    "bronze": "metal-finishes",
    "aluminum": "metal-finishes",
    "nickel": "metal-finishes",
    "chrome": "metal-finishes",
    # Fabric
    "fabric": "fabric-textures",
    "cotton": "fabric-textures",
    "linen": "fabric-textures",
    "silk": "fabric-textures",
    "velvet": "fabric-textures",
    "leather": "fabric-textures",
    "suede": "fabric-textures",
    "wool": "fabric-textures",
    # Stone
    "stone": "stone-finishes",
    "marble": "stone-finishes",
    "granite": "stone-finishes",
    "limestone": "stone-finishes",
    "travertine": "stone-finishes",
    "concrete": "stone-finishes",
    "terrazzo": "stone-finishes",
}

DEFAULT_FINISH = "natural"
MIN_FRAGMENT_LENGTH = 4
MIN_KEYWORD_LENGTH = 4

_SEPARATORS = re.compile(r"[,;.\n]")


def parse_material_guidance(
    guidance: str,
    quality_tier: QualityTier = QualityTier.REGULAR,
) -> list[ElementReference]:
    """Extract one texture reference per guidance fragment naming a material.

    Fragments without a known material keyword are skipped.  Results are
    de-duplicated by name, keeping the first occurrence.
    """
    if not guidance or not guidance.strip():
        return []

    fragments = [
        f.strip() for f in _SEPARATORS.split(guidance.lower()) if len(f.strip()) >= MIN_FRAGMENT_LENGTH
    ]

    references: list[ElementReference] = []
    seen: set[str] = set()
    for fragment in fragments:
        material = next((kw for kw in MATERIAL_TO_TEXTURE_CATEGORY if kw in fragment), None)
        if material is None:
            continue

        finish = next(
            (canonical for kw, canonical in FINISH_KEYWORDS.items() if kw in fragment),
            DEFAULT_FINISH,
        )
        keywords = [
            word
            for word in fragment.split()
            if len(word) >= MIN_KEYWORD_LENGTH
            and word not in MATERIAL_TO_TEXTURE_CATEGORY
            and word not in FINISH_KEYWORDS
        ]

        name = material.capitalize()
        if name in seen:
            continue
        seen.add(name)
        references.append(
            ElementReference(
                name=name,
                finish=finish,
                category_slug=MATERIAL_TO_TEXTURE_CATEGORY[material],
                keywords=[quality_tier.value, *keywords],
            )
        )

    return references
