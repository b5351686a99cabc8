"""Keyword → category inference rules for newly created entities.

Rules are plain data evaluated first-match against the lower-cased name.
They keep entity creation structurally valid even when the semantic matcher
gave no usable category hint.
"""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class CategoryRule:
    pattern: re.Pattern[str]
    category_slug: str

    def matches(self, name: str) -> bool:
        return bool(self.pattern.search(name.lower()))


def _rule(keywords: str, slug: str) -> CategoryRule:
    return CategoryRule(re.compile(keywords, re.UNICODE), slug)


CATEGORY_RULES: tuple[CategoryRule, ...] = (
    _rule(r"paint|plaster|wallpaper|stucco|gypsum|צבע|טיח|טפט", "wall-finishes"),
    _rule(
        r"wood|oak|walnut|maple|teak|pine|mahogany|cherry|veneer|עץ|אלון|אגוז",
        "wood-finishes",
    ),
    _rule(
        r"metal|steel|iron|brass|copper|bronze|aluminum|nickel|chrome"
        r"|מתכת|פלדה|ברזל|פליז",
        "metal-finishes",
    ),
    _rule(
        r"fabric|cotton|linen|silk|velvet|leather|suede|wool"
        r"|בד|כותנה|פשתן|משי|קטיפה|עור",
        "fabric-textures",
    ),
    _rule(
        r"stone|marble|granite|limestone|travertine|concrete|terrazzo|שיש|גרניט|אבן",
        "stone-finishes",
    ),
    _rule(r"ceramic|porcelain|terracotta|tile|קרמיקה|פורצלן", "ceramic-tiles"),
)


def infer_category_slug(
    name: str,
    rules: tuple[CategoryRule, ...] = CATEGORY_RULES,
) -> str | None:
    """Return the slug of the first rule matching *name*, or ``None``."""
    for rule in rules:
        if rule.matches(name):
            return rule.category_slug
    return None
