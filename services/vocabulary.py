"""Design-element vocabulary — Hebrew/English equivalences and finish keywords.

Pure data plus two lookups used across the pipeline:

- :func:`to_hebrew` — best-effort Hebrew display name for an English reference
- :data:`ENGLISH_TO_HEBREW` — cross-language table for the heuristic matcher
"""

from __future__ import annotations

# English name → Hebrew display name.  Multi-word entries come before the
# single keywords they contain so partial lookups prefer the specific term.
MATERIAL_TRANSLATIONS: dict[str, str] = {
    # Woods
    "oak wood": "עץ אלון",
    "walnut wood": "עץ אגוז",
    "wood": "עץ",
    "oak": "אלון",
    "walnut": "אגוז",
    "maple": "מייפל",
    "teak": "טיק",
    "pine": "אורן",
    "mahogany": "מהגוני",
    "cherry": "דובדבן",
    "veneer": "פורניר",
    # Metals
    "wrought iron": "ברזל יצוק",
    "brass fixtures": "אביזרי פליז",
    "gold leaf": "עלי זהב",
    "metal": "מתכת",
    "steel": "פלדה",
    "iron": "ברזל",
    "brass": "פליז",
    "copper": "נחושת",
    "bronze": "ארד",
    "aluminum": "אלומיניום",
    "nickel": "ניקל",
    "chrome": "כרום",
    "gold": "זהב",
    "silver": "כסף",
    # Stones
    "carrara marble": "שיש קררה",
    "stone": "אבן",
    "marble": "שיש",
    "granite": "גרניט",
    "limestone": "אבן גיר",
    "travertine": "טרוורטין",
    "concrete": "בטון",
    "terrazzo": "טראצו",
    # Fabrics
    "fabric": "בד",
    "cotton": "כותנה",
    "linen": "פשתן",
    "silk": "משי",
    "velvet": "קטיפה",
    "leather": "עור",
    "suede": "זמש",
    "wool": "צמר",
    # Wall finishes
    "venetian plaster": "טיח ונציאני",
    "paint": "צבע",
    "plaster": "טיח",
    "wallpaper": "טפט",
    "stucco": "סטוקו",
    "gypsum": "גבס",
    # Ceramics
    "ceramic": "קרמיקה",
    "porcelain": "פורצלן",
    "terracotta": "טרקוטה",
    "tile": "אריח",
    # Glass
    "glass": "זכוכית",
    "mirror": "מראה",
    "crystal": "קריסטל",
}

# Hebrew base term → English variants that denote the same material.
QUICK_TRANSLATIONS: dict[str, list[str]] = {
    "שיש": ["marble", "carrara", "calacatta"],
    "עץ": ["wood", "oak", "walnut", "pine", "teak", "mahogany", "cherry"],
    "אלון": ["oak"],
    "אגוז": ["walnut"],
    "אורן": ["pine"],
    "טיק": ["teak"],
    "מהגוני": ["mahogany"],
    "אבן": ["stone", "limestone", "travertine"],
    "גרניט": ["granite"],
    "בטון": ["concrete"],
    "מתכת": ["metal", "steel", "iron"],
    "פלדה": ["steel"],
    "ברזל": ["iron"],
    "פליז": ["brass"],
    "נחושת": ["copper"],
    "ארד": ["bronze"],
    "בד": ["fabric", "textile"],
    "כותנה": ["cotton"],
    "פשתן": ["linen"],
    "משי": ["silk"],
    "קטיפה": ["velvet"],
    "עור": ["leather"],
    "צמר": ["wool"],
    "קרמיקה": ["ceramic", "ceramics"],
    "פורצלן": ["porcelain"],
    "זכוכית": ["glass"],
    "מראה": ["mirror"],
    "טיח": ["plaster", "stucco"],
    "טפט": ["wallpaper"],
    "צבע": ["paint"],
}

ENGLISH_TO_HEBREW: dict[str, str] = {
    english: hebrew
    for hebrew, variants in QUICK_TRANSLATIONS.items()
    for english in variants
}

# Finish keyword → canonical finish.  Order matters: "semi-gloss" before "gloss".
FINISH_KEYWORDS: dict[str, str] = {
    "matte": "matte",
    "flat": "matte",
    "semi-gloss": "satin",
    "glossy": "glossy",
    "gloss": "glossy",
    "shiny": "glossy",
    "satin": "satin",
    "rough": "rough",
    "textured": "rough",
    "smooth": "smooth",
    "polished": "polished",
    "brushed": "brushed",
    "natural": "natural",
    "lacquered": "lacquered",
    "oiled": "oiled",
}


def to_hebrew(english_name: str) -> str:
    """Return a Hebrew display name for *english_name*.

    Direct lookup first, then the first table entry that contains or is
    contained in the name.  Falls back to the input unchanged.
    """
    name_lower = english_name.lower().strip()
    if not name_lower:
        return english_name

    direct = MATERIAL_TRANSLATIONS.get(name_lower)
    if direct:
        return direct

    for en, he in MATERIAL_TRANSLATIONS.items():
        if en in name_lower or name_lower in en:
            return he

    return english_name
