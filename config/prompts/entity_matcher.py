"""Semantic matcher prompts — link-or-create decisions for materials and textures.

The system prompt states the task and rules; :func:`build_match_prompt` renders
the per-reference user prompt with the relevant slice of the catalogue.
"""

from __future__ import annotations

from models.catalogue import AvailableEntityPool, EntityKind, QualityTier

MAX_PROMPT_ENTITIES = 50
MAX_PROMPT_TEXTURES = 30

MATCHER_SYSTEM_PROMPT = """\
You are an expert interior design {kind} specialist.  Your task is to match a
{kind} name to an existing {kind} in the catalogue, or specify how to create
a new one.

## LINK (action: "link")
Use when an existing {kind} semantically matches:
- "Marble countertops" → link to "Marble" (same base material)
- "שיש לבן" (white marble) → link to "שיש" (marble)
- "Oak flooring" → link to "Oak" or "Wood"
Requirements: matchedEntityId is the EXACT id from the available list,
confidence between 0.6 and 1.0, a short reasoning.

## CREATE (action: "create")
Use when no suitable match exists.
Requirements for newEntitySpec:
- name.he: proper Hebrew interior-design name (RTL); name.en: proper English name
- categoryId: EXACT id from the available categories
- typeId: EXACT id from the available types, belonging to the chosen category
- textureId: EXACT id from the available textures (optional)
- subType: specific variant (e.g. "Carrara" for marble)
- finish: applicable finishes ("matte", "glossy", "satin", "polished", "honed", "brushed", "textured")
- reasoning: why no existing {kind} matches

## Rules
1. Use EXACT ids from the lists; never invent ids.
2. Match the BASE material, not descriptive prefixes ("White marble" → "Marble").
3. Cross-language matching counts: "שיש" = "Marble".
4. If unsure between two candidates, pick the more specific one.
"""


def build_system_prompt(kind: EntityKind) -> str:
    return MATCHER_SYSTEM_PROMPT.format(kind=kind.value)


def build_match_prompt(
    reference: str,
    pool: AvailableEntityPool,
    *,
    style_context: str | None = None,
    quality_tier: QualityTier | None = None,
) -> str:
    """Render the user prompt for one reference against *pool*."""
    lines: list[str] = ["## CONTEXT"]
    lines.append(f"Style: {style_context}" if style_context else "General interior design")
    if quality_tier is not None:
        lines.append(f"Price Level: {quality_tier.value}")

    lines += ["", f'## {pool.kind.value.upper()} TO MATCH', f'"{reference}"', ""]

    shown = pool.entities[:MAX_PROMPT_ENTITIES]
    lines.append(
        f"## AVAILABLE {pool.kind.value.upper()}S "
        f"({len(pool.entities)} total, showing {len(shown)})"
    )
    for e in shown:
        extra = f" | Category: {e.category_slug}" if e.category_slug else ""
        if e.finish:
            extra += f" | Finish: {', '.join(e.finish)}"
        lines.append(f'- ID: "{e.id}" | Hebrew: "{e.name.he}" | English: "{e.name.en}"{extra}')

    lines += ["", "## AVAILABLE CATEGORIES"]
    for c in pool.categories:
        lines.append(f'- ID: "{c.id}" | Hebrew: "{c.name.he}" | English: "{c.name.en}" | Slug: {c.slug}')

    if pool.types:
        lines += ["", "## AVAILABLE TYPES (grouped by category)"]
        for c in pool.categories:
            types = pool.types_for_category(c.id)
            if not types:
                continue
            lines.append(f'Category "{c.name.en or c.id}":')
            for t in types:
                lines.append(f'  - ID: "{t.id}" | Hebrew: "{t.name.he}" | English: "{t.name.en}"')

    if pool.textures:
        shown_textures = pool.textures[:MAX_PROMPT_TEXTURES]
        lines += ["", f"## AVAILABLE TEXTURES ({len(pool.textures)} total, showing {len(shown_textures)})"]
        for t in shown_textures:
            lines.append(f'- ID: "{t.id}" | Hebrew: "{t.name.he}" | English: "{t.name.en}"')

    return "\n".join(lines)
