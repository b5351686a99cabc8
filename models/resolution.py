"""Resolution models — verdicts, per-item outcomes and batch results.

Covers the contract between the pipeline stages:

- :class:`MatchVerdict` — structured output of the semantic matcher
- :class:`HeuristicMatch` — output of the free string matcher
- :class:`ItemOutcome` — what happened to one reference in a batch
- :class:`ResolveRequest` / :class:`BatchResult` — caller-facing API
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

from pydantic import Field, model_validator

from models.base import CamelModel
from models.catalogue import LocalizedName, QualityTier


class ElementReference(CamelModel):
    """A free-text design element name awaiting resolution.

    ``finish``, ``category_slug`` and ``keywords`` are only populated when the
    reference was parsed out of material guidance text.
    """

    name: str
    finish: str | None = None
    category_slug: str | None = None
    keywords: list[str] = Field(default_factory=list)


class NewEntitySpec(CamelModel):
    """Proposal for a catalogue entity that does not exist yet."""

    name: LocalizedName = Field(description="Bilingual name; Hebrew in proper RTL form")
    category_id: str | None = Field(
        default=None, description="Id of a category from the available list"
    )
    type_id: str | None = Field(
        default=None, description="Id of a type that belongs to the chosen category"
    )
    texture_id: str | None = Field(
        default=None, description="Id of a related texture from the available list"
    )
    sub_type: str | None = Field(
        default=None, description='Specific variant, e.g. "Carrara" for marble'
    )
    finish: list[str] = Field(
        default_factory=list, description='Finishes such as "matte", "polished"'
    )
    sheen: str | None = None
    base_color: str | None = None


class MatchVerdict(CamelModel):
    """Decision for one reference: link to an existing entity or create one."""

    input_name: str = ""
    action: Literal["link", "create"]
    matched_entity_id: str | None = Field(
        default=None, description="Exact id of the matched entity (required for link)"
    )
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    new_entity_spec: NewEntitySpec | None = Field(
        default=None, description="Specification of the new entity (required for create)"
    )
    reasoning: str = ""

    @model_validator(mode="after")
    def _check_action_payload(self) -> MatchVerdict:
        if self.action == "link" and not self.matched_entity_id:
            raise ValueError("action=link requires matchedEntityId")
        if self.action == "create" and self.new_entity_spec is None:
            raise ValueError("action=create requires newEntitySpec")
        return self


@dataclass(frozen=True)
class HeuristicMatch:
    matched: bool
    entity_id: str | None = None
    confidence: float = 0.0


class CategorySource(str, Enum):
    """Which rule picked the category of a newly created entity."""

    HINT = "hint"
    REFERENCE = "reference"
    RULE = "rule"
    FIRST_AVAILABLE = "first_available"


class ResolutionTier(str, Enum):
    """Cascade tier that produced an item's entity."""

    EXACT = "exact"
    HEURISTIC = "heuristic"
    SEMANTIC = "semantic"
    CREATED = "created"


@dataclass
class ItemOutcome:
    """Result of resolving a single reference inside a batch."""

    reference: str
    entity_id: str | None = None
    tier: ResolutionTier | None = None
    created: bool = False
    image_generated: bool = False
    error: str | None = None

    @property
    def matched(self) -> bool:
        return self.tier in (
            ResolutionTier.EXACT,
            ResolutionTier.HEURISTIC,
            ResolutionTier.SEMANTIC,
        )


# ── Caller-facing API ────────────────────────────────────────


class ResolveRequest(CamelModel):
    """Input of a resolution batch for one style."""

    style_id: str = ""
    style_name: LocalizedName = Field(default_factory=LocalizedName)
    references: list[str] = Field(default_factory=list)
    material_guidance: str | None = None
    quality_tier: QualityTier = QualityTier.REGULAR
    generate_images: bool = True
    max_items: int | None = Field(default=None, ge=0)
    style_context: str | None = None


class BatchStats(CamelModel):
    matched: int = 0
    created: int = 0
    images: int = 0
    errors: int = 0


class BatchError(CamelModel):
    reference: str
    error: str


class BatchResult(CamelModel):
    """Aggregated outcome of one batch.

    ``success`` keeps the lenient rule used by the style workflow;
    ``all_failed`` is the strict signal (nothing resolved, something failed).
    """

    success: bool = True
    all_failed: bool = False
    entity_ids: list[str] = Field(default_factory=list)
    stats: BatchStats = Field(default_factory=BatchStats)
    errors: list[BatchError] = Field(default_factory=list)
