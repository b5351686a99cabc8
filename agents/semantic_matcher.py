"""SemanticMatcher — model-assisted "link to existing / create new" decisions.

Uses PydanticAI with ``output_type=MatchVerdict`` for validated structured
output.  Only consulted when the exact and heuristic tiers were inconclusive;
this is the one stage with non-deterministic latency and cost.

The matcher owns the id contract: a ``link`` verdict it returns always names
an entity present in the supplied pool, and ``create`` hints never reference
unknown categories, types or textures.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError
from pydantic_ai import Agent

from agents.provider import create_model
from config.llm_config import LLMConfig
from config.prompts.entity_matcher import build_match_prompt, build_system_prompt
from config.settings import get_settings
from errors import MatchingUnavailable
from models.catalogue import AvailableEntityPool, EntityKind, LocalizedName, QualityTier
from models.resolution import MatchVerdict, NewEntitySpec
from services.concurrency import rate_limited_llm_call
from services.metrics import OP_SEMANTIC_MATCH, MetricsCollector, get_metrics_collector
from services.vocabulary import to_hebrew

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchContext:
    """Free-text style context and tier forwarded to the model."""

    style_context: str | None = None
    quality_tier: QualityTier | None = None


class MatchClient(Protocol):
    """Text-completion collaborator that proposes a verdict for one reference."""

    async def match_or_propose(
        self,
        reference: str,
        pool: AvailableEntityPool,
        context: MatchContext,
    ) -> MatchVerdict: ...


class AgentMatchClient:
    """:class:`MatchClient` backed by a PydanticAI agent per entity kind.

    Agents are built lazily so importing this module never needs provider
    credentials.  Pass *model* (e.g. a ``TestModel``) to bypass
    :func:`create_model`.
    """

    def __init__(
        self,
        model=None,
        llm_config: LLMConfig | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        settings = get_settings()
        self._llm_config = settings.get_matcher_llm_config()
        if llm_config:
            self._llm_config = self._llm_config.merge(llm_config)
        self._model = model
        self._retries = settings.matcher_retries
        self._agents: dict[EntityKind, Agent[None, MatchVerdict]] = {}
        self._metrics = metrics or get_metrics_collector()

    def _agent(self, kind: EntityKind) -> Agent[None, MatchVerdict]:
        agent = self._agents.get(kind)
        if agent is None:
            agent = Agent(
                model=self._model or create_model(self._llm_config.model),
                output_type=MatchVerdict,
                system_prompt=build_system_prompt(kind),
                retries=self._retries,
                defer_model_check=True,
            )
            self._agents[kind] = agent
        return agent

    async def match_or_propose(
        self,
        reference: str,
        pool: AvailableEntityPool,
        context: MatchContext,
    ) -> MatchVerdict:
        prompt = build_match_prompt(
            reference,
            pool,
            style_context=context.style_context,
            quality_tier=context.quality_tier,
        )
        started = time.perf_counter()
        try:
            result = await rate_limited_llm_call(
                self._agent(pool.kind).run,
                prompt,
                model_settings=self._llm_config.to_model_settings(),
            )
        except asyncio.CancelledError:
            # Cancelled by the SemanticMatcher timeout.
            self._record("timeout", started)
            raise
        except Exception:
            self._record("error", started)
            raise

        usage = result.usage()
        cost = self._record(
            "ok",
            started,
            input_tokens=usage.input_tokens or 0,
            output_tokens=usage.output_tokens or 0,
        )
        logger.info(
            "Semantic match for %r: %d in / %d out tokens, ~$%.6f",
            reference,
            usage.input_tokens or 0,
            usage.output_tokens or 0,
            cost,
        )
        return result.output.model_copy(update={"input_name": reference})

    def _record(self, status: str, started: float, **usage: int) -> float:
        return self._metrics.record_call(
            operation=OP_SEMANTIC_MATCH,
            status=status,
            latency_ms=(time.perf_counter() - started) * 1000,
            model=self._llm_config.model or "",
            **usage,
        )


class SemanticMatcher:
    """Wraps a :class:`MatchClient` with timeout, error mapping and id checks."""

    def __init__(
        self,
        client: MatchClient | None = None,
        *,
        timeout: float | None = None,
    ) -> None:
        self._client = client or AgentMatchClient()
        self._timeout = timeout if timeout is not None else get_settings().semantic_match_timeout

    async def match(
        self,
        reference: str,
        pool: AvailableEntityPool,
        context: MatchContext | None = None,
    ) -> MatchVerdict:
        """Return a verdict whose ids are guaranteed to exist in *pool*.

        Raises:
            MatchingUnavailable: collaborator failed, timed out, or returned
                output that does not validate.
        """
        context = context or MatchContext()
        try:
            raw = await asyncio.wait_for(
                self._client.match_or_propose(reference, pool, context),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            raise MatchingUnavailable(reference, f"timed out after {self._timeout:g}s") from exc
        except MatchingUnavailable:
            raise
        except Exception as exc:
            logger.warning("Semantic matcher call failed for %r: %s", reference, exc)
            raise MatchingUnavailable(reference, str(exc) or type(exc).__name__) from exc

        try:
            verdict = raw if isinstance(raw, MatchVerdict) else MatchVerdict.model_validate(raw)
        except ValidationError as exc:
            raise MatchingUnavailable(reference, f"unparsable verdict: {exc}") from exc

        return self._enforce_pool_ids(reference, verdict, pool)

    @staticmethod
    def _enforce_pool_ids(
        reference: str,
        verdict: MatchVerdict,
        pool: AvailableEntityPool,
    ) -> MatchVerdict:
        if verdict.action == "link":
            if pool.has_entity(verdict.matched_entity_id):
                return verdict
            logger.warning(
                "Invalid %s id %r for %r, converting to create",
                pool.kind.value,
                verdict.matched_entity_id,
                reference,
            )
            return MatchVerdict(
                input_name=reference,
                action="create",
                confidence=0.8,
                reasoning="Original match id invalid - creating new entity",
                new_entity_spec=NewEntitySpec(
                    name=LocalizedName(en=reference.strip(), he=to_hebrew(reference)),
                    sub_type=reference.strip(),
                ),
            )

        spec = verdict.new_entity_spec
        updates: dict = {}
        if spec.category_id and pool.category_by_id(spec.category_id) is None:
            by_slug = pool.category_by_slug(spec.category_id)
            updates["category_id"] = by_slug.id if by_slug else None
        category_id = updates.get("category_id", spec.category_id)
        if spec.type_id and not any(
            t.id == spec.type_id and (category_id is None or t.category_id == category_id)
            for t in pool.types
        ):
            updates["type_id"] = None
        if spec.texture_id and not pool.has_texture(spec.texture_id):
            updates["texture_id"] = None
        if not spec.name.en.strip():
            updates["name"] = LocalizedName(
                en=reference.strip(), he=spec.name.he or to_hebrew(reference)
            )

        if not updates:
            return verdict
        logger.warning(
            "Repaired create hints for %r: %s", reference, sorted(updates)
        )
        return verdict.model_copy(update={"new_entity_spec": spec.model_copy(update=updates)})
