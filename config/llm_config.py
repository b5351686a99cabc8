"""Reusable LLM generation parameters.

LLMConfig is a standalone Pydantic model that can be:
- built from Settings as the matcher default,
- passed per-call for one-off overrides.

Priority chain (low → high):
    .env defaults  →  per-call overrides
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class LLMConfig(BaseModel):
    """LLM generation parameters.

    All fields are optional.  ``None`` means "use the model's default".
    """

    model: str | None = Field(default=None, description="provider/model identifier")
    max_tokens: int | None = Field(default=None, description="Max tokens to generate")
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0)
    seed: int | None = Field(default=None, description="Random seed for reproducibility")

    def merge(self, overrides: LLMConfig) -> LLMConfig:
        """Return a new LLMConfig: *self* as base, *overrides* wins on non-None fields."""
        base = self.model_dump(exclude_none=True)
        base.update(overrides.model_dump(exclude_none=True))
        return LLMConfig(**base)

    def to_model_settings(self) -> dict:
        """Convert to pydantic-ai ``model_settings`` keyword arguments."""
        kw: dict = {}
        for field in ("max_tokens", "temperature", "top_p", "seed"):
            val = getattr(self, field)
            if val is not None:
                kw[field] = val
        return kw
