"""Agent provider — builds PydanticAI model instances from ``provider/model`` names.

Supported prefixes:

- ``anthropic/*`` → :class:`AnthropicModel`
- ``gemini/*`` → :class:`GoogleModel`
- ``dashscope/*`` → :class:`OpenAIChatModel` on the OpenAI-compatible endpoint
- ``openai/*``, unknown prefixes or a bare name → :class:`OpenAIChatModel`
"""

from __future__ import annotations

import logging

from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider

from config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

DASHSCOPE_BASE_URL = "https://dashscope.aliyuncs.com/compatible-mode/v1"


def _anthropic(model_id: str, settings: Settings):
    from pydantic_ai.models.anthropic import AnthropicModel
    from pydantic_ai.providers.anthropic import AnthropicProvider

    return AnthropicModel(model_id, provider=AnthropicProvider(api_key=settings.anthropic_api_key))


def _gemini(model_id: str, settings: Settings):
    from pydantic_ai.models.google import GoogleModel
    from pydantic_ai.providers.google import GoogleProvider

    return GoogleModel(model_id, provider=GoogleProvider(api_key=settings.gemini_api_key))


def _dashscope(model_id: str, settings: Settings):
    provider = OpenAIProvider(api_key=settings.dashscope_api_key, base_url=DASHSCOPE_BASE_URL)
    return OpenAIChatModel(model_id, provider=provider)


def _openai(model_id: str, settings: Settings):
    return OpenAIChatModel(model_id, provider=OpenAIProvider(api_key=settings.openai_api_key))


_BUILDERS = {
    "anthropic": _anthropic,
    "gemini": _gemini,
    "dashscope": _dashscope,
    "openai": _openai,
}


def create_model(model_name: str | None = None):
    """Build a PydanticAI model for *model_name* (default ``settings.default_model``)."""
    settings = get_settings()
    name = model_name or settings.default_model

    prefix, _, model_id = name.partition("/")
    if not model_id:
        prefix, model_id = "openai", name

    builder = _BUILDERS.get(prefix)
    if builder is None:
        logger.warning("Unknown model provider %r, using the OpenAI API for %r", prefix, model_id)
        builder = _openai
    return builder(model_id, settings)
