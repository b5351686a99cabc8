"""Tests for agents/provider.py — model creation from ``provider/model`` names."""

from unittest.mock import patch

import pytest
from pydantic_ai.models.openai import OpenAIChatModel

from agents.provider import create_model
from config.settings import Settings


@pytest.fixture(autouse=True)
def provider_settings():
    settings = Settings(
        default_model="dashscope/qwen-turbo-latest",
        openai_api_key="sk-test",
        dashscope_api_key="ds-test",
    )
    with patch("agents.provider.get_settings", return_value=settings):
        yield settings


def test_create_model_default():
    model = create_model()
    assert isinstance(model, OpenAIChatModel)
    assert model.model_name == "qwen-turbo-latest"


def test_create_model_openai_prefix_stripped():
    model = create_model("openai/gpt-4o-mini")
    assert isinstance(model, OpenAIChatModel)
    assert model.model_name == "gpt-4o-mini"


def test_create_model_bare_name():
    model = create_model("gpt-4o")
    assert isinstance(model, OpenAIChatModel)
    assert model.model_name == "gpt-4o"


def test_create_model_dashscope():
    """Dashscope prefix goes through the OpenAI-compatible endpoint."""
    model = create_model("dashscope/qwen-max")
    assert isinstance(model, OpenAIChatModel)
    assert model.model_name == "qwen-max"


def test_unknown_prefix_falls_back_to_openai():
    model = create_model("acme/some-model")
    assert isinstance(model, OpenAIChatModel)
    assert model.model_name == "some-model"
