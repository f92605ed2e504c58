"""Generative AI provider settings."""

import os

from pydantic import BaseModel, Field


DEFAULT_MODEL = "gemini-2.5-flash"


class AISettings(BaseModel):
    """Gemini provider configuration.

    The API key and model fall back to the environment variables the web
    server uses, so one `.env` serves both.
    """

    api_key: str | None = Field(
        default_factory=lambda: os.environ.get("GOOGLE_GENERATIVE_AI_API_KEY"),
        description="Gemini API key",
        repr=False,
    )
    model: str = Field(
        default_factory=lambda: os.environ.get("CLI_MODEL") or DEFAULT_MODEL,
        description="Model name",
    )
    base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini REST API base URL",
    )
    request_timeout: float = Field(
        default=120.0,
        gt=0,
        description="Timeout in seconds for a model request",
    )
    temperature: float | None = Field(
        default=None,
        ge=0.0,
        le=2.0,
        description="Sampling temperature override",
    )
