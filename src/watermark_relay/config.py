from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError


class ProviderConfig(BaseModel):
    """Read-only snapshot of the provider selection handed to each dispatch call."""

    model_config = ConfigDict(frozen=True)

    provider: str = Field(..., description="Provider identifier, e.g. 'picwish'")
    credential: SecretStr = Field(
        default=SecretStr(""), description="API key forwarded to the provider in a header"
    )
    model: str | None = Field(
        default=None,
        description="Model or version override for providers that support model selection",
    )


class PollingSettings(BaseModel):
    poll_interval_seconds: float = Field(
        default=2.0,
        ge=0.0,
        le=60.0,
        description="Delay before each status check of an asynchronous job",
    )
    max_poll_attempts: int = Field(
        default=60,
        ge=1,
        le=600,
        description="Maximum status checks before the job is reported as timed out",
    )
    timeout_seconds: float = Field(
        default=120.0,
        gt=0.0,
        description="Per-request HTTP timeout",
    )


class PicWishSettings(PollingSettings):
    """Settings for the PicWish watermark removal API."""

    api_url: str = Field(
        default="https://techhk.aoscdn.com/api/tasks/visual/external/watermark-remove",
        description="Task endpoint; status checks append the task id",
    )
    poll_interval_seconds: float = Field(default=1.0, ge=0.0, le=60.0)
    max_poll_attempts: int = Field(default=30, ge=1, le=600)


class SegmindSettings(PollingSettings):
    """Settings for the Segmind watermark remover workflow."""

    workflow_url: str = Field(
        default="https://api.segmind.com/workflows/67ea59aef8ea060b74cf4187-v2",
        description="Workflow submit endpoint",
    )
    accepts_data_uri: bool = Field(
        default=True,
        description="Whether the workflow accepts an inline data URI for the image field",
    )
    poll_interval_seconds: float = Field(default=7.0, ge=0.0, le=60.0)
    max_poll_attempts: int = Field(default=43, ge=1, le=600)


class ReplicateSettings(PollingSettings):
    """Settings for Replicate predictions."""

    api_url: str = Field(default="https://api.replicate.com/v1/predictions")
    version: str = Field(
        default="tencentarc/gfpgan:0fbacf7afc6c144e5be9767cff80f25aff23e52b0708f17e20f9879b2f21516c",
        description="Model version used when the caller does not select one",
    )
    image_field: str = Field(default="img", description="Input key receiving the image data URI")
    input_defaults: dict[str, Any] = Field(
        default_factory=lambda: {"version": "v1.4", "scale": 2},
        description="Model-specific input values merged into every prediction",
    )


class OpenRouterSettings(BaseModel):
    """Settings for OpenRouter chat completions."""

    api_url: str = Field(default="https://openrouter.ai/api/v1/chat/completions")
    default_model: str = Field(default="google/gemini-2.0-flash-exp:free")
    referer: str = Field(default="http://localhost", description="Value for the HTTP-Referer header")
    title: str = Field(default="AI Watermark Remover", description="Value for the X-Title header")
    max_tokens: int = Field(default=4096, ge=1)
    timeout_seconds: float = Field(default=120.0, gt=0.0)


class GeminiSettings(BaseModel):
    """Settings for the Gemini generateContent endpoint."""

    api_url: str = Field(default="https://generativelanguage.googleapis.com/v1beta/models")
    candidate_models: list[str] = Field(
        default_factory=lambda: ["gemini-2.5-flash-image", "gemini-2.0-flash-exp"],
        min_length=1,
        description="Models tried in order until one answers",
    )
    timeout_seconds: float = Field(default=120.0, gt=0.0)


class RelaySettings(BaseModel):
    """Per-adapter settings consumed when building the provider registry."""

    picwish: PicWishSettings = Field(default_factory=PicWishSettings)
    segmind: SegmindSettings = Field(default_factory=SegmindSettings)
    replicate: ReplicateSettings = Field(default_factory=ReplicateSettings)
    openrouter: OpenRouterSettings = Field(default_factory=OpenRouterSettings)
    gemini: GeminiSettings = Field(default_factory=GeminiSettings)


def _bool_from_env(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _seed_env(dotenv_path: str | Path | None) -> None:
    env_path = Path(dotenv_path) if dotenv_path else Path(".env")
    if env_path.exists():
        load_dotenv(env_path)


def _section(prefix: str, keys: dict[str, str]) -> dict[str, object]:
    """Collect ``PREFIX_SUFFIX`` variables that are set into a field dict."""
    data: dict[str, object] = {}
    for suffix, field in keys.items():
        value = os.getenv(f"{prefix}_{suffix}")
        if value is not None:
            data[field] = value
    return data


_POLLING_KEYS = {
    "POLL_INTERVAL": "poll_interval_seconds",
    "MAX_POLL_ATTEMPTS": "max_poll_attempts",
    "TIMEOUT": "timeout_seconds",
}


def load_settings(dotenv_path: str | Path | None = None) -> RelaySettings:
    """
    Load adapter settings from environment variables (optionally seeded by a .env file).

    Unset variables keep the documented provider defaults.

    Raises
    ------
    RuntimeError
        If a variable holds a value the settings models reject.
    """
    _seed_env(dotenv_path)

    segmind = _section("SEGMIND", {**_POLLING_KEYS, "WORKFLOW_URL": "workflow_url"})
    accepts = os.getenv("SEGMIND_ACCEPTS_DATA_URI")
    if accepts is not None:
        segmind["accepts_data_uri"] = _bool_from_env(accepts, True)

    gemini = _section("GEMINI", {"API_URL": "api_url", "TIMEOUT": "timeout_seconds"})
    candidates = os.getenv("GEMINI_CANDIDATE_MODELS")
    if candidates:
        gemini["candidate_models"] = [name.strip() for name in candidates.split(",") if name.strip()]

    data = {
        "picwish": _section("PICWISH", {**_POLLING_KEYS, "API_URL": "api_url"}),
        "segmind": segmind,
        "replicate": _section(
            "REPLICATE", {**_POLLING_KEYS, "API_URL": "api_url", "VERSION": "version"}
        ),
        "openrouter": _section(
            "OPENROUTER",
            {
                "API_URL": "api_url",
                "MODEL": "default_model",
                "REFERER": "referer",
                "TITLE": "title",
                "MAX_TOKENS": "max_tokens",
                "TIMEOUT": "timeout_seconds",
            },
        ),
        "gemini": gemini,
    }

    try:
        return RelaySettings.model_validate(data)
    except ValidationError as exc:
        invalid = {"/".join(str(part) for part in err["loc"]) for err in exc.errors()}
        raise RuntimeError(f"Invalid configuration values: {', '.join(sorted(invalid))}") from exc


def load_provider_config(dotenv_path: str | Path | None = None) -> ProviderConfig:
    """Build the provider selection from ``WATERMARK_PROVIDER``/``WATERMARK_API_KEY``/``WATERMARK_MODEL``."""
    _seed_env(dotenv_path)
    return ProviderConfig(
        provider=os.getenv("WATERMARK_PROVIDER", "picwish").strip().lower(),
        credential=SecretStr(os.getenv("WATERMARK_API_KEY", "")),
        model=os.getenv("WATERMARK_MODEL") or None,
    )
