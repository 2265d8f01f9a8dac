"""User-editable chat settings and the supported model catalogue."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelOption:
    """A selectable completion model."""

    value: str
    label: str
    description: str


SUPPORTED_MODELS: tuple[ModelOption, ...] = (
    ModelOption("gemini-2.0-flash", "Gemini 2.0 Flash", "Fast and efficient"),
    ModelOption("gemini-1.5-pro", "Gemini 1.5 Pro", "Most capable"),
    ModelOption("gemini-1.5-flash", "Gemini 1.5 Flash", "Balanced performance"),
    ModelOption("gemini-1.5-pro-002", "Gemini 2.5 Pro", "Latest pro model"),
    ModelOption("gemini-1.5-flash-002", "Gemini 2.5 Flash", "Latest flash model"),
)
SUPPORTED_MODEL_NAMES = frozenset(option.value for option in SUPPORTED_MODELS)
DEFAULT_MODEL = SUPPORTED_MODELS[0].value

Theme = Literal["dark", "light"]


class Settings(BaseModel):
    """Chat settings persisted across restarts."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    credential: str = Field(default="", repr=False)
    model: str = DEFAULT_MODEL
    temperature: float = Field(default=0.7, ge=0.0, le=1.0)
    max_output_tokens: int = Field(default=2048, gt=0)
    theme: Theme = "dark"
    auto_persist: bool = True

    @field_validator("credential", mode="before")
    @classmethod
    def _normalize_credential(cls, value: Any) -> str:
        if value is None:
            return ""
        if not isinstance(value, str):
            raise ValueError("credential must be a string.")
        return value.strip()

    @field_validator("model", mode="before")
    @classmethod
    def _validate_model(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("model must be a string.")
        normalized = value.strip()
        if normalized not in SUPPORTED_MODEL_NAMES:
            raise ValueError(f"Unsupported model {normalized!r}.")
        return normalized

    @property
    def has_credential(self) -> bool:
        return bool(self.credential)


DEFAULT_SETTINGS = Settings()


def coerce_settings(raw: Any) -> Settings:
    """Build settings from untrusted data, keeping every field that validates.

    Unknown keys are dropped and each invalid field falls back to its default
    on its own, so one bad value never discards the rest of the payload.
    """
    if not isinstance(raw, dict):
        return DEFAULT_SETTINGS

    accepted: dict[str, Any] = {}
    for name in Settings.model_fields:
        if name not in raw:
            continue
        try:
            Settings.model_validate({name: raw[name]})
        except ValidationError:
            LOGGER.warning(
                "settings.field.invalid",
                extra={"event": "settings.field.invalid", "field": name},
            )
            continue
        accepted[name] = raw[name]
    return Settings.model_validate(accepted)
