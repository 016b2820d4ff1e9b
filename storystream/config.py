from __future__ import annotations

import os
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .status_parser import DEFAULT_MAX_HEALTH

DEFAULT_MODEL = "llama3.1:8b"

ENV_VARS = {
    "model": "STORYSTREAM_MODEL",
    "host": "OLLAMA_HOST",
    "temperature": "STORYSTREAM_TEMPERATURE",
    "max_attempts": "STORYSTREAM_MAX_ATTEMPTS",
    "max_health": "STORYSTREAM_MAX_HEALTH",
    "history_turns": "STORYSTREAM_HISTORY_TURNS",
}


class ConfigError(ValueError):
    """Raised when session settings are missing or invalid."""


class Settings(BaseModel):
    model: str = DEFAULT_MODEL
    host: Optional[str] = None
    temperature: float = Field(default=0.75, ge=0.0, le=2.0)
    top_p: float = Field(default=0.93, gt=0.0, le=1.0)
    max_attempts: int = Field(default=3, ge=1)
    max_health: int = Field(default=DEFAULT_MAX_HEALTH, ge=0)
    history_turns: Optional[int] = Field(default=None, ge=2)
    verbose: bool = False

    @field_validator("model")
    @classmethod
    def _model_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("model name must not be empty")
        return value

    @field_validator("host")
    @classmethod
    def _blank_host_is_default(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> "Settings":
        """Build settings from environment variables; non-None overrides win."""
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for field_name, var in ENV_VARS.items():
            raw = env.get(var)
            if raw is not None and raw.strip():
                values[field_name] = raw.strip()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.load(values)

    @classmethod
    def load(cls, values: Mapping[str, Any]) -> "Settings":
        try:
            return cls.model_validate(dict(values))
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
            )
            raise ConfigError(problems) from exc

    def llm_options(self) -> Dict[str, Any]:
        return {"temperature": self.temperature, "top_p": self.top_p}


__all__ = ["ConfigError", "Settings", "DEFAULT_MODEL", "ENV_VARS"]
