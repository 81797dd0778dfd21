"""Configuration handling for chatrelay."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .util import deep_merge, env_first

CONFIG_FILENAME = ".chatrelay.yml"
CONFIG_ENV_VAR = "CHATRELAY_CONFIG"

GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

DEFAULT_CONFIG: dict[str, Any] = {
    "default_model": "gemini",
    "model_aliases": {"gemini": "gemini-pro"},
    "endpoint": GEMINI_ENDPOINT,
    "timeout": 60,
    "log_level": "INFO",
    "primer_reply": "好的",
    "follow_up_prompt": "prompt: research in english，respond in Chinese",
    "safety_threshold": "BLOCK_NONE",
    "safety_categories": [
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    ],
    "tool_models": ["gemini-2.0-flash-exp", "gemini-2.0-flash", "gemini-2.0-pro-exp"],
    "tools": [{"googleSearch": {}, "googleSpeech": {}, "googleVision": {}}],
    "speech": {
        "encoding": "LINEAR16",
        "sample_rate_hertz": 16000,
        "language_code": "en-US",
    },
}


class ConfigError(Exception):
    """Raised when configuration could not be loaded or parsed."""


@dataclass(frozen=True)
class SpeechConfig:
    encoding: str = "LINEAR16"
    sample_rate_hertz: int = 16000
    language_code: str = "en-US"


@dataclass(frozen=True)
class RelayConfig:
    default_model: str = DEFAULT_CONFIG["default_model"]
    model_aliases: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_CONFIG["model_aliases"]))
    endpoint: str = DEFAULT_CONFIG["endpoint"]
    timeout: int = DEFAULT_CONFIG["timeout"]
    log_level: str = DEFAULT_CONFIG["log_level"]
    primer_reply: str = DEFAULT_CONFIG["primer_reply"]
    follow_up_prompt: str = DEFAULT_CONFIG["follow_up_prompt"]
    safety_threshold: str = DEFAULT_CONFIG["safety_threshold"]
    safety_categories: list[str] = field(default_factory=lambda: list(DEFAULT_CONFIG["safety_categories"]))
    tool_models: list[str] = field(default_factory=lambda: list(DEFAULT_CONFIG["tool_models"]))
    tools: list[dict[str, Any]] = field(default_factory=lambda: copy.deepcopy(DEFAULT_CONFIG["tools"]))
    speech: SpeechConfig = field(default_factory=SpeechConfig)
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RelayConfig":
        """Construct from a dictionary, applying defaults for missing keys."""
        merged = copy.deepcopy(deep_merge(DEFAULT_CONFIG, data))
        speech = merged.get("speech") or {}
        speech_cfg = SpeechConfig(
            encoding=str(speech.get("encoding", "LINEAR16")),
            sample_rate_hertz=int(speech.get("sample_rate_hertz", 16000)),
            language_code=str(speech.get("language_code", "en-US")),
        )
        return cls(
            default_model=str(merged.get("default_model")),
            model_aliases={str(k): str(v) for k, v in (merged.get("model_aliases") or {}).items()},
            endpoint=str(merged.get("endpoint")),
            timeout=int(merged.get("timeout", 60)),
            log_level=str(merged.get("log_level", "INFO")),
            primer_reply=str(merged.get("primer_reply")),
            follow_up_prompt=str(merged.get("follow_up_prompt")),
            safety_threshold=str(merged.get("safety_threshold")),
            safety_categories=list(merged.get("safety_categories") or []),
            tool_models=list(merged.get("tool_models") or []),
            tools=list(merged.get("tools") or []),
            speech=speech_cfg,
            raw=merged,
        )


def config_path() -> Path:
    """Return the configuration path, honouring ``CHATRELAY_CONFIG``."""
    return Path(env_first(CONFIG_ENV_VAR, default=CONFIG_FILENAME))


def load_config(path: Path | None = None) -> RelayConfig:
    """Load configuration from a file, applying defaults when missing."""
    target = path or config_path()
    if not target.exists():
        return RelayConfig()

    try:
        with target.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {target}") from exc

    if not isinstance(payload, dict):
        raise ConfigError("Configuration root must be a mapping.")

    return RelayConfig.from_dict(payload)


def save_config(config: RelayConfig, path: Path | None = None) -> None:
    """Write configuration back to disk."""
    target = path or config_path()
    with target.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(config.raw or DEFAULT_CONFIG, handle, sort_keys=False, allow_unicode=True)
