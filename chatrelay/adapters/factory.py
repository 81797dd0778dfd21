"""Factory helpers for loading provider adapters."""

from __future__ import annotations

from ..config import RelayConfig
from . import Adapter, AdapterError, ChatRequest
from .gemini import GeminiAdapter


def build_adapter(request: ChatRequest, config: RelayConfig | None = None) -> Adapter:
    """Instantiate an adapter for the requested model."""
    cfg = config or RelayConfig()
    if not request.authorization:
        raise AdapterError("No API key supplied.")
    resolved = cfg.model_aliases.get(request.model, request.model)
    if resolved.lower().startswith("gemini"):
        return GeminiAdapter(model=request.model, api_key=request.authorization, config=cfg)
    raise AdapterError(f"Unsupported model: {request.model}")
