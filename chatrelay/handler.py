"""Serverless function entry point.

Accepts Netlify/Lambda style HTTP events carrying a chat payload::

    {"model": "gemini", "messages": [{"role": "user", "content": "..."}]}

and answers with the model's reply as plain text.
"""

from __future__ import annotations

import base64
import json
from typing import Any, Dict

from .adapters import AdapterError, ChatRequest, MessageFormatError
from .adapters.factory import build_adapter
from .config import ConfigError, RelayConfig, load_config
from .logging import bind_request_id, get_logger, setup_logging
from .messages import parse_messages
from .recognition import RECOGNITION_ERRORS
from .util import env_first, header_value

logger = get_logger("handler")

API_KEY_ENV_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Authorization, Content-Type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


def _response(status: int, body: str = "", content_type: str = "text/plain; charset=utf-8") -> Dict[str, Any]:
    headers = dict(CORS_HEADERS)
    if body:
        headers["Content-Type"] = content_type
    return {"statusCode": status, "headers": headers, "body": body}


def _read_body(event: Dict[str, Any]) -> Dict[str, Any]:
    raw = event.get("body") or ""
    try:
        if event.get("isBase64Encoded"):
            raw = base64.b64decode(raw).decode("utf-8")
        payload = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise MessageFormatError("Request body must be JSON.") from exc
    if not isinstance(payload, dict):
        raise MessageFormatError("Request body must be a JSON object.")
    return payload


def resolve_authorization(headers: Dict[str, Any] | None) -> str | None:
    """Return the caller's authorization, falling back to the environment key."""
    authorization = header_value(headers, "authorization")
    if authorization:
        return authorization
    api_key = env_first(*API_KEY_ENV_VARS)
    return f"Bearer {api_key}" if api_key else None


def build_request(event: Dict[str, Any], config: RelayConfig) -> ChatRequest:
    """Translate an HTTP event into a ``ChatRequest``."""
    payload = _read_body(event)
    if "messages" not in payload:
        raise MessageFormatError("Request body is missing 'messages'.")
    messages = parse_messages(payload["messages"])
    model = payload.get("model") or config.default_model
    if not isinstance(model, str):
        raise MessageFormatError("'model' must be a string.")
    return ChatRequest(
        model=model,
        authorization=resolve_authorization(event.get("headers")) or "",
        messages=messages,
    )


def request_id(context: Any) -> str | None:
    """Pull the platform invocation id out of a Lambda or Netlify context."""
    if context is None:
        return None
    if isinstance(context, dict):
        return context.get("awsRequestId") or context.get("aws_request_id")
    return getattr(context, "aws_request_id", None)


def handler(event: Dict[str, Any], context: Any = None, config: RelayConfig | None = None) -> Dict[str, Any]:
    """Handle one chat invocation."""
    if config is None:
        try:
            config = load_config()
        except ConfigError as exc:
            logger.error("Configuration error: %s", exc)
            return _response(500, str(exc))
    if not get_logger().handlers:
        setup_logging(level=config.log_level)
    bind_request_id(request_id(context))

    method = str(event.get("httpMethod") or "POST").upper()
    if method == "OPTIONS":
        return _response(204)
    if method != "POST":
        return _response(405, f"Method {method} not allowed.")

    try:
        request = build_request(event, config)
    except MessageFormatError as exc:
        logger.info("Rejected malformed request: %s", exc)
        return _response(400, str(exc))

    if not request.authorization:
        return _response(401, "Missing Authorization header.")

    try:
        adapter = build_adapter(request, config)
        text = adapter.generate(request)
    except AdapterError as exc:
        logger.error("%s", exc)
        return _response(502, str(exc))
    except RECOGNITION_ERRORS as exc:
        logger.error("Attachment recognition failed: %s", exc)
        return _response(502, f"Attachment recognition failed: {exc}")

    return _response(200, text or "")
