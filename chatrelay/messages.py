"""Parsing of chat-style conversation payloads into ``ChatMessage`` turns."""

from __future__ import annotations

import base64
import binascii
from typing import Any, List

from .adapters import ChatMessage, MessageFormatError


def decode_media(value: str) -> bytes:
    """Decode base64 media, accepting ``data:<mime>;base64,`` URLs."""
    if not isinstance(value, str) or not value:
        raise MessageFormatError("Media payload must be a non-empty base64 string.")
    if value.startswith("data:"):
        _, _, value = value.partition(",")
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MessageFormatError("Media payload is not valid base64.") from exc


def _parse_parts(parts: List[Any]) -> tuple[str, bytes | None, bytes | None]:
    """Flatten an OpenAI-style content part list."""
    texts: List[str] = []
    image: bytes | None = None
    audio: bytes | None = None
    for part in parts:
        if isinstance(part, str):
            texts.append(part)
            continue
        if not isinstance(part, dict):
            raise MessageFormatError("Content parts must be objects.")
        kind = part.get("type")
        if kind == "text":
            texts.append(str(part.get("text", "")))
        elif kind == "image_url":
            url = part.get("image_url")
            if isinstance(url, dict):
                url = url.get("url")
            image = decode_media(url)
        elif kind == "input_audio":
            audio_part = part.get("input_audio") or {}
            audio = decode_media(audio_part.get("data") if isinstance(audio_part, dict) else audio_part)
        else:
            raise MessageFormatError(f"Unsupported content part type: {kind!r}")
    return "\n".join(texts), image, audio


def parse_message(item: Any) -> ChatMessage:
    if not isinstance(item, dict):
        raise MessageFormatError("Each message must be an object.")
    role = item.get("role")
    if not isinstance(role, str) or not role:
        raise MessageFormatError("Each message needs a role.")

    content = item.get("content")
    image: bytes | None = None
    audio: bytes | None = None
    if isinstance(content, list):
        text, image, audio = _parse_parts(content)
    elif content is None:
        text = ""
    else:
        text = str(content)

    # Top-level attachments take precedence over inline parts
    if item.get("image"):
        image = decode_media(item["image"])
    if item.get("audio"):
        audio = decode_media(item["audio"])
    return ChatMessage(role=role, content=text, image=image, audio=audio)


def parse_messages(raw: Any) -> List[ChatMessage]:
    """Convert a JSON ``messages`` array into chat turns."""
    if not isinstance(raw, list):
        raise MessageFormatError("'messages' must be a list.")
    return [parse_message(item) for item in raw]
