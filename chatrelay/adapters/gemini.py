"""Google Gemini provider adapter."""

from __future__ import annotations

import copy
from dataclasses import replace
from typing import Any, List

import requests

from ..config import RelayConfig
from ..logging import get_logger
from ..recognition import ImageLabeler, SpeechRecognizer
from ..util import strip_bearer
from . import Adapter, AdapterError, ChatMessage, ChatRequest

logger = get_logger("adapters.gemini")


class GeminiAdapter(Adapter):
    """
    Interact with the Google Gemini ``generateContent`` API.

    Conversation turns are reshaped into Gemini ``contents``: the first turn is
    answered by a canned model reply, an assistant greeting in second position
    is dropped, and a closing instruction turn is always appended. Audio and
    image attachments are converted to text through Cloud Speech and Cloud
    Vision before the body is built.
    """

    def __init__(
        self,
        model: str,
        api_key: str,
        config: RelayConfig | None = None,
        speech: SpeechRecognizer | None = None,
        vision: ImageLabeler | None = None,
    ) -> None:
        self.config = config or RelayConfig()
        self.model = model
        self.api_key = strip_bearer(api_key)
        self.speech = speech or SpeechRecognizer(self.config.speech)
        self.vision = vision or ImageLabeler()

    @property
    def resolved_model(self) -> str:
        return self.config.model_aliases.get(self.model, self.model)

    @property
    def endpoint(self) -> str:
        return self.config.endpoint.format(model=self.resolved_model)

    @property
    def uses_tools(self) -> bool:
        return self.model in self.config.tool_models

    def format_headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    def format_contents(self, messages: List[ChatMessage]) -> list[dict[str, Any]]:
        contents: list[dict[str, Any]] = []
        for index, message in enumerate(messages):
            if index == 0:
                contents.append(_turn("user", message.content))
                contents.append(_turn("model", self.config.primer_reply))
            elif index == 1 and message.is_assistant:
                # The primer reply already stands in for this turn
                continue
            else:
                contents.append(_turn("model" if message.is_assistant else "user", message.content))
        contents.append(_turn("user", self.config.follow_up_prompt))
        return contents

    def format_body(self, messages: List[ChatMessage]) -> dict[str, Any]:
        body: dict[str, Any] = {
            "contents": self.format_contents(messages),
            "safetySettings": [
                {"category": category, "threshold": self.config.safety_threshold}
                for category in self.config.safety_categories
            ],
        }
        if self.uses_tools:
            body["tools"] = copy.deepcopy(self.config.tools)
        return body

    def recognize_speech(self, audio: bytes) -> str:
        return self.speech.transcribe(audio)

    def recognize_image(self, image: bytes) -> str:
        return self.vision.labels(image)

    def splice_recognition(self, messages: List[ChatMessage]) -> List[ChatMessage]:
        """Fold audio transcripts and image labels into each message's text."""
        spliced: List[ChatMessage] = []
        for message in messages:
            if message.audio is None and message.image is None:
                spliced.append(message)
                continue
            sections = [message.content] if message.content else []
            if message.audio is not None:
                sections.append(f"[Audio transcript] {self.recognize_speech(message.audio)}")
            if message.image is not None:
                sections.append(f"[Image labels] {self.recognize_image(message.image)}")
            spliced.append(replace(message, content="\n".join(sections), audio=None, image=None))
        return spliced

    def handle_response(self, data: dict[str, Any]) -> str:
        candidates = data.get("candidates") or []
        if candidates:
            content = candidates[0].get("content") or {}
            parts = content.get("parts") or []
            if parts:
                return parts[0].get("text")
            return f"{self.model} API 返回未知错误: 无法获取有效的响应文本"
        error = data.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else None
            return f"{self.model} API 错误: {message or '未知错误'}"
        return f"{self.model} API 返回未知错误: 无法获取有效的响应"

    def generate(self, request: ChatRequest) -> str:
        messages = self.splice_recognition(request.messages)
        payload = self.format_body(messages)
        logger.info("Dispatching %d turn(s) to %s", len(payload["contents"]), self.resolved_model)

        try:
            response = requests.post(
                self.endpoint,
                params={"key": self.api_key},
                headers=self.format_headers(),
                json=payload,
                timeout=self.config.timeout,
            )
        except requests.RequestException as exc:
            raise AdapterError(f"Google Gemini request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise AdapterError(
                f"Google Gemini returned a non-JSON response (HTTP {response.status_code})."
            ) from exc
        if not isinstance(data, dict):
            raise AdapterError("Google Gemini response format unexpected.")

        if response.status_code >= 400:
            logger.warning("Gemini responded with HTTP %s", response.status_code)
        return self.handle_response(data)


def _turn(role: str, text: str) -> dict[str, Any]:
    return {"role": role, "parts": [{"text": text}]}
