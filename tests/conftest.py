import base64
import logging
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from chatrelay.adapters import ChatMessage
from chatrelay.config import RelayConfig


class FakeSpeechClient:
    def __init__(self, transcripts):
        self.transcripts = transcripts
        self.calls = []

    def recognize(self, config, audio):
        self.calls.append({"config": config, "audio": audio})
        results = [
            SimpleNamespace(alternatives=[SimpleNamespace(transcript=text)])
            for text in self.transcripts
        ]
        return SimpleNamespace(results=results)


class FakeVisionClient:
    def __init__(self, labels, error=""):
        self.labels = labels
        self.error = error
        self.calls = []

    def label_detection(self, image):
        self.calls.append(image)
        return SimpleNamespace(
            error=SimpleNamespace(message=self.error),
            label_annotations=[SimpleNamespace(description=label) for label in self.labels],
        )


def make_response(payload, status_code=200):
    response = Mock(status_code=status_code)
    response.json.return_value = payload
    return response


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    logging.getLogger("chatrelay").handlers.clear()


@pytest.fixture
def relay_config():
    return RelayConfig()


@pytest.fixture
def conversation():
    return [
        ChatMessage(role="system", content="You are helpful."),
        ChatMessage(role="assistant", content="Hello! How can I help?"),
        ChatMessage(role="user", content="What is Python?"),
        ChatMessage(role="assistant", content="A programming language."),
        ChatMessage(role="user", content="Who created it?"),
    ]


@pytest.fixture
def speech_client():
    return FakeSpeechClient(["hello there", "second line"])


@pytest.fixture
def vision_client():
    return FakeVisionClient(["Cat", "Whiskers", "Mammal"])


@pytest.fixture
def b64():
    return lambda data: base64.b64encode(data).decode("ascii")


@pytest.fixture
def ok_payload():
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": "Guido van Rossum."}]}}]}
