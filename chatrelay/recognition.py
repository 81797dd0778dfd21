"""Google Cloud speech and vision helpers used to enrich conversation text."""

from __future__ import annotations

from typing import Any

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import speech, vision

from .adapters import AdapterError
from .config import SpeechConfig
from .logging import get_logger

logger = get_logger("recognition")

# Failures raised by the Google clients themselves
RECOGNITION_ERRORS = (GoogleAPIError, GoogleAuthError)


class SpeechRecognizer:
    """Transcribe short audio clips with Cloud Speech-to-Text."""

    def __init__(self, config: SpeechConfig | None = None, client: Any = None) -> None:
        self.config = config or SpeechConfig()
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = speech.SpeechClient()
        return self._client

    def transcribe(self, audio_bytes: bytes) -> str:
        """Return the top transcript of each result, one per line."""
        audio = speech.RecognitionAudio(content=audio_bytes)
        recognition_config = speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding[self.config.encoding],
            sample_rate_hertz=self.config.sample_rate_hertz,
            language_code=self.config.language_code,
        )
        logger.debug("Transcribing %d bytes of audio (%s)", len(audio_bytes), self.config.language_code)
        response = self.client.recognize(config=recognition_config, audio=audio)
        return "\n".join(
            result.alternatives[0].transcript for result in response.results if result.alternatives
        )


class ImageLabeler:
    """Describe images with Cloud Vision label detection."""

    def __init__(self, client: Any = None) -> None:
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = vision.ImageAnnotatorClient()
        return self._client

    def labels(self, image_bytes: bytes) -> str:
        """Return the detected label descriptions joined by commas."""
        image = vision.Image(content=image_bytes)
        logger.debug("Labelling %d bytes of image data", len(image_bytes))
        response = self.client.label_detection(image=image)
        if response.error.message:
            raise AdapterError(f"Vision label detection failed: {response.error.message}")
        return ", ".join(label.description for label in response.label_annotations)
