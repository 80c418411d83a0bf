from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import SynthesisError

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_VOICE_ID",
    "DEFAULT_OUTPUT_FORMAT",
    "SpeechSynthesizer",
    "PollySynthesizer",
]

DEFAULT_VOICE_ID = "Joanna"
DEFAULT_OUTPUT_FORMAT = "mp3"


class SpeechSynthesizer(ABC):
    """
    Thin abstraction over a text-to-speech service that returns encoded audio bytes.
    """

    @abstractmethod
    def synthesize(self, text: str) -> bytes:
        """
        Convert text into a complete audio clip.
        """

    def descriptor(self) -> str:
        return self.__class__.__name__


class PollySynthesizer(SpeechSynthesizer):
    """
    Amazon Polly implementation producing MP3 clips in a single fixed voice.
    """

    def __init__(
        self,
        client: Optional[object] = None,
        *,
        voice_id: str = DEFAULT_VOICE_ID,
        output_format: str = DEFAULT_OUTPUT_FORMAT,
    ) -> None:
        self._client = client or boto3.client("polly")
        self._voice_id = voice_id
        self._output_format = output_format

    def descriptor(self) -> str:
        return f"{self.__class__.__name__}({self._voice_id}, {self._output_format})"

    def synthesize(self, text: str) -> bytes:
        params = {
            "OutputFormat": self._output_format,
            "Text": text,
            "VoiceId": self._voice_id,
        }
        logger.debug("Polly request params: %s", {k: v for k, v in params.items() if k != "Text"})
        try:
            response = self._client.synthesize_speech(**params)  # type: ignore[attr-defined]
            stream = response.get("AudioStream")
            if stream is None:
                raise SynthesisError("Polly response did not include AudioStream.")
            return stream.read() if hasattr(stream, "read") else bytes(stream)
        except (BotoCoreError, ClientError) as exc:
            raise SynthesisError(f"Polly synthesis failed: {exc}") from exc
