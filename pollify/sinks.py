from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import ConfigurationError, StoreError

logger = logging.getLogger(__name__)

__all__ = ["AUDIO_EXTENSION", "audio_filename", "OutputSink", "FileSink", "S3Sink"]

AUDIO_EXTENSION = ".mp3"


def audio_filename(row_id: int) -> str:
    return f"{row_id}{AUDIO_EXTENSION}"


class OutputSink(ABC):
    """
    Destination for synthesized audio clips.

    Implementations receive the complete clip in memory and store it under ``name``.
    """

    @abstractmethod
    def store(self, blob: bytes, name: str) -> None:
        """Persist ``blob`` as ``name``, replacing any previous content."""

    @abstractmethod
    def describe(self, name: str) -> str:
        """Human readable location of ``name`` for log output."""


class FileSink(OutputSink):
    """
    Writes clips into an existing local directory.
    """

    def __init__(self, output_dir: Union[str, Path]) -> None:
        self.output_dir = Path(output_dir)
        if not self.output_dir.is_dir():
            raise ConfigurationError(
                f"Output directory {self.output_dir} must exist. Please create it.",
                details={"output_dir": str(self.output_dir)},
            )

    def describe(self, name: str) -> str:
        return str(self.output_dir / name)

    def store(self, blob: bytes, name: str) -> None:
        path = self.output_dir / name
        try:
            path.write_bytes(blob)
        except OSError as exc:
            raise StoreError(f"Failed to write {path}: {exc}", details={"path": str(path)}) from exc
        logger.debug("Wrote %d bytes to %s", len(blob), path)


class S3Sink(OutputSink):
    """
    Uploads clips as objects below ``prefix`` in an S3 bucket.
    """

    def __init__(self, bucket_name: str, prefix: str, client: Optional[object] = None) -> None:
        self.bucket_name = bucket_name
        self.prefix = prefix
        self._client = client or boto3.client("s3")

    def object_key(self, name: str) -> str:
        return f"{self.prefix}/{name}"

    def describe(self, name: str) -> str:
        return f"s3://{self.bucket_name}/{self.object_key(name)}"

    def store(self, blob: bytes, name: str) -> None:
        key = self.object_key(name)
        try:
            self._client.put_object(Bucket=self.bucket_name, Key=key, Body=blob)  # type: ignore[attr-defined]
        except (BotoCoreError, ClientError) as exc:
            raise StoreError(
                f"Failed to upload s3://{self.bucket_name}/{key}: {exc}",
                details={"bucket": self.bucket_name, "key": key},
            ) from exc
        logger.debug("Uploaded %d bytes to s3://%s/%s", len(blob), self.bucket_name, key)
