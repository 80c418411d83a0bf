"""
Export database rows as spoken MP3 clips.

This package exposes the building blocks used by the CLI entry point:

- Row loading from the source table (`rows`).
- Speech synthesis through Amazon Polly (`synthesizer`).
- Local directory and S3 destinations (`sinks`).
- The sequential export loop (`exporter`).
- Environment and AWS session configuration (`settings`).
"""

from .errors import (
    ConfigurationError,
    PollifyError,
    QueryError,
    StoreError,
    SynthesisError,
)
from .rows import ExportRequest, Row, fetch_rows, load_rows
from .synthesizer import PollySynthesizer, SpeechSynthesizer
from .sinks import FileSink, OutputSink, S3Sink, audio_filename
from .exporter import ExportSummary, run_export
from .settings import DatabaseSettings, create_aws_session, create_db_engine

__all__ = [
    "PollifyError",
    "ConfigurationError",
    "QueryError",
    "SynthesisError",
    "StoreError",
    "Row",
    "ExportRequest",
    "load_rows",
    "fetch_rows",
    "SpeechSynthesizer",
    "PollySynthesizer",
    "OutputSink",
    "FileSink",
    "S3Sink",
    "audio_filename",
    "ExportSummary",
    "run_export",
    "DatabaseSettings",
    "create_db_engine",
    "create_aws_session",
]
