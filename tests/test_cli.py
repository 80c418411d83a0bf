import logging
import sys

import pytest
from sqlalchemy import create_engine

import pollify_export
from pollify.errors import ConfigurationError

from conftest import FakePollyClient, FakeS3Client, FakeSession

TABLE_ARGS = [
    "--table-name",
    "notes",
    "--id-column",
    "note_id",
    "--last-updated-column",
    "updated_at",
    "--text-column",
    "body",
]


@pytest.fixture
def environment(monkeypatch):
    monkeypatch.setenv("DB_USER_NAME", "reader")
    monkeypatch.setenv("DB_PASSWORD", "secret")
    monkeypatch.setenv("DATABASE_NAME", "library")


@pytest.fixture
def session(monkeypatch):
    fake = FakeSession(polly=FakePollyClient(), s3=FakeS3Client())
    monkeypatch.setattr(pollify_export, "create_aws_session", lambda profile, region: fake)
    return fake


@pytest.fixture
def database(monkeypatch, source_engine):
    url = source_engine.url
    monkeypatch.setattr(pollify_export, "create_db_engine", lambda settings: create_engine(url))


def test_parse_file_export_arguments():
    args = pollify_export.parse_args(
        ["-p", "default", "-r", "eu-west-1", "file-export", "-o", "out", "-l", "2024-03-01T11:00:00"]
        + TABLE_ARGS
    )

    assert args.command == "file-export"
    assert args.profile == "default"
    assert args.region == "eu-west-1"
    assert str(args.output_dir) == "out"
    assert args.last_pollified.isoformat() == "2024-03-01T11:00:00"
    assert args.table_name == "notes"


def test_parse_s3_export_arguments():
    args = pollify_export.parse_args(
        ["--profile", "default", "--region", "eu-west-1", "s3-export", "-b", "bucket", "-p", "speech"]
        + TABLE_ARGS
    )

    assert args.command == "s3-export"
    assert args.bucket_name == "bucket"
    assert args.prefix == "speech"
    assert args.last_pollified is None


def test_malformed_timestamp_is_a_usage_error():
    with pytest.raises(SystemExit) as excinfo:
        pollify_export.parse_args(
            ["-p", "default", "-r", "eu-west-1", "file-export", "-o", "out", "-l", "2024-03-01"]
            + TABLE_ARGS
        )

    assert excinfo.value.code == 2


def test_file_export_writes_one_clip_per_row(tmp_path, environment, session, database):
    output_dir = tmp_path / "clips"
    output_dir.mkdir()

    status = pollify_export.main(
        ["-p", "default", "-r", "eu-west-1", "file-export", "-o", str(output_dir)] + TABLE_ARGS
    )

    assert status == 0
    assert sorted(p.name for p in output_dir.iterdir()) == ["1.mp3", "2.mp3", "3.mp3"]


def test_s3_export_with_cutoff(environment, session, database):
    status = pollify_export.main(
        ["-p", "default", "-r", "eu-west-1", "s3-export", "-b", "bucket", "-p", "speech"]
        + ["-l", "2024-03-01T11:00:00"]
        + TABLE_ARGS
    )

    assert status == 0
    assert session.clients["s3"].objects == {("bucket", "speech/3.mp3"): b"mp3:c"}


def test_missing_output_dir_fails_before_loading_rows(tmp_path, environment, session, monkeypatch):
    def unexpected(*args, **kwargs):
        raise AssertionError("rows must not be loaded")

    monkeypatch.setattr(pollify_export, "fetch_rows", unexpected)

    with pytest.raises(ConfigurationError):
        pollify_export.main(
            ["-p", "default", "-r", "eu-west-1", "file-export", "-o", str(tmp_path / "nope")]
            + TABLE_ARGS
        )

    assert session.clients["polly"].calls == []


def test_missing_environment_is_configuration_error(monkeypatch, session):
    monkeypatch.delenv("DB_USER_NAME", raising=False)

    with pytest.raises(ConfigurationError):
        pollify_export.main(["-p", "default", "-r", "eu-west-1", "s3-export", "-b", "b", "-p", "x"] + TABLE_ARGS)


def test_cli_exits_with_status_one_on_failure(tmp_path, monkeypatch, environment, session):
    monkeypatch.setattr(
        sys,
        "argv",
        ["pollify-export", "-p", "default", "-r", "eu-west-1", "file-export", "-o", str(tmp_path / "nope")]
        + TABLE_ARGS,
    )

    with pytest.raises(SystemExit) as excinfo:
        pollify_export.cli()

    assert excinfo.value.code == 1


def test_debug_logging_routes_sql_through_root_handler():
    engine_logger = logging.getLogger("sqlalchemy.engine")
    previous = engine_logger.level
    try:
        pollify_export.configure_logging(True)

        assert engine_logger.level == logging.INFO
        assert not engine_logger.handlers
    finally:
        engine_logger.setLevel(previous)
