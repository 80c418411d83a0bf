#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Sequence

from pollify.errors import PollifyError
from pollify.exporter import run_export
from pollify.rows import ExportRequest, fetch_rows
from pollify.settings import DatabaseSettings, create_aws_session, create_db_engine
from pollify.sinks import FileSink, OutputSink, S3Sink
from pollify.synthesizer import PollySynthesizer, SpeechSynthesizer

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"


def parse_timestamp(value: str) -> datetime:
    try:
        return datetime.strptime(value, TIMESTAMP_FORMAT)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"invalid timestamp {value!r}, expected YYYY-MM-DDTHH:MM:SS"
        ) from exc


def _table_options() -> argparse.ArgumentParser:
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "-l",
        "--last-pollified",
        type=parse_timestamp,
        default=None,
        help="Optional ISO 8601 timestamp (YYYY-MM-DDTHH:MM:SS) of the last execution.",
    )
    parent.add_argument("-t", "--table-name", required=True, help="Table to export.")
    parent.add_argument("--id-column", required=True, help="Name of the id column.")
    parent.add_argument(
        "--last-updated-column", required=True, help="Name of the column with the last update timestamp."
    )
    parent.add_argument("--text-column", required=True, help="Name of the text column.")
    return parent


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pollify-export", description="Export DB table as MP3s spoken by Polly."
    )
    parser.add_argument("-p", "--profile", required=True, help="The AWS profile used.")
    parser.add_argument("-r", "--region", required=True, help="The AWS region used.")
    parser.add_argument("--debug", action="store_true", help="Enable verbose logging.")

    table_options = _table_options()
    commands = parser.add_subparsers(dest="command", required=True)

    file_export = commands.add_parser(
        "file-export", parents=[table_options], help="Export to file system."
    )
    file_export.add_argument("-o", "--output-dir", type=Path, required=True, help="The output directory.")

    s3_export = commands.add_parser("s3-export", parents=[table_options], help="Export to S3.")
    s3_export.add_argument("-b", "--bucket-name", required=True, help="Name of the output bucket.")
    s3_export.add_argument(
        "-p", "--prefix", required=True, help="Prefix of the output objects within the bucket."
    )
    return parser.parse_args(argv)


def configure_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )
    if not debug:
        for noisy in ("botocore", "boto3", "urllib3"):
            logging.getLogger(noisy).setLevel(logging.WARNING)
    else:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)


def build_request(args: argparse.Namespace) -> ExportRequest:
    return ExportRequest(
        table_name=args.table_name,
        id_column=args.id_column,
        last_updated_column=args.last_updated_column,
        text_column=args.text_column,
        last_pollified=args.last_pollified,
    )


def create_sink(args: argparse.Namespace, session) -> OutputSink:
    if args.command == "file-export":
        return FileSink(args.output_dir)
    if args.command == "s3-export":
        return S3Sink(args.bucket_name, args.prefix, client=session.client("s3"))
    raise ValueError(f"Unsupported command: {args.command}")


def create_synthesizer(session) -> SpeechSynthesizer:
    return PollySynthesizer(client=session.client("polly"))


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.debug)

    settings = DatabaseSettings.from_env()
    request = build_request(args)
    session = create_aws_session(args.profile, args.region)
    sink = create_sink(args, session)
    synthesizer = create_synthesizer(session)

    engine = create_db_engine(settings)
    try:
        rows = fetch_rows(engine, request)
        if not rows:
            logger.warning("No rows to export from %s.", request.table_name)
            return 0
        summary = run_export(rows, sink, synthesizer)
    finally:
        engine.dispose()

    logger.info("Export complete. %d clips written.", summary.count)
    return 0


def cli() -> None:
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logger.error("Interrupted by user.")
        sys.exit(1)
    except PollifyError as exc:
        logger.error("Export failed: %s", exc)
        sys.exit(1)
    except Exception as exc:
        logger.exception("Fatal error: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    cli()
