from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

import boto3
from botocore.exceptions import ProfileNotFound
from sqlalchemy import URL, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

__all__ = [
    "DB_HOST",
    "DB_PORT",
    "SESSION_INIT_COMMAND",
    "DatabaseSettings",
    "create_db_engine",
    "create_aws_session",
]

DB_HOST = "127.0.0.1"
DB_PORT = 3306

_REQUIRED_VARIABLES = ("DB_USER_NAME", "DB_PASSWORD", "DATABASE_NAME")

# Timestamps are read and compared in UTC regardless of the server default.
SESSION_INIT_COMMAND = "SET time_zone = '+00:00'"


@dataclass(frozen=True)
class DatabaseSettings:
    """
    Credentials for the source database, read from the environment.
    """

    user_name: str
    password: str
    database_name: str
    host: str = DB_HOST
    port: int = DB_PORT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DatabaseSettings":
        environ = os.environ if environ is None else environ
        values = {}
        for name in _REQUIRED_VARIABLES:
            value = environ.get(name)
            if value is None:
                raise ConfigurationError(f"{name} must be set", details={"variable": name})
            if not value:
                raise ConfigurationError(
                    f"Environment variable {name} is empty string.", details={"variable": name}
                )
            values[name] = value
        return cls(
            user_name=values["DB_USER_NAME"],
            password=values["DB_PASSWORD"],
            database_name=values["DATABASE_NAME"],
        )

    def url(self) -> URL:
        return URL.create(
            "mysql+pymysql",
            username=self.user_name,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database_name,
        )


def create_db_engine(settings: DatabaseSettings) -> Engine:
    # A single connection serves the whole run, so no pool is kept around.
    logger.debug("Connecting to database %s at %s:%d", settings.database_name, settings.host, settings.port)
    return create_engine(
        settings.url(),
        poolclass=NullPool,
        connect_args={"init_command": SESSION_INIT_COMMAND},
    )


def create_aws_session(profile: Optional[str], region: Optional[str]) -> boto3.session.Session:
    logger.debug("Creating AWS session (profile=%s, region=%s)", profile, region)
    try:
        return boto3.session.Session(profile_name=profile, region_name=region)
    except ProfileNotFound as exc:
        raise ConfigurationError(str(exc), details={"profile": profile}) from exc
