# SPDX-License-Identifier: GPL-3.0-only
"""Database connection for session note storage."""

from peewee import Database, SqliteDatabase
from playhouse.mysql_ext import MySQLConnectorDatabase

from base_logger import get_logger
from sms_authenticator.utils import ensure_database_exists, get_configs

logger = get_logger(__name__)


def connect_to_mysql() -> Database:
    """Connect to the MySQL database named by the MYSQL_* settings.

    The database is created first if it does not exist yet.
    """
    host = get_configs("MYSQL_HOST", default_value="127.0.0.1")
    user = get_configs("MYSQL_USER", strict=True)
    password = get_configs("MYSQL_PASSWORD", strict=True)
    database_name = get_configs("MYSQL_DATABASE", strict=True)

    @ensure_database_exists(host, user, password, database_name)
    def _connect():
        return MySQLConnectorDatabase(
            database_name,
            host=host,
            user=user,
            password=password,
            charset="utf8mb4",
            collation="utf8mb4_unicode_ci",
        )

    logger.debug("Using MySQL database '%s' on %s", database_name, host)
    return _connect()


def connect() -> Database:
    """Return the configured database, MySQL when MYSQL_DATABASE is set."""
    if get_configs("MYSQL_DATABASE"):
        return connect_to_mysql()

    path = get_configs("SQLITE_DATABASE_PATH", default_value="auth_notes.db")
    logger.debug("Using SQLite database at %s", path)
    return SqliteDatabase(path)
