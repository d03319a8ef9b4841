# SPDX-License-Identifier: GPL-3.0-only
"""Utilities module."""

import os
import re
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Any, Callable, List, Optional, Tuple

import mysql.connector
import phonenumbers
from peewee import DatabaseError
from phonenumbers import geocoder

from base_logger import get_logger

logger = get_logger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def get_configs(config_name: str, strict: bool = False, default_value: str = "") -> str:
    """Retrieve configuration from environment variables.

    Args:
        config_name: Configuration name.
        strict: If True, raises error if not found.
        default_value: Default value if not found and not strict.

    Returns:
        Configuration value.

    Raises:
        KeyError: If strict is True and config not found.
        ValueError: If strict is True and value is empty.
    """
    try:
        value = (
            os.environ[config_name]
            if strict
            else os.environ.get(config_name) or default_value
        )
        if strict and (value is None or value.strip() == ""):
            raise ValueError(f"Configuration '{config_name}' is missing or empty.")
        return value
    except KeyError as error:
        logger.error(
            "Configuration '%s' not found in environment variables: %s",
            config_name,
            error,
        )
        raise
    except ValueError as error:
        logger.error("Configuration '%s' is empty: %s", config_name, error)
        raise


def get_bool_config(key: str, default_value: bool = False) -> bool:
    """Retrieve config value as boolean.

    Args:
        key: Configuration key.
        default_value: Default if missing or invalid.

    Returns:
        Boolean value.
    """
    value = get_configs(key)
    if not value:
        return default_value

    value = value.strip().lower()
    if value in {"true", "1", "yes", "on"}:
        return True
    elif value in {"false", "0", "no", "off"}:
        return False
    return default_value


def get_list_config(key: str, default_value: Optional[List[str]] = None) -> List[str]:
    """Retrieve config value as list of upper-cased strings.

    Args:
        key: Configuration key.
        default_value: Default if missing.

    Returns:
        List of strings.
    """
    value = get_configs(key)
    if not value:
        return default_value or []

    items = value.strip("[]")
    return [c.strip().strip("'\"").upper() for c in items.split(",") if c.strip()]


def set_configs(config_name: str, config_value: Any) -> None:
    """Set environment variable configuration.

    Args:
        config_name: Configuration name.
        config_value: Configuration value.

    Raises:
        ValueError: If config_name is empty.
    """
    if not config_name:
        error_message = (
            f"Cannot set configuration. Invalid config_name '{config_name}'."
        )
        logger.error(error_message)
        raise ValueError(error_message)

    if isinstance(config_value, bool):
        config_value = str(config_value).lower()
    os.environ[config_name] = str(config_value)


def create_tables(models: List[Any]) -> None:
    """Create tables for given Peewee models if they don't exist.

    Args:
        models: List of Peewee Model classes.
    """
    if not models:
        logger.warning("No models provided for table creation.")
        return

    try:
        databases = {}
        for model in models:
            databases.setdefault(model._meta.database, []).append(model)

        for database, db_models in databases.items():
            with database.atomic():
                existing_tables = set(database.get_tables())
                tables_to_create = [
                    model
                    for model in db_models
                    if model._meta.table_name not in existing_tables
                ]

                if tables_to_create:
                    database.create_tables(tables_to_create)
                    logger.info(
                        "Created tables: %s",
                        [model._meta.table_name for model in tables_to_create],
                    )
                else:
                    logger.debug("No new tables to create.")

    except DatabaseError as e:
        logger.error("An error occurred while creating tables: %s", e)


def ensure_database_exists(
    host: str, user: str, password: str, database_name: str
) -> Callable:
    """Decorator to ensure MySQL database exists before function execution.

    Args:
        host: MySQL server host address.
        user: MySQL username.
        password: MySQL password.
        database_name: Database name.

    Returns:
        Decorated function.
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                with mysql.connector.connect(
                    host=host,
                    user=user,
                    password=password,
                    charset="utf8mb4",
                    collation="utf8mb4_unicode_ci",
                ) as connection:
                    with connection.cursor() as cursor:
                        sql = "CREATE DATABASE IF NOT EXISTS " + database_name
                        cursor.execute(sql)

            except mysql.connector.Error as error:
                logger.error("Failed to create database: %s", error)

            return func(*args, **kwargs)

        return wrapper

    return decorator


def sanitize_phone_number(phone_number: Optional[str]) -> str:
    """Strip all whitespace and one leading '+' from a phone number.

    Args:
        phone_number: Raw phone number, e.g. "+45 10 10 10 10".

    Returns:
        Sanitized phone number, e.g. "4510101010".

    Raises:
        ValueError: If the phone number is missing or blank.
    """
    if phone_number is None or not phone_number.strip():
        raise ValueError("Phone number cannot be null or blank.")

    return re.sub(r"^\+", "", re.sub(r"\s+", "", phone_number), count=1)


def get_phonenumber_region_code(phone_number: str) -> Tuple[str, str]:
    """Get the region code for a sanitized phone number.

    Args:
        phone_number: Digits including the country calling code, with or
            without the leading '+'.

    Returns:
        Tuple of region code and country name.

    Raises:
        phonenumbers.NumberParseException: If the number cannot be parsed.
    """
    if not phone_number.startswith("+"):
        phone_number = f"+{phone_number}"
    parsed_number = phonenumbers.parse(phone_number)
    region_code = phonenumbers.region_code_for_number(parsed_number)
    country_name = geocoder.description_for_number(parsed_number, "en")
    return region_code, country_name


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_epoch_millis(moment: datetime) -> int:
    return (moment - EPOCH) // timedelta(milliseconds=1)


def from_epoch_millis(value: int) -> datetime:
    return EPOCH + timedelta(milliseconds=value)
