"""Destination schema and engine helpers for migrated legacy data."""

import logging
from typing import Optional

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    Table,
    Text,
    create_engine,
)
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

metadata = MetaData()

legacy_admin_accounts = Table(
    "legacy_admin_accounts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("legacy_admin_id", Integer),
    Column("username", Text, nullable=False, unique=True),
    Column("email", Text),
    Column("full_name", Text),
    Column("password_hash", Text),
    Column("admin_type", Text),
    Column("last_login", DateTime(timezone=True)),
)

legacy_config_choices = Table(
    "legacy_config_choices",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("legacy_choice_id", Integer, nullable=False, unique=True),
    Column("choice_level", Text),
    Column("category", Text),
    Column("choice_item", Text),
    Column("choice_seo", Text),
    Column("parent_choice", Text),
    Column("description", Text),
    Column("extras", Text),
)

news_events = Table(
    "news_events",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", Text, nullable=False),
    Column("content", Text),
    Column("event_type", Text, nullable=False),
    Column("legacy_id", Integer, nullable=False, unique=True),
    Column("legacy_type", Text),
    Column("status", Text, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)


def get_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine for the destination store."""
    return create_engine(database_url, echo=echo)


def create_schema(engine: Engine, tables: Optional[list] = None) -> None:
    """Create the destination tables that do not exist yet."""
    metadata.create_all(engine, tables=tables)
    logger.info(f"Destination schema ready on {engine.url.render_as_string(hide_password=True)}")
