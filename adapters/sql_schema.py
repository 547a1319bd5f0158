"""SQLAlchemy table definitions and engine setup."""
from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
)
from sqlalchemy.engine import Engine, make_url

logger = logging.getLogger(__name__)

metadata = MetaData()

youtube_accounts = Table(
    "youtube_accounts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("label", String(255), nullable=False),
    Column("client_id", String(512), nullable=False),
    Column("client_secret", String(512), nullable=False),
    Column("redirect_uri", String(1024), nullable=False),
    Column("refresh_token", Text, nullable=False),
    Column("scopes", JSON, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

# account_id is a weak reference: no foreign key, deleting an account
# leaves the id in place.
upload_tasks = Table(
    "upload_tasks",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("account_id", Integer, nullable=True),
    Column("title", String(255), nullable=False),
    Column("description", Text, nullable=False, default=""),
    Column("tags", JSON, nullable=False),
    Column("category_id", String(32), nullable=True),
    Column("visibility", String(16), nullable=False),
    Column("language", String(32), nullable=True),
    Column("made_for_kids", Boolean, nullable=False, default=False),
    Column("schedule_type", String(16), nullable=False),
    Column("scheduled_for", DateTime(timezone=True), nullable=True),
    Column("source_type", String(16), nullable=False),
    Column("source_value", Text, nullable=False),
    Column("thumbnail_url", Text, nullable=True),
    Column("ai_summary", Text, nullable=True),
    Column("automation_plan", Text, nullable=True),
    Column("transcript", Text, nullable=True),
    Column("status", String(16), nullable=False, index=True),
    Column("failure_reason", Text, nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

ai_profiles = Table(
    "ai_profiles",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False, unique=True),
    Column("prompt", Text, nullable=False),
    Column("tone", String(64), nullable=False),
    Column("keywords", JSON, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine and make sure all tables exist.

    For SQLite file databases the parent directory is created first.

    Args:
        database_url: SQLAlchemy URL, e.g. ``sqlite:///data/agent.db``.
        echo: Log emitted SQL.

    Returns:
        Configured Engine.
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(database_url, echo=echo)
    metadata.create_all(engine)
    logger.debug(f"Database ready: {url.render_as_string(hide_password=True)}")
    return engine
