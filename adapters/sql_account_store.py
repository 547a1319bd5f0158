"""SQL implementation of AccountStore."""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, List, Mapping, Optional

from sqlalchemy import delete, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from adapters.sql_schema import youtube_accounts
from domain.models import DEFAULT_SCOPES, YoutubeAccount, ensure_utc, utcnow
from ports.account_store import AccountStore
from ports.task_store import StoreUnavailableError

logger = logging.getLogger(__name__)


def _row_to_account(row: Mapping[str, Any]) -> YoutubeAccount:
    return YoutubeAccount(
        id=row["id"],
        label=row["label"],
        client_id=row["client_id"],
        client_secret=row["client_secret"],
        redirect_uri=row["redirect_uri"],
        refresh_token=row["refresh_token"],
        scopes=list(row["scopes"] or []),
        created_at=ensure_utc(row["created_at"]),
    )


class SqlAccountStore(AccountStore):
    """AccountStore backed by a SQL database through SQLAlchemy Core."""

    def __init__(self, engine: Engine, default_scopes: Optional[List[str]] = None):
        """
        Initialize SQL account store.

        Args:
            engine: SQLAlchemy engine.
            default_scopes: Scopes stored for accounts registered without any.
        """
        self.engine = engine
        self.default_scopes = list(default_scopes or DEFAULT_SCOPES)

    def get(self, account_id: int) -> Optional[YoutubeAccount]:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(
                    select(youtube_accounts).where(youtube_accounts.c.id == account_id)
                ).mappings().first()
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Account store unavailable: {e}") from e
        return _row_to_account(row) if row else None

    def list(self) -> List[YoutubeAccount]:
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(
                    select(youtube_accounts).order_by(youtube_accounts.c.id)
                ).mappings().all()
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Account store unavailable: {e}") from e
        return [_row_to_account(row) for row in rows]

    def create(self, account: YoutubeAccount) -> YoutubeAccount:
        if not account.label or len(account.label.strip()) < 2:
            raise ValueError("Account label must be at least 2 characters")

        scopes = list(account.scopes) if account.scopes else list(self.default_scopes)
        now = utcnow()
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    insert(youtube_accounts).values(
                        label=account.label.strip(),
                        client_id=account.client_id,
                        client_secret=account.client_secret,
                        redirect_uri=account.redirect_uri,
                        refresh_token=account.refresh_token,
                        scopes=scopes,
                        created_at=now,
                    )
                )
                account_id = result.inserted_primary_key[0]
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Account store unavailable: {e}") from e

        logger.info(f"Account {account_id} created ({account.label})")
        return replace(account, id=account_id, label=account.label.strip(), scopes=scopes, created_at=now)

    def delete(self, account_id: int) -> bool:
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    delete(youtube_accounts).where(youtube_accounts.c.id == account_id)
                )
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Account store unavailable: {e}") from e
        return result.rowcount > 0
