"""
quotes/store.py -- Quote Repository (SQLAlchemy Core).

Pattern: Repository + Data Mapper, same as auth/store.py.

The repository trusts its caller: it does not check group membership or
uploader ownership. auth/policy.py enforces both before any route calls
create(), update() or delete().

Security: all queries use bound parameters. No f-strings in SQL.
"""

from __future__ import annotations

import logging

from sqlalchemy import Column, ForeignKey, Index, String, Table, Text, func
from sqlalchemy.engine import Engine

from core.errors import NotFoundError
from db.engine import db_errors, metadata, new_id, now_iso
from quotes.models import Quote, QuoteFilter

logger = logging.getLogger("quoteshare.quotes")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

quotes_table = Table(
    "quotes",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("text", Text, nullable=False),
    Column("author", String(255)),
    Column("uploader_id", String(36), ForeignKey("users.id"), nullable=False),
    # Not a foreign key: many membership rows share one group_key.
    Column("group_key", String(100), nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Index("ix_quotes_author", "author"),
    Index("ix_quotes_group_key", "group_key"),
    Index("ix_quotes_uploader_id", "uploader_id"),
)


def _apply_filter(stmt, quote_filter: QuoteFilter):
    if quote_filter.author:
        stmt = stmt.where(quotes_table.c.author == quote_filter.author)
    if quote_filter.group_keys is not None:
        stmt = stmt.where(quotes_table.c.group_key.in_(quote_filter.group_keys))
    return stmt


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class QuoteStore:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create(self, quote: Quote) -> Quote:
        """Assign an id, stamp timestamps, insert, and return the same object."""
        quote.id = new_id()
        quote.created_at = quote.updated_at = now_iso()
        with db_errors("Failed to create quote"):
            with self.engine.connect() as conn:
                conn.execute(
                    quotes_table.insert().values(
                        id=quote.id,
                        text=quote.text,
                        author=quote.author,
                        uploader_id=quote.uploader_id,
                        group_key=quote.group_key,
                        created_at=quote.created_at,
                        updated_at=quote.updated_at,
                    )
                )
                conn.commit()
        logger.info("Created quote %s in group %s by %s", quote.id, quote.group_key, quote.uploader_id)
        return quote

    def get_by_id(self, quote_id: str) -> Quote:
        with db_errors("Failed to get quote"):
            with self.engine.connect() as conn:
                row = conn.execute(quotes_table.select().where(quotes_table.c.id == quote_id)).fetchone()
        if row is None:
            raise NotFoundError("Quote not found")
        return _row_to_quote(row)

    def get_random(self, quote_filter: QuoteFilter) -> Quote:
        """Uniformly random quote among those matching the filter.

        Page and limit are ignored. No rows at all and an author that matches
        nothing both raise NotFoundError.
        """
        stmt = _apply_filter(quotes_table.select(), quote_filter).order_by(func.random()).limit(1)
        with db_errors("Failed to get random quote"):
            with self.engine.connect() as conn:
                row = conn.execute(stmt).fetchone()
        if row is None:
            raise NotFoundError("No quotes found")
        return _row_to_quote(row)

    def list(self, quote_filter: QuoteFilter) -> list[Quote]:
        """One page of matching quotes, newest first. An empty page is not an error."""
        page = max(quote_filter.page, 1)
        limit = quote_filter.limit if quote_filter.limit >= 1 else 10
        stmt = (
            _apply_filter(quotes_table.select(), quote_filter)
            .order_by(quotes_table.c.created_at.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        with db_errors("Failed to list quotes"):
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).fetchall()
        return [_row_to_quote(r) for r in rows]

    def update(self, quote: Quote) -> Quote:
        """Persist text and author of an existing quote; stamps updated_at."""
        quote.updated_at = now_iso()
        with db_errors("Failed to update quote"):
            with self.engine.connect() as conn:
                result = conn.execute(
                    quotes_table.update()
                    .where(quotes_table.c.id == quote.id)
                    .values(text=quote.text, author=quote.author, updated_at=quote.updated_at)
                )
                conn.commit()
        if result.rowcount == 0:
            raise NotFoundError("Quote not found")
        return quote

    def delete(self, quote_id: str) -> None:
        with db_errors("Failed to delete quote"):
            with self.engine.connect() as conn:
                result = conn.execute(quotes_table.delete().where(quotes_table.c.id == quote_id))
                conn.commit()
        if result.rowcount == 0:
            raise NotFoundError("Quote not found")
        logger.info("Deleted quote %s", quote_id)


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_quote(row) -> Quote:
    return Quote(
        id=row.id,
        text=row.text,
        author=row.author,
        uploader_id=row.uploader_id,
        group_key=row.group_key,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
