"""
quotes/models.py -- Domain dataclasses for quotes and quote queries.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class Quote:
    """A quote posted to one group.

    group_key is a loose reference to the membership rows of a group, not a
    foreign key: a group has no single record to point at.

    id is None before the record is written to the database.
    """

    text: str
    uploader_id: str
    group_key: str
    author: Optional[str] = None
    id: Optional[str] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""  # ISO 8601


@dataclass
class QuoteFilter:
    """Query options for QuoteStore.list() / get_random().

    group_keys=None means "no group restriction"; an empty list matches
    nothing. Routes always pass the caller's groups here.
    """

    author: Optional[str] = None
    page: int = 1
    limit: int = 10
    group_keys: Optional[list[str]] = None
