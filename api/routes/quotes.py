"""
api/routes/quotes.py -- Quote endpoints. Every route requires authentication.

Routes:
  POST   /quotes               -- post a quote to a group        (member of group_id)
  GET    /quotes               -- page of quotes                 (caller's groups)
  GET    /quotes/random        -- one random quote               (caller's groups)
  GET    /quotes/{quote_id}    -- one quote                      (member of its group)
  PATCH  /quotes/{quote_id}    -- edit text/author               (uploader only)
  DELETE /quotes/{quote_id}    -- delete                         (uploader only)

Visibility: list and random only ever see quotes from groups the caller
belongs to. The optional group_id query narrows that to one group and
requires membership of it.

/quotes/random is declared before /quotes/{quote_id} so "random" is never
captured as an id.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import QuoteCreate, QuoteResponse, QuoteUpdate
from api.responses import UsernameLookup, ok
from auth.dependencies import get_current_user
from auth.models import User
from auth.policy import clamp_pagination, member_group_keys, require_group_member, require_uploader
from core.errors import NotFoundError
from db.store import Store
from quotes.models import Quote, QuoteFilter

router = APIRouter()


def _visible_group_keys(store: Store, user: User, group_id: Optional[str]) -> list[str]:
    if group_id:
        require_group_member(store.groups, group_id, user)
        return [group_id]
    return member_group_keys(store.groups, user)


@router.post("/quotes", status_code=201)
def create_quote(
    request: Request,
    body: QuoteCreate,
    current_user: User = Depends(get_current_user),
) -> JSONResponse:
    """Post a quote. The group must exist (404) and include the caller (403)."""
    store: Store = request.app.state.store

    require_group_member(store.groups, body.group_id, current_user)
    quote = store.quotes.create(
        Quote(
            text=body.text,
            author=body.author or None,
            uploader_id=current_user.id,
            group_key=body.group_id,
        )
    )
    return ok(QuoteResponse.from_quote(quote, current_user.username), status_code=201)


@router.get("/quotes")
def list_quotes(
    request: Request,
    author: Optional[str] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    group_id: Optional[str] = None,
    current_user: User = Depends(get_current_user),
) -> JSONResponse:
    """Newest first. Out-of-range page/limit fall back to defaults; an empty page is []."""
    store: Store = request.app.state.store

    page, limit = clamp_pagination(page, limit)
    keys = _visible_group_keys(store, current_user, group_id)
    if not keys:
        return ok([])

    quotes = store.quotes.list(QuoteFilter(author=author or None, page=page, limit=limit, group_keys=keys))
    username_for = UsernameLookup(store.users)
    return ok([QuoteResponse.from_quote(q, username_for(q.uploader_id)) for q in quotes])


@router.get("/quotes/random")
def random_quote(
    request: Request,
    author: Optional[str] = None,
    group_id: Optional[str] = None,
    current_user: User = Depends(get_current_user),
) -> JSONResponse:
    """One uniformly random visible quote, optionally by author. 404 if none match."""
    store: Store = request.app.state.store

    keys = _visible_group_keys(store, current_user, group_id)
    if not keys:
        raise NotFoundError("No quotes found")

    quote = store.quotes.get_random(QuoteFilter(author=author or None, group_keys=keys))
    return ok(QuoteResponse.from_quote(quote, UsernameLookup(store.users)(quote.uploader_id)))


@router.get("/quotes/{quote_id}")
def get_quote(
    request: Request,
    quote_id: str,
    current_user: User = Depends(get_current_user),
) -> JSONResponse:
    store: Store = request.app.state.store

    quote = store.quotes.get_by_id(quote_id)
    require_group_member(store.groups, quote.group_key, current_user)
    return ok(QuoteResponse.from_quote(quote, UsernameLookup(store.users)(quote.uploader_id)))


@router.patch("/quotes/{quote_id}")
def update_quote(
    request: Request,
    quote_id: str,
    body: QuoteUpdate,
    current_user: User = Depends(get_current_user),
) -> JSONResponse:
    """Replace text and author. Only the uploader may do this (403 otherwise)."""
    store: Store = request.app.state.store

    quote = store.quotes.get_by_id(quote_id)
    require_uploader(quote, current_user, "update")
    quote.text = body.text
    quote.author = body.author or None
    store.quotes.update(quote)
    return ok(QuoteResponse.from_quote(quote, current_user.username))


@router.delete("/quotes/{quote_id}")
def delete_quote(
    request: Request,
    quote_id: str,
    current_user: User = Depends(get_current_user),
) -> JSONResponse:
    store: Store = request.app.state.store

    quote = store.quotes.get_by_id(quote_id)
    require_uploader(quote, current_user, "delete")
    store.quotes.delete(quote_id)
    return ok()
