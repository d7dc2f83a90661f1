"""
api/routes/groups.py -- Group endpoints. Every route requires authentication.

Routes:
  POST   /groups               -- create group with members      (any user; creator auto-added)
  GET    /groups               -- groups the caller belongs to
  PATCH  /groups/{group_key}   -- rename, optionally add members (any member)
  DELETE /groups/{group_key}   -- delete every membership row    (any member)

A group is not one record: it is the set of membership rows sharing a key.
Create, rename and delete loop over those rows without a transaction. If a
loop fails partway the error is returned and the rows already written stay
written; see groups/store.py.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import GroupCreate, GroupResponse, GroupUpdate
from api.responses import UsernameLookup, ok
from auth.dependencies import get_current_user
from auth.models import User
from auth.policy import member_group_keys, require_group_member, require_valid_members
from core.errors import AlreadyExistsError, NotFoundError
from db.store import Store

router = APIRouter()


@router.post("/groups", status_code=201)
def create_group(
    request: Request,
    body: GroupCreate,
    current_user: User = Depends(get_current_user),
) -> JSONResponse:
    """Create a group. Every listed member must exist (404) and be authenticated (400).

    Re-posting a key that already has rows is ALREADY_EXISTS: joining another
    group goes through PATCH by one of its members.
    """
    store: Store = request.app.state.store

    require_valid_members(store.users, body.members)
    try:
        store.groups.list_by_group_key(body.group_id)
    except NotFoundError:
        pass
    else:
        raise AlreadyExistsError("Group already exists")

    store.groups.create_group(body.group_id, body.name, body.members, creator_id=current_user.id)
    rows = store.groups.list_by_group_key(body.group_id)
    return ok(GroupResponse.from_rows(rows, UsernameLookup(store.users)), status_code=201)


@router.get("/groups")
def list_groups(
    request: Request,
    current_user: User = Depends(get_current_user),
) -> JSONResponse:
    """All groups the caller is a member of, most recently joined first. [] if none."""
    store: Store = request.app.state.store
    username_for = UsernameLookup(store.users)

    groups = []
    for key in member_group_keys(store.groups, current_user):
        try:
            rows = store.groups.list_by_group_key(key)
        except NotFoundError:
            # Deleted since the member lookup.
            continue
        groups.append(GroupResponse.from_rows(rows, username_for))
    return ok(groups)


@router.patch("/groups/{group_key}")
def update_group(
    request: Request,
    group_key: str,
    body: GroupUpdate,
    current_user: User = Depends(get_current_user),
) -> JSONResponse:
    """Rename the group on every row, then add listed members not already in it."""
    store: Store = request.app.state.store

    require_group_member(store.groups, group_key, current_user)
    require_valid_members(store.users, body.members)

    store.groups.rename_group(group_key, body.name)
    store.groups.add_members(group_key, body.name, body.members)
    rows = store.groups.list_by_group_key(group_key)
    return ok(GroupResponse.from_rows(rows, UsernameLookup(store.users)))


@router.delete("/groups/{group_key}")
def delete_group(
    request: Request,
    group_key: str,
    current_user: User = Depends(get_current_user),
) -> JSONResponse:
    """Remove every membership row of the group. Its quotes are left in place."""
    store: Store = request.app.state.store

    require_group_member(store.groups, group_key, current_user)
    store.groups.delete_group(group_key)
    return ok()
