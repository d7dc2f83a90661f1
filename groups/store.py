"""
groups/store.py -- Membership Model: one row per (group_key, member).

Uses SQLAlchemy Core against the shared db.engine.metadata. MembershipStore is
the repository; _row_to_membership is the mapper.

Multi-row operations (create_group, rename_group, delete_group) are plain
loops over the single-row methods. Each row is its own committed statement:
there is no transaction around the loop. The first failure aborts the loop
and propagates to the caller, and rows already written stay written. This
means a failed rename can leave members seeing different group names, and a
failed delete can leave a partial member set behind. Callers must treat these
operations as best-effort and reconcile by retrying.

The UNIQUE(group_key, member_id) constraint stops a member being added to the
same group twice.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import Column, ForeignKey, Index, String, Table, UniqueConstraint, and_, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from core.errors import AlreadyExistsError, DatabaseError, NotFoundError, QuoteShareError
from db.engine import db_errors, metadata, new_id, now_iso
from groups.models import MembershipRow

logger = logging.getLogger("quoteshare.groups")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

memberships_table = Table(
    "memberships",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("group_key", String(100), nullable=False),
    Column("name", String(150), nullable=False),
    Column("member_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    UniqueConstraint("group_key", "member_id", name="uq_membership_group_member"),
    Index("ix_memberships_group_key", "group_key"),
    Index("ix_memberships_member_id", "member_id"),
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class MembershipStore:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    # ------------------------------------------------------------------
    # Single-row operations
    # ------------------------------------------------------------------

    def create_membership(self, group_key: str, name: str, member_id: str) -> MembershipRow:
        """Append one membership row and return it."""
        now = now_iso()
        row = MembershipRow(
            id=new_id(),
            group_key=group_key,
            name=name,
            member_id=member_id,
            created_at=now,
            updated_at=now,
        )
        with db_errors("Failed to create membership"):
            try:
                with self.engine.connect() as conn:
                    conn.execute(
                        memberships_table.insert().values(
                            id=row.id,
                            group_key=row.group_key,
                            name=row.name,
                            member_id=row.member_id,
                            created_at=row.created_at,
                            updated_at=row.updated_at,
                        )
                    )
                    conn.commit()
            except IntegrityError as exc:
                # Either the pair already exists or member_id is not a user.
                if self._has_member(group_key, member_id):
                    raise AlreadyExistsError("Member already belongs to this group") from exc
                raise DatabaseError("Failed to create membership") from exc
        return row

    def get_by_id(self, row_id: str) -> MembershipRow:
        with db_errors("Failed to get membership"):
            with self.engine.connect() as conn:
                row = conn.execute(memberships_table.select().where(memberships_table.c.id == row_id)).fetchone()
        if row is None:
            raise NotFoundError("Group not found")
        return _row_to_membership(row)

    def list_by_group_key(self, group_key: str) -> list[MembershipRow]:
        """All rows of one logical group, newest first. NotFoundError if none."""
        with db_errors("Failed to get group"):
            with self.engine.connect() as conn:
                rows = conn.execute(
                    memberships_table.select()
                    .where(memberships_table.c.group_key == group_key)
                    .order_by(memberships_table.c.created_at.desc())
                ).fetchall()
        if not rows:
            raise NotFoundError("Group not found")
        return [_row_to_membership(r) for r in rows]

    def list_by_member(self, member_id: str) -> list[MembershipRow]:
        """The member's own rows (one per group), newest first. NotFoundError if none."""
        with db_errors("Failed to get member groups"):
            with self.engine.connect() as conn:
                rows = conn.execute(
                    memberships_table.select()
                    .where(memberships_table.c.member_id == member_id)
                    .order_by(memberships_table.c.created_at.desc())
                ).fetchall()
        if not rows:
            raise NotFoundError("No groups found for member")
        return [_row_to_membership(r) for r in rows]

    def update_name(self, row: MembershipRow) -> None:
        """Write row.name to exactly this one row and stamp updated_at."""
        row.updated_at = now_iso()
        with db_errors("Failed to update group"):
            with self.engine.connect() as conn:
                result = conn.execute(
                    memberships_table.update()
                    .where(memberships_table.c.id == row.id)
                    .values(name=row.name, updated_at=row.updated_at)
                )
                conn.commit()
        if result.rowcount == 0:
            raise NotFoundError("Group not found")

    def delete(self, row_id: str) -> None:
        with db_errors("Failed to delete group"):
            with self.engine.connect() as conn:
                result = conn.execute(memberships_table.delete().where(memberships_table.c.id == row_id))
                conn.commit()
        if result.rowcount == 0:
            raise NotFoundError("Group not found")

    # ------------------------------------------------------------------
    # Multi-row loops (non-atomic, see module docstring)
    # ------------------------------------------------------------------

    def create_group(
        self, group_key: str, name: str, member_ids: Iterable[str], creator_id: str
    ) -> list[MembershipRow]:
        """Insert one row per member; the creator is added if not listed.

        Duplicate ids in member_ids are collapsed, keeping first-seen order.
        """
        members = list(dict.fromkeys(member_ids))
        if creator_id not in members:
            members.append(creator_id)

        created: list[MembershipRow] = []
        for member_id in members:
            try:
                created.append(self.create_membership(group_key, name, member_id))
            except QuoteShareError:
                _log_partial("create", group_key, len(created), len(members))
                raise
        logger.info("Created group %s (%r) with %d members", group_key, name, len(created))
        return created

    def add_members(self, group_key: str, name: str, member_ids: Iterable[str]) -> list[MembershipRow]:
        """Insert a row for each listed member not already in the group.

        Returns only the newly created rows. Same failure contract as
        create_group: rows inserted before a failure stay.
        """
        existing = {row.member_id for row in self.list_by_group_key(group_key)}
        missing = [m for m in dict.fromkeys(member_ids) if m not in existing]

        added: list[MembershipRow] = []
        for member_id in missing:
            try:
                added.append(self.create_membership(group_key, name, member_id))
            except QuoteShareError:
                _log_partial("add-members", group_key, len(added), len(missing))
                raise
        if added:
            logger.info("Added %d members to group %s", len(added), group_key)
        return added

    def rename_group(self, group_key: str, name: str) -> list[MembershipRow]:
        """Apply `name` to every row sharing group_key, one row at a time."""
        rows = self.list_by_group_key(group_key)
        for done, row in enumerate(rows):
            row.name = name
            try:
                self.update_name(row)
            except QuoteShareError:
                _log_partial("rename", group_key, done, len(rows))
                raise
        logger.info("Renamed group %s to %r (%d rows)", group_key, name, len(rows))
        return rows

    def delete_group(self, group_key: str) -> int:
        """Delete every row sharing group_key; return how many were removed.

        A row that vanished between the listing and its delete (concurrent
        delete) is skipped rather than treated as a failure.
        """
        rows = self.list_by_group_key(group_key)
        deleted = 0
        for row in rows:
            try:
                self.delete(row.id)
            except NotFoundError:
                continue
            except QuoteShareError:
                _log_partial("delete", group_key, deleted, len(rows))
                raise
            deleted += 1
        logger.info("Deleted group %s (%d rows)", group_key, deleted)
        return deleted

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _has_member(self, group_key: str, member_id: str) -> bool:
        with self.engine.connect() as conn:
            found = conn.execute(
                select(memberships_table.c.id).where(
                    and_(
                        memberships_table.c.group_key == group_key,
                        memberships_table.c.member_id == member_id,
                    )
                )
            ).first()
        return found is not None


def _log_partial(operation: str, group_key: str, done: int, total: int) -> None:
    logger.warning(
        "Group %s of %s aborted after %d/%d rows; applied rows were not rolled back",
        operation,
        group_key,
        done,
        total,
    )


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_membership(row) -> MembershipRow:
    return MembershipRow(
        id=row.id,
        group_key=row.group_key,
        name=row.name,
        member_id=row.member_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
