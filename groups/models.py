"""
groups/models.py -- Domain dataclass for group membership rows.

There is no single "group" record. A logical group is the set of rows that
share one group_key; every member owns a row carrying its own copy of the
group's display name.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class MembershipRow:
    """One (group_key, member) pairing with the duplicated group name.

    id is the row's own identifier; group_key is shared by all rows of the
    same logical group and is what the API calls group_id.
    """

    id: str
    group_key: str
    name: str
    member_id: str
    created_at: str = ""  # ISO 8601
    updated_at: str = ""  # ISO 8601
