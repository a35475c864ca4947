"""
Identifier helpers for records written to the Ghost database.

Ghost uses 24-character hexadecimal object ids as primary keys for posts,
users, tags and every association table.  The ids generated here are
random rather than time-ordered; the table's primary key constraint is what
actually guarantees uniqueness.
"""

from __future__ import annotations

import uuid

OBJECT_ID_LENGTH = 24


def generate_object_id() -> str:
    """Return a new 24-character lowercase hex id for a Ghost record."""
    return uuid.uuid4().hex[:OBJECT_ID_LENGTH]
