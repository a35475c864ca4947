"""
Mapping of WordPress authors to Ghost users.

Authors are imported ahead of posts; each import leaves a row in
``users_migration`` linking the new Ghost user id to the WordPress user id.
Posts only carry the WordPress id, so :class:`AuthorResolver` reads that
table back.  A post whose author was never imported is attributed to the
configured default author instead of being rejected.
"""

from __future__ import annotations

from typing import NamedTuple

from src.migrators.ghost_store import CONNECTION_ERRORS
from src.utils.errors import log_message

DEFAULT_AUTHOR_ID = "1"

_AUTHOR_QUERY = "SELECT user_id FROM users_migration WHERE external_id = ?"


class AuthorMatch(NamedTuple):
    author_id: str
    mapped: bool


class AuthorResolver:
    def __init__(self, store, default_author_id: str = DEFAULT_AUTHOR_ID) -> None:
        self.store = store
        self.default_author_id = default_author_id

    def match(self, external_ref: str) -> AuthorMatch:
        """
        Look up the Ghost user mapped to ``external_ref``.

        A missing mapping, or a lookup that fails outright, gives the
        configured default author with ``mapped`` set to ``False``.  This
        method only raises when the connection itself is lost.
        """
        try:
            author_id = self.store.fetch_scalar(_AUTHOR_QUERY, [str(external_ref)])
        except CONNECTION_ERRORS:
            raise
        except Exception as e:
            log_message(f"Author lookup for external id '{external_ref}' failed: {e}", level="ERROR")
            author_id = None

        if author_id is None:
            log_message(
                f"No migrated user for external author '{external_ref}', using default author {self.default_author_id}",
                level="WARNING",
            )
            return AuthorMatch(self.default_author_id, False)
        return AuthorMatch(str(author_id), True)

    def resolve(self, external_ref: str) -> str:
        """Ghost user id for ``external_ref``, or the default author."""
        return self.match(external_ref).author_id
