from __future__ import annotations

from typing import List, Optional

from src.migrators.ghost_store import CONNECTION_ERRORS
from src.utils.errors import log_message

_TAG_QUERY = "SELECT id FROM tags WHERE slug = ?"


def split_tag_labels(field: str) -> List[str]:
    """
    Split a comma-joined tag field into slugs.

    Labels are neither trimmed nor filtered: ``"a, b"`` yields ``"a"`` and
    ``" b"``, and an empty field yields a single empty label.
    """
    return (field or "").split(",")


class TagResolver:
    """Looks tags up by slug.  Tags are never created here."""

    def __init__(self, store) -> None:
        self.store = store

    def resolve(self, label: str) -> Optional[str]:
        try:
            tag_id = self.store.fetch_scalar(_TAG_QUERY, [label])
        except CONNECTION_ERRORS:
            raise
        except Exception as e:
            log_message(f"Tag lookup for slug '{label}' failed: {e}", level="ERROR")
            return None
        if tag_id is None:
            log_message(f"Tag slug '{label}' not found, skipping", level="WARNING")
            return None
        return str(tag_id)
