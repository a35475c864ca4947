"""
Structured logging helpers and error types for the Ghost import.

The :mod:`src.utils.errors` module centralizes the writing of log entries for
both failed and successful steps during the import.  Each entry is appended
to a JSON Lines file under ``reports/migration`` so that the information can
be reviewed or parsed after a run; free-form messages go to
``reports/migration/migration.log``.

Public helpers:

``log_message``
    Print a ``[LEVEL] message`` line and append it to the run log.

``report_error``
    Record an error that occurred for a post.  An optional exception can be
    supplied and will be serialized to the log.

``report_ok``
    Record a successful step for a post.  Additional key/value information can
    be attached to the entry via the ``extra`` parameter.

The ``ERRORS`` dictionary maps error or event codes to human readable
messages.  Codes not present in the dictionary fall back to the code itself.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional

# Mapping of event codes used throughout the import to descriptive messages.
# The keys include both error and success codes as the same lookup is used by
# :func:`report_error` and :func:`report_ok`.
ERRORS: Dict[str, str] = {
    "AUTHOR_NOT_MAPPED": "No migrated user for external author, using default author",
    "TAG_NOT_FOUND": "Tag slug not found in Ghost, skipping tag",
    "POST_INSERT": "Failed to insert post",
    "EXCERPT_UPDATE": "Failed to update post excerpt",
    "POST_AUTHOR_INSERT": "Failed to insert post author",
    "POST_TAG_INSERT": "Failed to insert post tag",
    "INVALID_TIMESTAMP": "Post created_at does not match the expected layout",
    "MOBILEDOC_REVISION_INSERT": "Failed to insert mobiledoc revision",
    "POST_REVISION_INSERT": "Failed to insert post revision",
    "POST_META_INSERT": "Failed to insert post meta",
    "INVALID_PAYLOAD": "Post payload failed validation",
    "POST_CREATED": "Post created successfully",
}

_REPORT_DIR = os.path.join("reports", "migration")
_ERROR_LOG = os.path.join(_REPORT_DIR, "errors.jsonl")
_OK_LOG = os.path.join(_REPORT_DIR, "success.jsonl")
_RUN_LOG = os.path.join(_REPORT_DIR, "migration.log")


class MigrationError(Exception):
    """Base class for failures that abort the import of a single post."""


class PostInsertError(MigrationError):
    """The root ``posts`` row could not be written."""


class TimestampFormatError(MigrationError):
    """The post's ``created_at`` could not be parsed."""


def _write_jsonl(path: str, data: Dict[str, Any]) -> None:
    """Append ``data`` as a JSON object followed by a newline to ``path``."""
    os.makedirs(_REPORT_DIR, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False)
        f.write("\n")


def log_message(message: str, level: str = "INFO") -> None:
    print(f"[{level}] {message}")
    os.makedirs(_REPORT_DIR, exist_ok=True)
    with open(_RUN_LOG, "a", encoding="utf-8") as f:
        f.write(f"{level}: {message}\n")


def report_error(code: str, post: Dict[str, Any], exc: Optional[Exception] = None) -> None:
    """Log an error event for ``post``.

    Parameters
    ----------
    code:
        A key identifying the type of error.  If ``code`` is present in
        :data:`ERRORS` its value will be used as the message.
    post:
        The post dictionary associated with the error.  Only the ``slug`` and
        ``title`` keys are referenced if present.
    exc:
        Optional exception instance that triggered the error.  The string
        representation of the exception will be included in the log entry.
    """
    message = ERRORS.get(code, code)
    entry: Dict[str, Any] = {
        "code": code,
        "message": message,
        "slug": post.get("slug"),
        "title": post.get("title"),
    }
    if exc is not None:
        entry["error"] = str(exc)
    print(f"[ERROR] {message} - {post.get('slug', '')}")
    _write_jsonl(_ERROR_LOG, entry)


def report_ok(code: str, post: Dict[str, Any], extra: Optional[Dict[str, Any]] = None) -> None:
    """Log a successful event for ``post``.

    Parameters
    ----------
    code:
        A key identifying the type of event.
    post:
        The post dictionary associated with the event.
    extra:
        Optional dictionary of additional fields to merge into the log entry.
    """
    message = ERRORS.get(code, code)
    entry: Dict[str, Any] = {
        "code": code,
        "message": message,
        "slug": post.get("slug"),
        "title": post.get("title"),
    }
    if extra:
        entry.update(extra)
    print(f"[OK] {message} - {post.get('slug', '')}")
    _write_jsonl(_OK_LOG, entry)
