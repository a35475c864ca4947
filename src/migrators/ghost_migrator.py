"""
Writing imported posts into the Ghost database.

:class:`PostIngestionWriter` turns one :class:`~models.ghost_post.PostPayload`
into a ``posts`` row plus its dependent rows.  The steps run in a fixed
order on the store's single connection, each statement committing on its
own:

1. resolve the Ghost author.  A missing mapping falls back to the default
   author and is reported as ``AUTHOR_NOT_MAPPED``;
2. insert the ``posts`` row.  **Critical**: a failure ends the import with
   :attr:`ImportStatus.INTERNAL_ERROR` and nothing else is written;
3. best-effort steps, where a failure is logged and reported but the next
   step still runs:

   * ``custom_excerpt`` update,
   * ``posts_authors`` row,
   * one ``posts_tags`` row per tag slug found in ``tags``,
   * ``created_at`` parsing.  **Critical**: an unparseable timestamp stops
     the remaining steps and ends with :attr:`ImportStatus.BAD_REQUEST`,
   * ``mobiledoc_revisions`` row,
   * ``post_revisions`` row,
   * ``posts_meta`` row.

Nothing is rolled back.  A successful result therefore says the post exists,
not that every dependent row does; :attr:`IngestionResult.outcomes` and the
reports under ``reports/migration`` tell which steps failed.
Losing the connection is not a step failure: it propagates to the caller.

Usage example::

    store = GhostStore.connect("data/ghost.duckdb")
    writer = PostIngestionWriter(store, AuthorResolver(store), TagResolver(store))
    result = writer.ingest(PostPayload.model_validate(raw))
    status_code, body = result.to_response()
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from functools import partial
from http import HTTPStatus
from typing import Any, Callable, Dict, List, Optional, Tuple

from models.ghost_post import (
    MobiledocRevisionRecord,
    PostAuthorRecord,
    PostMetaRecord,
    PostPayload,
    PostRecord,
    PostReply,
    PostRevisionRecord,
    PostTagRecord,
)
from src.migrators.ghost_store import CONNECTION_ERRORS
from src.parsers.lexical_parser import html_to_lexical_json, html_to_mobiledoc
from src.utils.authors import AuthorResolver
from src.utils.errors import (
    PostInsertError,
    TimestampFormatError,
    log_message,
    report_error,
    report_ok,
)
from src.utils.ids import generate_object_id
from src.utils.tags import TagResolver, split_tag_labels

# Ghost resolves this placeholder to the site URL when rendering.
FEATURE_IMAGE_PREFIX = "__GHOST_URL__"
CREATED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"
META_TITLE_MAX_LENGTH = 30


class ImportStatus(str, Enum):
    CREATED = "created"
    INTERNAL_ERROR = "internal_error"
    BAD_REQUEST = "bad_request"

    @property
    def http_status(self) -> HTTPStatus:
        return {
            ImportStatus.CREATED: HTTPStatus.CREATED,
            ImportStatus.INTERNAL_ERROR: HTTPStatus.INTERNAL_SERVER_ERROR,
            ImportStatus.BAD_REQUEST: HTTPStatus.BAD_REQUEST,
        }[self]


@dataclass
class StepOutcome:
    step: str
    status: str  # "ok", "skipped" or "failed"
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


@dataclass
class IngestionResult:
    status: ImportStatus
    reply: Optional[PostReply] = None
    outcomes: List[StepOutcome] = field(default_factory=list)
    message: str = ""

    @property
    def failed_steps(self) -> List[str]:
        return [o.step for o in self.outcomes if o.status == "failed"]

    def to_response(self) -> Tuple[int, Dict[str, Any]]:
        """Status code and JSON body for the HTTP layer."""
        if self.reply is not None:
            body: Dict[str, Any] = self.reply.model_dump()
        else:
            body = {"message": self.message}
        return int(self.status.http_status), body


def parse_created_at(value: str) -> int:
    """
    Epoch seconds for a ``YYYY-MM-DD HH:MM:SS`` timestamp, read as UTC.

    :raises TimestampFormatError: if ``value`` does not match the layout.
    """
    try:
        parsed = datetime.strptime(value or "", CREATED_AT_FORMAT)
    except ValueError as e:
        raise TimestampFormatError(
            f"created_at '{value}' does not match '{CREATED_AT_FORMAT}'"
        ) from e
    return int(parsed.replace(tzinfo=timezone.utc).timestamp())


def resolve_meta_title(title: str, meta_title: Optional[str]) -> str:
    """
    ``meta_title`` when given; otherwise the title, but only if it is at most
    30 characters long.  Longer titles get an empty meta title, not a
    truncated one.
    """
    if meta_title:
        return meta_title
    if len(title) > META_TITLE_MAX_LENGTH:
        return ""
    return title


def feature_image_reference(image_url: Optional[str]) -> Optional[str]:
    if not image_url:
        return None
    return f"{FEATURE_IMAGE_PREFIX}{image_url}"


class _Skip(Exception):
    """Raised by a step that had nothing to write."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


@dataclass
class _PostContext:
    post: PostPayload
    post_id: str
    author_id: str
    created_at_ts: Optional[int] = None


Step = Tuple[str, str, Callable[[], None]]


class PostIngestionWriter:
    """
    Imports posts one at a time through a :class:`GhostStore`.

    The store, and the resolvers reading from it, are injected; the writer
    keeps no state between posts.
    """

    def __init__(self, store, authors: AuthorResolver, tags: TagResolver) -> None:
        self.store = store
        self.authors = authors
        self.tags = tags

    def ingest(self, post: PostPayload) -> IngestionResult:
        report = post.as_report()
        author_id, mapped = self.authors.match(post.author_external_ref)
        ctx = _PostContext(post=post, post_id=generate_object_id(), author_id=author_id)
        outcomes: List[StepOutcome] = []
        if mapped:
            outcomes.append(StepOutcome("author", "ok"))
        else:
            outcomes.append(StepOutcome(
                "author", "skipped", f"No migrated user for external author '{post.author_external_ref}'"
            ))
            report_error("AUTHOR_NOT_MAPPED", report)

        try:
            self._insert_post(ctx)
        except PostInsertError as e:
            outcomes.append(StepOutcome("post", "failed", str(e)))
            report_error("POST_INSERT", report, e)
            log_message(f"Failed to create post '{post.slug}': {e}", level="ERROR")
            return IngestionResult(
                ImportStatus.INTERNAL_ERROR, outcomes=outcomes, message="Failed to create post"
            )
        outcomes.append(StepOutcome("post", "ok"))
        log_message(f"Inserted post '{post.slug}' as {ctx.post_id}")

        for name, code, step in self._followup_steps(ctx):
            try:
                step()
            except TimestampFormatError as e:
                outcomes.append(StepOutcome(name, "failed", str(e)))
                report_error(code, report, e)
                log_message(f"Stopping import of '{post.slug}': {e}", level="ERROR")
                return IngestionResult(ImportStatus.BAD_REQUEST, outcomes=outcomes, message=str(e))
            except _Skip as e:
                outcomes.append(StepOutcome(name, "skipped", str(e)))
                report_error(e.code, report)
            except CONNECTION_ERRORS:
                raise
            except Exception as e:
                outcomes.append(StepOutcome(name, "failed", str(e)))
                report_error(code, report, e)
                log_message(f"Step '{name}' failed for post '{post.slug}': {e}", level="ERROR")
            else:
                outcomes.append(StepOutcome(name, "ok"))

        reply = PostReply(
            id=ctx.post_id,
            title=post.title,
            slug=post.slug,
            created_at=post.created_at,
            updated_at=post.updated_at,
            author_id=author_id,
        )
        result = IngestionResult(ImportStatus.CREATED, reply=reply, outcomes=outcomes)
        report_ok("POST_CREATED", report, {"post_id": ctx.post_id, "failed_steps": result.failed_steps})
        return result

    def _followup_steps(self, ctx: _PostContext) -> List[Step]:
        steps: List[Step] = [
            ("excerpt", "EXCERPT_UPDATE", partial(self._update_excerpt, ctx)),
            ("post_author", "POST_AUTHOR_INSERT", partial(self._link_author, ctx)),
        ]
        for label in split_tag_labels(ctx.post.tag_labels):
            steps.append((f"post_tag:{label}", "POST_TAG_INSERT", partial(self._link_tag, ctx, label)))
        steps += [
            ("created_at", "INVALID_TIMESTAMP", partial(self._parse_timestamp, ctx)),
            ("mobiledoc_revision", "MOBILEDOC_REVISION_INSERT", partial(self._insert_mobiledoc_revision, ctx)),
            ("post_revision", "POST_REVISION_INSERT", partial(self._insert_post_revision, ctx)),
            ("post_meta", "POST_META_INSERT", partial(self._insert_meta, ctx)),
        ]
        return steps

    ###########################################################################
    # Steps
    ###########################################################################

    def _insert_post(self, ctx: _PostContext) -> None:
        post = ctx.post
        record = PostRecord(
            id=ctx.post_id,
            uuid=str(uuid.uuid4()),
            title=post.title,
            slug=post.slug,
            html=post.html_body,
            lexical=html_to_lexical_json(post.html_body),
            created_at=post.created_at,
            updated_at=post.updated_at,
            created_by=ctx.author_id,
            published_by=ctx.author_id,
            published_at=post.updated_at,
            feature_image=feature_image_reference(post.feature_image_url),
        )
        try:
            self.store.insert("posts", record.model_dump())
        except CONNECTION_ERRORS:
            raise
        except Exception as e:
            raise PostInsertError(str(e)) from e

    def _update_excerpt(self, ctx: _PostContext) -> None:
        self.store.execute(
            "UPDATE posts SET custom_excerpt = ? WHERE id = ?",
            [ctx.post.excerpt, ctx.post_id],
        )

    def _link_author(self, ctx: _PostContext) -> None:
        record = PostAuthorRecord(id=generate_object_id(), post_id=ctx.post_id, author_id=ctx.author_id)
        self.store.insert("posts_authors", record.model_dump())

    def _link_tag(self, ctx: _PostContext, label: str) -> None:
        tag_id = self.tags.resolve(label)
        if tag_id is None:
            raise _Skip("TAG_NOT_FOUND", f"tag '{label}' not found")
        record = PostTagRecord(id=generate_object_id(), post_id=ctx.post_id, tag_id=tag_id)
        self.store.insert("posts_tags", record.model_dump())

    def _parse_timestamp(self, ctx: _PostContext) -> None:
        ctx.created_at_ts = parse_created_at(ctx.post.created_at)

    def _insert_mobiledoc_revision(self, ctx: _PostContext) -> None:
        record = MobiledocRevisionRecord(
            id=generate_object_id(),
            post_id=ctx.post_id,
            mobiledoc=html_to_mobiledoc(ctx.post.html_body),
            created_at_ts=ctx.created_at_ts,
            created_at=ctx.post.created_at,
        )
        self.store.insert("mobiledoc_revisions", record.model_dump())

    def _insert_post_revision(self, ctx: _PostContext) -> None:
        record = PostRevisionRecord(
            id=generate_object_id(),
            post_id=ctx.post_id,
            lexical=html_to_mobiledoc(ctx.post.html_body),
            created_at_ts=ctx.created_at_ts,
            created_at=ctx.post.created_at,
            title=ctx.post.title,
            author_id=ctx.author_id,
        )
        self.store.insert("post_revisions", record.model_dump())

    def _insert_meta(self, ctx: _PostContext) -> None:
        record = PostMetaRecord(
            id=generate_object_id(),
            post_id=ctx.post_id,
            meta_title=resolve_meta_title(ctx.post.title, ctx.post.meta_title),
            meta_description=ctx.post.excerpt,
        )
        self.store.insert("posts_meta", record.model_dump())
