import json

import duckdb
import pytest

from conftest import MAPPED_AUTHOR_ID
from models.ghost_post import PostPayload
from src.migrators.ghost_migrator import (
    ImportStatus,
    PostIngestionWriter,
    parse_created_at,
    resolve_meta_title,
)
from src.migrators.ghost_store import GhostStore
from src.utils.authors import AuthorResolver
from src.utils.errors import TimestampFormatError
from src.utils.tags import TagResolver


class FlakyStore(GhostStore):
    """Refuses inserts into the given tables."""

    def __init__(self, conn, fail_tables=()):
        super().__init__(conn)
        self.fail_tables = set(fail_tables)

    def insert(self, table, row):
        if table in self.fail_tables:
            raise RuntimeError(f"insert into {table} refused")
        return super().insert(table, row)


class DroppedConnectionStore(GhostStore):
    """Loses the connection on the first insert into the given table."""

    def __init__(self, conn, drop_on):
        super().__init__(conn)
        self.drop_on = drop_on

    def insert(self, table, row):
        if table == self.drop_on:
            raise duckdb.ConnectionException("Connection already closed!")
        return super().insert(table, row)


def make_payload(**overrides):
    data = {
        "title": "Hello World",
        "slug": "hello-world",
        "html": "<p>First</p><p>Second <em>part</em></p>",
        "excerpt": "A short excerpt",
        "created_at": "2024-01-15 10:30:00",
        "updated_at": "2024-01-16 08:00:00",
        "author_id": "42",
        "image_url": "/content/images/2024/01/cover.jpg",
        "tags": "news,python",
    }
    data.update(overrides)
    return PostPayload.model_validate(data)


def make_writer(store):
    return PostIngestionWriter(store, AuthorResolver(store, default_author_id="1"), TagResolver(store))


def rows(store, sql, *params):
    if params:
        return store.conn.execute(sql, list(params)).fetchall()
    return store.conn.execute(sql).fetchall()


def test_end_to_end_import(store):
    result = make_writer(store).ingest(make_payload())

    assert result.status is ImportStatus.CREATED
    assert result.failed_steps == []
    post_id = result.reply.id
    assert len(post_id) == 24
    assert result.reply.slug == "hello-world"
    assert result.reply.author_id == MAPPED_AUTHOR_ID

    assert rows(store, "SELECT author_id, sort_order FROM posts_authors WHERE post_id = ?", post_id) == [
        (MAPPED_AUTHOR_ID, 0)
    ]
    tag_ids = sorted(r[0] for r in rows(store, "SELECT tag_id FROM posts_tags WHERE post_id = ?", post_id))
    assert tag_ids == ["bbbbbbbbbbbbbbbbbbbbbb01", "bbbbbbbbbbbbbbbbbbbbbb02"]


def test_post_row_contents(store):
    result = make_writer(store).ingest(make_payload())
    (row,) = rows(
        store,
        "SELECT title, slug, html, lexical, created_by, published_by, published_at, feature_image, "
        "status, visibility, email_recipient_filter, custom_excerpt, uuid FROM posts WHERE id = ?",
        result.reply.id,
    )
    (title, slug, html, lexical, created_by, published_by, published_at, feature_image,
     status, visibility, recipients, excerpt, post_uuid) = row
    assert (title, slug) == ("Hello World", "hello-world")
    assert html == "<p>First</p><p>Second <em>part</em></p>"
    assert len(json.loads(lexical)["root"]["children"]) == 2
    assert created_by == published_by == MAPPED_AUTHOR_ID
    assert published_at == "2024-01-16 08:00:00"
    assert feature_image == "__GHOST_URL__/content/images/2024/01/cover.jpg"
    assert (status, visibility, recipients) == ("published", "public", "all")
    assert excerpt == "A short excerpt"
    assert len(post_uuid) == 36


def test_missing_image_is_stored_as_null(store):
    result = make_writer(store).ingest(make_payload(image_url=None))
    assert rows(store, "SELECT feature_image FROM posts WHERE id = ?", result.reply.id) == [(None,)]


def test_unmapped_author_uses_default(store):
    result = make_writer(store).ingest(make_payload(author_id="777"))
    assert result.status is ImportStatus.CREATED
    assert result.reply.author_id == "1"
    assert rows(store, "SELECT author_id FROM posts_authors WHERE post_id = ?", result.reply.id) == [("1",)]


def test_unmapped_author_is_reported(store, reports_in_tmp):
    result = make_writer(store).ingest(make_payload(author_id="777"))

    assert result.outcomes[0].step == "author"
    assert result.outcomes[0].status == "skipped"
    assert result.failed_steps == []
    entries = [json.loads(line) for line in (reports_in_tmp / "errors.jsonl").read_text(encoding="utf-8").splitlines()]
    assert [e["code"] for e in entries] == ["AUTHOR_NOT_MAPPED"]
    assert entries[0]["slug"] == "hello-world"


def test_mapped_author_outcome_is_ok(store):
    result = make_writer(store).ingest(make_payload())
    assert (result.outcomes[0].step, result.outcomes[0].status) == ("author", "ok")


def test_missing_tag_is_skipped(store, reports_in_tmp):
    result = make_writer(store).ingest(make_payload(tags="news,unknown,python"))

    assert result.status is ImportStatus.CREATED
    assert len(rows(store, "SELECT id FROM posts_tags WHERE post_id = ?", result.reply.id)) == 2
    skipped = [o for o in result.outcomes if o.status == "skipped"]
    assert [o.step for o in skipped] == ["post_tag:unknown"]
    assert result.failed_steps == []

    entries = [json.loads(line) for line in (reports_in_tmp / "errors.jsonl").read_text(encoding="utf-8").splitlines()]
    assert [e["code"] for e in entries] == ["TAG_NOT_FOUND"]


def test_empty_tag_field_makes_one_lookup_and_no_rows(store):
    result = make_writer(store).ingest(make_payload(tags=""))
    assert result.status is ImportStatus.CREATED
    assert [o.step for o in result.outcomes if o.step.startswith("post_tag:")] == ["post_tag:"]
    assert rows(store, "SELECT id FROM posts_tags WHERE post_id = ?", result.reply.id) == []


def test_epoch_is_shared_by_both_revisions(store):
    result = make_writer(store).ingest(make_payload())
    post_id = result.reply.id

    mobiledoc = rows(store, "SELECT created_at_ts, created_at, mobiledoc FROM mobiledoc_revisions WHERE post_id = ?", post_id)
    revision = rows(
        store,
        "SELECT created_at_ts, lexical, title, post_status, reason, author_id FROM post_revisions WHERE post_id = ?",
        post_id,
    )
    assert mobiledoc[0][:2] == (1705314600, "2024-01-15 10:30:00")
    assert revision[0][0] == 1705314600
    assert revision[0][1] == mobiledoc[0][2]
    assert "<p>First</p><p>Second <em>part</em></p>" in revision[0][1]
    assert revision[0][2:] == ("Hello World", "published", "published", MAPPED_AUTHOR_ID)


def test_bad_timestamp_is_a_client_error(store):
    result = make_writer(store).ingest(make_payload(created_at="not-a-date"))

    assert result.status is ImportStatus.BAD_REQUEST
    assert result.reply is None
    status_code, body = result.to_response()
    assert status_code == 400
    assert "not-a-date" in body["message"]

    # Written before the timestamp was parsed
    assert len(rows(store, "SELECT id FROM posts WHERE slug = ?", "hello-world")) == 1
    assert len(rows(store, "SELECT id FROM posts_authors")) == 1
    assert len(rows(store, "SELECT id FROM posts_tags")) == 2
    # Never reached
    assert rows(store, "SELECT id FROM mobiledoc_revisions") == []
    assert rows(store, "SELECT id FROM post_revisions") == []
    assert rows(store, "SELECT id FROM posts_meta") == []


def test_failed_post_insert_stops_everything(store):
    flaky = FlakyStore(store.conn, fail_tables={"posts"})
    result = make_writer(flaky).ingest(make_payload())

    assert result.status is ImportStatus.INTERNAL_ERROR
    assert result.to_response() == (500, {"message": "Failed to create post"})
    assert [o.step for o in result.outcomes] == ["author", "post"]
    assert rows(store, "SELECT id FROM posts_authors") == []
    assert rows(store, "SELECT id FROM posts_tags") == []


def test_best_effort_failures_do_not_change_the_reply(store):
    flaky = FlakyStore(store.conn, fail_tables={"posts_authors", "post_revisions"})
    result = make_writer(flaky).ingest(make_payload())

    assert result.status is ImportStatus.CREATED
    assert result.to_response()[0] == 201
    assert result.failed_steps == ["post_author", "post_revision"]
    post_id = result.reply.id
    assert len(rows(store, "SELECT id FROM posts_tags WHERE post_id = ?", post_id)) == 2
    assert len(rows(store, "SELECT id FROM mobiledoc_revisions WHERE post_id = ?", post_id)) == 1
    assert len(rows(store, "SELECT id FROM posts_meta WHERE post_id = ?", post_id)) == 1


def test_every_step_is_recorded_in_order(store):
    result = make_writer(store).ingest(make_payload())
    assert [o.step for o in result.outcomes] == [
        "author",
        "post",
        "excerpt",
        "post_author",
        "post_tag:news",
        "post_tag:python",
        "created_at",
        "mobiledoc_revision",
        "post_revision",
        "post_meta",
    ]
    assert all(o.ok for o in result.outcomes)


def test_success_reply_body(store):
    result = make_writer(store).ingest(make_payload())
    status_code, body = result.to_response()
    assert status_code == 201
    assert body == {
        "id": result.reply.id,
        "title": "Hello World",
        "slug": "hello-world",
        "created_at": "2024-01-15 10:30:00",
        "updated_at": "2024-01-16 08:00:00",
        "author_id": MAPPED_AUTHOR_ID,
    }


@pytest.mark.parametrize(
    "title, meta_title, expected",
    [
        ("x" * 40, None, ""),
        ("Short title", None, "Short title"),
        ("x" * 30, None, "x" * 30),
        ("x" * 31, None, ""),
        ("x" * 40, "Explicit", "Explicit"),
        ("Short", "Explicit", "Explicit"),
    ],
)
def test_resolve_meta_title(title, meta_title, expected):
    assert resolve_meta_title(title, meta_title) == expected


def test_meta_record(store):
    long_title = "Migrating forty characters of title text"
    assert len(long_title) == 40
    long_result = make_writer(store).ingest(make_payload(title=long_title, slug="long"))
    short_result = make_writer(store).ingest(make_payload(title="Ten chars!", slug="short"))

    assert rows(store, "SELECT meta_title, meta_description FROM posts_meta WHERE post_id = ?", long_result.reply.id) == [
        ("", "A short excerpt")
    ]
    assert rows(store, "SELECT meta_title FROM posts_meta WHERE post_id = ?", short_result.reply.id) == [("Ten chars!",)]


def test_parse_created_at():
    assert parse_created_at("2024-01-15 10:30:00") == 1705314600
    assert parse_created_at("1970-01-01 00:00:00") == 0
    with pytest.raises(TimestampFormatError):
        parse_created_at("2024-01-15T10:30:00")
    with pytest.raises(TimestampFormatError):
        parse_created_at("")


def test_payload_accepts_numeric_author_and_python_names():
    payload = PostPayload(
        title="t",
        slug="s",
        html_body="<p>x</p>",
        created_at="2024-01-15 10:30:00",
        updated_at="2024-01-15 10:30:00",
        author_external_ref=42,
        tag_labels=None,
    )
    assert payload.author_external_ref == "42"
    assert payload.tag_labels == ""
    assert payload.feature_image_url is None


def test_connection_loss_during_best_effort_step_propagates(store, reports_in_tmp):
    dropping = DroppedConnectionStore(store.conn, drop_on="mobiledoc_revisions")
    with pytest.raises(duckdb.ConnectionException):
        make_writer(dropping).ingest(make_payload())
    assert not (reports_in_tmp / "success.jsonl").exists()


def test_connection_loss_on_post_insert_is_not_an_insert_failure(store):
    dropping = DroppedConnectionStore(store.conn, drop_on="posts")
    with pytest.raises(duckdb.ConnectionException):
        make_writer(dropping).ingest(make_payload())
