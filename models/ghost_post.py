from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PostPayload(BaseModel):
    """A post as exported from WordPress, ready to be written to Ghost.

    Field aliases are the keys used on the wire (``html``, ``author_id``,
    ``image_url``, ``tags``); the Python names may be used as well.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    title: str
    slug: str
    html_body: str = Field("", alias="html")
    excerpt: str = ""
    created_at: str
    updated_at: str
    author_external_ref: str = Field(..., alias="author_id")
    feature_image_url: Optional[str] = Field(None, alias="image_url")
    meta_title: Optional[str] = None
    tag_labels: str = Field("", alias="tags")

    @field_validator("author_external_ref", mode="before")
    @classmethod
    def _ref_as_text(cls, v: Any):
        # WordPress exports numeric user ids; the mapping table stores text.
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("html_body", "excerpt", "tag_labels", mode="before")
    @classmethod
    def _none_as_empty(cls, v: Any):
        return "" if v is None else v

    def as_report(self) -> dict[str, Any]:
        return {"slug": self.slug, "title": self.title}


class PostReply(BaseModel):
    id: str
    title: str
    slug: str
    created_at: str
    updated_at: str
    author_id: str


# --- Rows written to the Ghost schema ---


class PostRecord(BaseModel):
    id: str
    uuid: str
    title: str
    slug: str
    html: str
    lexical: str
    created_at: str
    updated_at: str
    created_by: str
    published_by: str
    published_at: str
    feature_image: Optional[str] = None
    email_recipient_filter: str = "all"
    status: str = "published"
    visibility: str = "public"


class PostAuthorRecord(BaseModel):
    id: str
    post_id: str
    author_id: str
    sort_order: int = 0


class PostTagRecord(BaseModel):
    id: str
    post_id: str
    tag_id: str
    sort_order: int = 0


class MobiledocRevisionRecord(BaseModel):
    id: str
    post_id: str
    mobiledoc: str
    created_at_ts: int
    created_at: str


class PostRevisionRecord(BaseModel):
    id: str
    post_id: str
    lexical: str
    created_at_ts: int
    created_at: str
    title: str
    post_status: str = "published"
    author_id: str
    reason: str = "published"


class PostMetaRecord(BaseModel):
    id: str
    post_id: str
    meta_title: str
    meta_description: str
