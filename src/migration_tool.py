"""
High-level orchestration of the WordPress → Ghost import.

This module defines a :class:`GhostImportTool` class that ties together the
extractors, the Ghost store and the post writer into a complete pipeline.
It reads posts from CSV or XML export files, validates each one into a
:class:`~models.ghost_post.PostPayload`, imports it and keeps a tally of the
outcome.

Configuration is supplied via a JSON file path or directly as a dictionary.
The ``ghost`` section holds ``db_path`` and ``default_author_id``; optional
migration settings (``limit``, ``exports_dir``) live under ``migration``.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from models.ghost_post import PostPayload
from src.extractors.wordpress_extractor import extract_posts_from_csv, extract_posts_from_xml
from src.migrators.ghost_migrator import ImportStatus, IngestionResult, PostIngestionWriter
from src.migrators.ghost_store import GhostStore
from src.utils.authors import DEFAULT_AUTHOR_ID, AuthorResolver
from src.utils.errors import log_message, report_error
from src.utils.tags import TagResolver


class GhostImportTool:
    """
    Encapsulates the state required to import a set of WordPress posts into
    a Ghost database.  This class is responsible for reading configuration,
    extracting posts and feeding them to :class:`PostIngestionWriter`.
    Detailed success and failure information is recorded using the
    :mod:`src.utils.errors` module.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, *, config_file: Optional[str] = None,
                 store: Optional[GhostStore] = None) -> None:
        if config_file and os.path.exists(config_file):
            with open(config_file, "r", encoding="utf-8") as f:
                config = json.load(f)
        elif config is None:
            # Default configuration
            config = {}

        # Ensure essential keys exist to prevent KeyErrors
        config.setdefault("ghost", {})
        config["ghost"].setdefault("db_path", os.getenv("GHOST_DB_PATH", "data/ghost.duckdb"))
        config["ghost"].setdefault("default_author_id", os.getenv("GHOST_DEFAULT_AUTHOR_ID", DEFAULT_AUTHOR_ID))

        config.setdefault("migration", {})
        config["migration"].setdefault("limit", None)
        config["migration"].setdefault("exports_dir", "docs/")

        self.config = config
        self._store = store

    @property
    def store(self) -> GhostStore:
        if self._store is None:
            db_path = self.config["ghost"]["db_path"]
            if db_path != ":memory:":
                os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
            self._store = GhostStore.connect(db_path)
        return self._store

    def build_writer(self) -> PostIngestionWriter:
        store = self.store
        return PostIngestionWriter(
            store,
            AuthorResolver(store, default_author_id=str(self.config["ghost"]["default_author_id"])),
            TagResolver(store),
        )

    def extract_posts(self, csv_path: Optional[str] = None, xml_path: Optional[str] = None) -> List[Dict[str, Any]]:
        posts: List[Dict[str, Any]] = []
        if csv_path and os.path.exists(csv_path):
            log_message(f"Extracting posts from CSV {csv_path}")
            try:
                posts.extend(extract_posts_from_csv(csv_path))
            except Exception as e:
                log_message(f"Error extracting CSV: {e}", "ERROR")
        if xml_path and os.path.exists(xml_path):
            log_message(f"Extracting posts from XML {xml_path}")
            try:
                posts.extend(extract_posts_from_xml(xml_path))
            except Exception as e:
                log_message(f"Error extracting XML: {e}", "ERROR")
        return posts

    def import_post(self, raw: Dict[str, Any], writer: Optional[PostIngestionWriter] = None) -> Optional[IngestionResult]:
        """
        Validate and import a single post.

        :return: The writer's result, or ``None`` when ``raw`` is not a valid
            post payload (the problem is reported and nothing is written).
        """
        try:
            payload = PostPayload.model_validate(raw)
        except ValidationError as e:
            report_error("INVALID_PAYLOAD", raw, e)
            log_message(f"Skipping post '{raw.get('slug', '')}': invalid payload", level="ERROR")
            return None
        return (writer or self.build_writer()).ingest(payload)

    def import_posts(self, posts: List[Dict[str, Any]]) -> Dict[str, int]:
        """
        Import a list of extracted posts in order and return a count per
        outcome (``created``, ``internal_error``, ``bad_request``,
        ``invalid``).  A failing post never stops the run.
        """
        limit: Optional[int] = self.config.get("migration", {}).get("limit")
        summary: Dict[str, int] = {status.value: 0 for status in ImportStatus}
        summary["invalid"] = 0
        writer = self.build_writer()

        for count, raw in enumerate(posts):
            if limit is not None and count >= limit:
                break
            log_message(f"Importing post '{raw.get('slug', '')}'")
            result = self.import_post(raw, writer)
            if result is None:
                summary["invalid"] += 1
                continue
            summary[result.status.value] += 1
            if result.failed_steps:
                log_message(
                    f"Post '{raw.get('slug', '')}' imported with failed steps: {', '.join(result.failed_steps)}",
                    level="WARNING",
                )

        log_message(
            "Import finished: "
            + ", ".join(f"{key}={value}" for key, value in summary.items())
        )
        return summary
