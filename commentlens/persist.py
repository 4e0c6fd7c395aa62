"""
Storage of analysis results.

PostStore keeps campaigns and posts in DuckDB; a post's analysis results
live in its `analysis_data` column as a JSON array of records. Upserts
replace the whole array; there is no multi-record transaction.
"""
from __future__ import annotations
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import duckdb

from .aggregate import records_to_frame
from .exceptions import StoreError
from .io_utils import connect
from .schemas import PLATFORMS, Campaign, CommentRecord, PlatformFolder, Post, new_id

logger = logging.getLogger(__name__)

CAMPAIGNS_TABLE = "campaigns"
POSTS_TABLE = "posts"
_PLATFORM_IDS = {pid for pid, _ in PLATFORMS}


def _dump_records(records: Iterable[CommentRecord]) -> str:
    return json.dumps([r.to_store() for r in records], ensure_ascii=False)


def _load_records(raw: Optional[str]) -> List[CommentRecord]:
    if not raw:
        return []
    return [CommentRecord.model_validate(d) for d in json.loads(raw)]


class PostStore:
    def __init__(self, path: str | None = None, *, connection: duckdb.DuckDBPyConnection | None = None):
        self.conn = connection if connection is not None else connect(path)
        self._ensure_tables()

    def close(self) -> None:
        self.conn.close()

    def _execute(self, sql: str, params: list | None = None):
        try:
            if params is None:
                return self.conn.execute(sql)
            return self.conn.execute(sql, params)
        except duckdb.Error as e:
            raise StoreError(f"database error: {e}") from e

    def _ensure_tables(self) -> None:
        self._execute(
            f"""CREATE TABLE IF NOT EXISTS {CAMPAIGNS_TABLE} (
                id         TEXT PRIMARY KEY,
                name       TEXT,
                created_at TEXT
            )"""
        )
        self._execute(
            f"""CREATE TABLE IF NOT EXISTS {POSTS_TABLE} (
                id            TEXT PRIMARY KEY,
                campaign_id   TEXT,
                platform_id   TEXT,
                name          TEXT,
                created_at    TEXT,
                analysis_data TEXT
            )"""
        )

    # ---------------- campaigns & posts ----------------
    def create_campaign(self, name: str) -> Campaign:
        if not name.strip():
            raise StoreError("campaign name must not be empty")
        campaign = Campaign(name=name.strip())
        self._execute(
            f"INSERT INTO {CAMPAIGNS_TABLE} VALUES (?, ?, ?)",
            [campaign.id, campaign.name, campaign.created_at.isoformat()],
        )
        return campaign

    def create_post(self, campaign_id: str, platform_id: str, name: str) -> Post:
        if platform_id not in _PLATFORM_IDS:
            raise StoreError(f"unknown platform {platform_id!r}")
        if not name.strip():
            raise StoreError("post name must not be empty")
        found = self._execute(f"SELECT 1 FROM {CAMPAIGNS_TABLE} WHERE id = ?", [campaign_id]).fetchone()
        if found is None:
            raise StoreError(f"unknown campaign {campaign_id!r}")
        post = Post(id=new_id(), name=name.strip(), platform_id=platform_id, campaign_id=campaign_id)
        self._execute(
            f"INSERT INTO {POSTS_TABLE} VALUES (?, ?, ?, ?, ?, ?)",
            [post.id, campaign_id, platform_id, post.name, post.created_at.isoformat(), "[]"],
        )
        return post

    def load_post(self, post_id: str) -> Post:
        row = self._execute(
            f"SELECT id, campaign_id, platform_id, name, created_at, analysis_data FROM {POSTS_TABLE} WHERE id = ?",
            [post_id],
        ).fetchone()
        if row is None or row[2] is None:
            raise StoreError(f"unknown post {post_id!r}")
        return self._row_to_post(row)

    @staticmethod
    def _row_to_post(row) -> Post:
        pid, campaign_id, platform_id, name, created_at, analysis_data = row
        records = _load_records(analysis_data)
        return Post(
            id=pid,
            campaign_id=campaign_id,
            platform_id=platform_id,
            name=name or "",
            created_at=datetime.fromisoformat(created_at),
            records=records,
            state="complete" if records else "idle",
        )

    def load_campaigns(self) -> List[Campaign]:
        """Campaign -> platform folder -> post tree, newest campaign first."""
        campaign_rows = self._execute(
            f"SELECT id, name, created_at FROM {CAMPAIGNS_TABLE} ORDER BY created_at DESC"
        ).fetchall()
        post_rows = self._execute(
            f"""SELECT id, campaign_id, platform_id, name, created_at, analysis_data
                FROM {POSTS_TABLE}
                WHERE campaign_id IS NOT NULL
                ORDER BY created_at"""
        ).fetchall()

        by_campaign: Dict[str, List[Post]] = {}
        for row in post_rows:
            if row[2] not in _PLATFORM_IDS:
                logger.warning("skipping post %s with unknown platform %r", row[0], row[2])
                continue
            by_campaign.setdefault(row[1], []).append(self._row_to_post(row))

        campaigns = []
        for cid, name, created_at in campaign_rows:
            posts = by_campaign.get(cid, [])
            folders = [
                PlatformFolder(id=pid, name=pname, posts=[p for p in posts if p.platform_id == pid])
                for pid, pname in PLATFORMS
            ]
            campaigns.append(Campaign(id=cid, name=name, created_at=datetime.fromisoformat(created_at), folders=folders))
        return campaigns

    def load_campaign(self, campaign_id: str) -> Campaign:
        for c in self.load_campaigns():
            if c.id == campaign_id:
                return c
        raise StoreError(f"unknown campaign {campaign_id!r}")

    # ---------------- analysis data ----------------
    def upsert_analysis(self, post_id: str, records: Iterable[CommentRecord]) -> None:
        """Replace a registered post's analysis data; never creates posts."""
        found = self._execute(f"SELECT 1 FROM {POSTS_TABLE} WHERE id = ?", [post_id]).fetchone()
        if found is None:
            raise StoreError(f"unknown post {post_id!r}")
        self._execute(
            f"UPDATE {POSTS_TABLE} SET analysis_data = ? WHERE id = ?",
            [_dump_records(records), post_id],
        )

    def load_analysis(self, post_id: str) -> List[CommentRecord]:
        row = self._execute(f"SELECT analysis_data FROM {POSTS_TABLE} WHERE id = ?", [post_id]).fetchone()
        return _load_records(row[0]) if row else []


class InMemoryPostStore:
    """
    Same analysis contract as PostStore, kept in a dict. Unlike PostStore
    it has no post registry, so upserting an unseen id just creates it.
    """

    def __init__(self):
        self._data: Dict[str, List[Dict[str, Any]]] = {}

    def upsert_analysis(self, post_id: str, records: Iterable[CommentRecord]) -> None:
        self._data[post_id] = [r.to_store() for r in records]

    def load_analysis(self, post_id: str) -> List[CommentRecord]:
        return [CommentRecord.model_validate(d) for d in self._data.get(post_id, [])]


# ---------------- exports ----------------
def export_records(records: Iterable[CommentRecord], path: str | Path) -> Path:
    """Write records as csv, parquet or json depending on the file suffix."""
    out = Path(path)
    df = records_to_frame(records)
    out.parent.mkdir(parents=True, exist_ok=True)
    suffix = out.suffix.lower()
    if suffix == ".csv":
        df.to_csv(out, index=False)
    elif suffix == ".parquet":
        df.to_parquet(out, index=False)
    elif suffix == ".json":
        df.to_json(out, orient="records", force_ascii=False, indent=2)
    else:
        raise ValueError(f"unsupported export format {suffix!r}; use .csv, .parquet or .json")
    logger.info("exported %d records to %s", len(df), out)
    return out


def export_campaigns(campaigns: Iterable[Campaign], path: str | Path) -> Path:
    """Full JSON backup of the campaign tree (image bytes are never stored)."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    data = [c.model_dump(mode="json", by_alias=True) for c in campaigns]
    out.write_text(json.dumps(data, ensure_ascii=False, indent=2))
    return out
