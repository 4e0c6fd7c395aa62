"""
Aggregate labeled comment records into summary statistics.
- aggregate(records): one post, or any concatenation of records
- aggregate_posts / aggregate_folder / aggregate_campaign: union of posts
Statistics are always derived from the current records, never stored.
"""
from __future__ import annotations
from typing import Dict, Iterable, List, Tuple

import pandas as pd

from .schemas import AnalysisStats, Campaign, CommentRecord, PlatformFolder, Post

RECORD_COLUMNS = ["id", "imageSource", "text", "sentiment", "confidence", "topic", "theme"]


def aggregate(records: Iterable[CommentRecord]) -> AnalysisStats:
    stats = AnalysisStats()
    for r in records:
        stats.total += 1
        setattr(stats, r.sentiment, getattr(stats, r.sentiment) + 1)
        stats.themes[r.theme] = stats.themes.get(r.theme, 0) + 1
        stats.topics[r.topic] = stats.topics.get(r.topic, 0) + 1
    return stats


def aggregate_posts(posts: Iterable[Post]) -> AnalysisStats:
    return aggregate(r for post in posts for r in post.records)


def aggregate_folder(folder: PlatformFolder) -> AnalysisStats:
    return aggregate_posts(folder.posts)


def aggregate_campaign(campaign: Campaign) -> AnalysisStats:
    return aggregate_posts(p for folder in campaign.folders for p in folder.posts)


def sentiment_shares(stats: AnalysisStats) -> Dict[str, int]:
    """Whole-number percentages per sentiment; all zero for empty stats."""
    if stats.total == 0:
        return {"positive": 0, "negative": 0, "neutral": 0}
    return {
        "positive": round(stats.positive * 100 / stats.total),
        "negative": round(stats.negative * 100 / stats.total),
        "neutral": round(stats.neutral * 100 / stats.total),
    }


def top_labels(counts: Dict[str, int], n: int = 10) -> List[Tuple[str, int]]:
    """Most frequent labels, ties broken alphabetically."""
    return sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))[:n]


def records_to_frame(records: Iterable[CommentRecord]) -> pd.DataFrame:
    rows = [r.to_store() for r in records]
    return pd.DataFrame(rows, columns=RECORD_COLUMNS)
