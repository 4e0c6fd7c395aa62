from __future__ import annotations
from typing import Literal, Optional

Sentiment = Literal["positive", "negative", "neutral"]

SENTIMENTS: tuple[Sentiment, ...] = ("positive", "negative", "neutral")


def normalize_sentiment(label: Optional[str]) -> Sentiment:
    """
    Map a free-form model label onto the closed three-way set.

    Substring matching so that verbose or translated labels still land
    ("Positive.", "très négatif", "NEGATIVE (mostly)").
    """
    s = (label or "").strip().lower()
    if "positi" in s:
        return "positive"
    if "negati" in s or "négati" in s:
        return "negative"
    return "neutral"
