from __future__ import annotations
import logging
import os
from typing import Dict, List

import matplotlib
matplotlib.use("Agg")  # files only, no display
import matplotlib.pyplot as plt

from .aggregate import sentiment_shares, top_labels
from .schemas import AnalysisStats

logger = logging.getLogger(__name__)

SENTIMENT_COLORS = {"positive": "#22c55e", "negative": "#ef4444", "neutral": "#94a3b8"}

# --- utils ------------------------------------------------------------

def _ensure_dir(path: str):
    os.makedirs(path, exist_ok=True)

def _slug(title: str) -> str:
    return "".join(c if c.isalnum() else "_" for c in title.lower()).strip("_") or "stats"

# --- 1) Sentiment distribution ---------------------------------------
def plot_sentiment_distribution(stats: AnalysisStats, out_dir: str = "reports/charts", title: str = "Comments") -> str | None:
    """
    Bar chart of positive/negative/neutral counts, labeled with shares.
    """
    if stats.total == 0:
        logger.info("[viz] no comments to plot for %s", title)
        return None
    _ensure_dir(out_dir)

    labels = ["positive", "negative", "neutral"]
    counts = [stats.positive, stats.negative, stats.neutral]
    shares = sentiment_shares(stats)

    plt.figure(figsize=(7, 5))
    plt.bar(labels, counts, color=[SENTIMENT_COLORS[s] for s in labels])
    plt.title(f"Sentiment distribution: {title} (n={stats.total})")
    plt.ylabel("Comments")
    for i, (name, n) in enumerate(zip(labels, counts)):
        plt.text(i, n, f"{n} • {shares[name]}%", ha="center", va="bottom")

    out_path = os.path.join(out_dir, f"{_slug(title)}_sentiment.png")
    plt.tight_layout()
    plt.savefig(out_path, dpi=160)
    plt.close()
    logger.info("[viz] saved %s", out_path)
    return out_path

# --- 2) Themes / topics ---------------------------------------------
def plot_label_counts(counts: Dict[str, int], kind: str, out_dir: str = "reports/charts",
                      title: str = "Comments", top_n: int = 10) -> str | None:
    """
    Horizontal bars of the top-N theme or topic labels.
    """
    if not counts:
        logger.info("[viz] no %s to plot for %s", kind, title)
        return None
    _ensure_dir(out_dir)

    top = top_labels(counts, top_n)
    names = [name for name, _ in reversed(top)]
    values = [n for _, n in reversed(top)]

    plt.figure(figsize=(9, max(3, 0.45 * len(top) + 1.5)))
    plt.barh(names, values)
    plt.title(f"Top {len(top)} {kind}: {title}")
    plt.xlabel("Comments")

    out_path = os.path.join(out_dir, f"{_slug(title)}_{kind}.png")
    plt.tight_layout()
    plt.savefig(out_path, dpi=160)
    plt.close()
    logger.info("[viz] saved %s", out_path)
    return out_path

# --- entry ------------------------------------------------------------
def render_all(stats: AnalysisStats, out_dir: str = "reports/charts", title: str = "Comments") -> List[str]:
    paths = [
        plot_sentiment_distribution(stats, out_dir, title),
        plot_label_counts(stats.themes, "themes", out_dir, title),
        plot_label_counts(stats.topics, "topics", out_dir, title),
    ]
    return [p for p in paths if p]
