"""Sentiment analysis of social-media comments captured in screenshots."""

from .aggregate import aggregate, aggregate_folder, aggregate_posts
from .pipeline import AnalysisPipeline
from .schemas import AnalysisStats, CommentRecord

__version__ = "0.1.0"

__all__ = [
    "AnalysisPipeline",
    "AnalysisStats",
    "CommentRecord",
    "aggregate",
    "aggregate_folder",
    "aggregate_posts",
]
