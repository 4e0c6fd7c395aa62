"""
Post-level analysis runs: state transitions, incremental publication and
persistence around the batch pipeline.
"""
from __future__ import annotations
import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from tqdm import tqdm

from .exceptions import AnalysisCancelled, CommentLensError, ExtractionError, StoreError
from .io_utils import list_images, load_image
from .pipeline import AnalysisPipeline, ProgressCallback
from .schemas import CommentRecord, ImageInput, PlatformFolder, Post

logger = logging.getLogger(__name__)


class AnalysisStore(Protocol):
    def upsert_analysis(self, post_id: str, records: List[CommentRecord]) -> None:
        ...

    def load_analysis(self, post_id: str) -> List[CommentRecord]:
        ...


def _save(store: Optional[AnalysisStore], post: Post) -> None:
    if store is None:
        return
    try:
        store.upsert_analysis(post.id, post.records)
    except StoreError as e:
        # the in-memory result stays authoritative; next publish retries
        logger.error("failed to save analysis for post %s: %s", post.id, e)


def _fail(post: Post, message: str) -> None:
    logger.error("analysis of post %s failed: %s", post.name, message)
    post.records = []
    post.state = "error"
    post.error = message


def _load_images(paths: Sequence[str]) -> List[ImageInput]:
    """Load image files; a directory contributes its images sorted by name."""
    images = []
    for path in paths:
        try:
            files = list_images(path) if Path(path).is_dir() else [Path(path)]
            images.extend(load_image(p) for p in files)
        except OSError as e:
            raise ExtractionError(str(path), e) from e
    return images


async def analyze_post(
    post: Post,
    pipeline: AnalysisPipeline,
    store: Optional[AnalysisStore] = None,
    *,
    images: Optional[Sequence[ImageInput]] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> Post:
    """
    Run the pipeline for one post and leave it in a terminal state.

    Previous results are replaced, never appended to. On failure the
    in-progress records are dropped, the post is marked 'error' and the
    exception is re-raised; anything already saved is left in the store.
    """
    if images is None and not post.image_paths:
        logger.info("post %s has no images; nothing to analyze", post.name)
        return post

    post.records = []
    post.state = "analyzing"
    post.error = None

    def _publish(records: List[CommentRecord]) -> None:
        post.records = records
        _save(store, post)

    try:
        if images is None:
            images = _load_images(post.image_paths)
        records = await pipeline.run_analysis(images, on_progress=on_progress, on_partial=_publish)
    except CommentLensError as e:
        _fail(post, e.message)
        raise
    except asyncio.CancelledError:
        _fail(post, "analysis cancelled")
        raise
    except BaseException as e:
        _fail(post, str(e) or type(e).__name__)
        raise

    post.records = records
    post.state = "complete"
    _save(store, post)
    logger.info("post %s analyzed: %d comments", post.name, len(records))
    return post


async def analyze_folder(
    folder: PlatformFolder,
    pipeline: AnalysisPipeline,
    store: Optional[AnalysisStore] = None,
) -> List[Post]:
    """
    Analyze every post of a folder that has images, one post at a time.
    Returns the posts that failed; cancellation stops the whole folder.
    """
    failed: List[Post] = []
    todo = [p for p in folder.posts if p.image_paths]
    for post in tqdm(todo, total=len(todo), leave=False, desc=folder.name):
        try:
            await analyze_post(post, pipeline, store)
        except AnalysisCancelled:
            raise
        except CommentLensError as e:
            logger.warning("skipping failed post %s: %s", post.name, e)
            failed.append(post)
    return failed
