"""
Batch analysis of one post's screenshots.

Images are processed one after another; each image's comments are split
into fixed-size batches, the comments of a batch are classified
concurrently and the batches run sequentially. Partial results are
published after every batch.
"""
from __future__ import annotations
import asyncio
import logging
from typing import Callable, Iterable, List, Optional, Sequence

from .classify import classify_comment
from .config import CFG
from .exceptions import AnalysisCancelled, ConfigurationError, ExtractionError
from .extract import extract_comments
from .llm_client import ModelClient
from .schemas import CommentRecord, ImageInput

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]
PartialCallback = Callable[[List[CommentRecord]], None]


def _chunks(items: Sequence[str], size: int) -> Iterable[tuple[int, Sequence[str]]]:
    for start in range(0, len(items), size):
        yield start, items[start:start + size]


class AnalysisPipeline:
    def __init__(
        self,
        client: Optional[ModelClient],
        *,
        batch_size: Optional[int] = None,
        max_comment_chars: Optional[int] = None,
        temperature: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        if client is None:
            raise ConfigurationError("no model client configured for the analysis pipeline")
        self.client = client
        self.batch_size = CFG.batch_size if batch_size is None else batch_size
        if self.batch_size < 1:
            raise ConfigurationError(f"batch size must be at least 1, got {self.batch_size}")
        self.max_comment_chars = max_comment_chars
        self.temperature = temperature
        self.cancel_event = cancel_event or asyncio.Event()

    def cancel(self) -> None:
        self.cancel_event.set()

    def _check_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise AnalysisCancelled()

    async def classify_batch(self, comments: Sequence[str], source_image: str) -> List[CommentRecord]:
        # gather keeps input order regardless of completion order
        results = await asyncio.gather(*(
            classify_comment(
                self.client,
                text,
                source_image,
                max_chars=self.max_comment_chars,
                temperature=self.temperature,
            )
            for text in comments
        ))
        return list(results)

    async def run_analysis(
        self,
        images: Sequence[ImageInput],
        on_progress: Optional[ProgressCallback] = None,
        on_partial: Optional[PartialCallback] = None,
    ) -> List[CommentRecord]:
        """
        Returns every record for the post, image order first, then
        extraction order. Raises ExtractionError if any image fails to
        extract; records already handed to on_partial stay with the caller.
        """
        progress = on_progress or (lambda msg: None)
        records: List[CommentRecord] = []

        for image in images:
            self._check_cancelled()
            progress(f"Extracting text from {image.name}...")
            try:
                comments = await extract_comments(self.client, image)
            except ExtractionError:
                logger.error("aborting run: extraction failed for %s", image.name)
                raise
            if not comments:
                continue

            total = len(comments)
            logger.info("extracted %d comments from %s", total, image.name)
            for start, batch in _chunks(comments, self.batch_size):
                self._check_cancelled()
                records.extend(await self.classify_batch(batch, image.name))
                progress(f"Analyzed comments {start + 1}-{start + len(batch)} of {total} for {image.name}")
                if on_partial is not None:
                    on_partial(list(records))

        return records
