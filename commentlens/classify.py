from __future__ import annotations
import json
import logging
from typing import Optional

from pydantic import ValidationError

from .config import CFG
from .exceptions import ClassificationError
from .llm_client import ModelClient
from .prompts import CLASSIFY_PROMPT, CLASSIFY_SCHEMA, CLASSIFY_SYSTEM_INSTRUCTION
from .sanitize import clean_json
from .schemas import ClassificationResponse, CommentRecord

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "[...]"


def truncate_comment(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_MARKER


def decode_classification(raw: str) -> ClassificationResponse:
    payload = clean_json(raw)
    try:
        data = json.loads(payload)
    except ValueError as e:
        raise ClassificationError(f"classification response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ClassificationError(f"classification response is a {type(data).__name__}, expected an object")
    try:
        return ClassificationResponse.model_validate(data)
    except ValidationError as e:
        raise ClassificationError(str(e)) from e


async def classify_comment(
    client: ModelClient,
    text: str,
    source_image: str,
    *,
    max_chars: Optional[int] = None,
    temperature: Optional[float] = None,
) -> CommentRecord:
    """
    Label one comment. Always returns a record: any failure inside this
    call yields the neutral/zero-confidence fallback so the comment is
    still counted.
    """
    limit = CFG.max_comment_chars if max_chars is None else max_chars
    prompt = CLASSIFY_PROMPT.format(comment=truncate_comment(text, limit))
    try:
        raw = await client.generate(
            prompt,
            response_schema=CLASSIFY_SCHEMA,
            system_instruction=CLASSIFY_SYSTEM_INSTRUCTION,
            temperature=CFG.temperature if temperature is None else temperature,
        )
        result = decode_classification(raw)
    except Exception as e:
        logger.warning("classification failed for a comment from %s: %s", source_image, e)
        return CommentRecord.fallback(text, source_image)

    logger.debug("classified comment from %s as %s (%s)", source_image, result.sentiment, result.reasoning)
    return result.to_record(text, source_image)
