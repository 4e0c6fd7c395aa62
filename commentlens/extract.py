from __future__ import annotations
import json
import logging
from typing import List

from .exceptions import ExtractionError
from .llm_client import ModelClient
from .prompts import EXTRACT_PROMPT, EXTRACT_SCHEMA
from .sanitize import clean_json
from .schemas import ImageInput

logger = logging.getLogger(__name__)


def parse_comment_list(raw: str) -> List[str]:
    """
    Decode the extraction response into comment strings.
    Anything unparseable is treated as "no comments", not as an error.
    """
    payload = clean_json(raw)
    if not payload:
        return []
    try:
        data = json.loads(payload)
    except ValueError as e:
        logger.warning("extraction response is not valid JSON: %s", e)
        return []
    if not isinstance(data, list):
        logger.warning("extraction response is a %s, expected a list", type(data).__name__)
        return []
    return [c for c in data if isinstance(c, str) and c.strip()]


async def extract_comments(client: ModelClient, image: ImageInput) -> List[str]:
    """
    One extraction request per image; comments come back in model order.
    Request failures are fatal for the image and surface as ExtractionError.
    """
    try:
        raw = await client.generate(EXTRACT_PROMPT, image=image, response_schema=EXTRACT_SCHEMA)
    except Exception as e:
        raise ExtractionError(image.name, e) from e

    comments = parse_comment_list(raw)
    if not comments:
        logger.warning("no comments found in %s", image.name)
    return comments
