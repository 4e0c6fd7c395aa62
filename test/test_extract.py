import asyncio

import pytest

from commentlens.exceptions import ExtractionError, ModelRequestError
from commentlens.extract import extract_comments, parse_comment_list
from commentlens.prompts import EXTRACT_SCHEMA
from fakes import FakeModelClient, make_image


def test_parse_plain_array():
    assert parse_comment_list('["Super appli", "Ça rame trop"]') == ["Super appli", "Ça rame trop"]


def test_parse_fenced_array_with_prose():
    raw = 'Voici les commentaires :\n```json\n["un", "deux"]\n```'
    assert parse_comment_list(raw) == ["un", "deux"]


def test_parse_skips_blank_and_non_string_items():
    assert parse_comment_list('["a", "", "   ", 3, null, " b "]') == ["a", " b "]


@pytest.mark.parametrize("raw", ["", "no comments here", '{"comments": ["a"]}', '["a", "b"', "[]"])
def test_parse_unusable_means_no_comments(raw):
    assert parse_comment_list(raw) == []


def test_extract_comments_keeps_model_order():
    client = FakeModelClient(extractions={"a.png": '["third", "first", "second"]'})
    assert asyncio.run(extract_comments(client, make_image("a.png"))) == ["third", "first", "second"]


def test_extract_request_carries_image_and_schema():
    seen = {}

    class Recorder:
        async def generate(self, prompt, **kwargs):
            seen.update(kwargs)
            return '["ok"]'

    image = make_image("a.png")
    asyncio.run(extract_comments(Recorder(), image))
    assert seen["image"] is image
    assert seen["response_schema"] == EXTRACT_SCHEMA


def test_extract_request_failure_is_fatal():
    client = FakeModelClient(extractions={"a.png": ModelRequestError("quota exceeded", status_code=429)})
    with pytest.raises(ExtractionError) as exc:
        asyncio.run(extract_comments(client, make_image("a.png")))
    assert exc.value.image_name == "a.png"
    assert "quota exceeded" in str(exc.value)
