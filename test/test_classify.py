import asyncio

import pytest

from commentlens.classify import TRUNCATION_MARKER, classify_comment, decode_classification, truncate_comment
from commentlens.exceptions import ClassificationError, ModelRequestError
from commentlens.prompts import CLASSIFY_SCHEMA, CLASSIFY_SYSTEM_INSTRUCTION
from fakes import FakeModelClient, comment_of, label


def test_decode_defaults_for_missing_fields():
    result = decode_classification('{"reasoning": "ok", "sentiment": "positive"}')
    assert result.sentiment == "positive"
    assert result.confidence == 0.9
    assert result.topic == "Other"
    assert result.theme == "Other"


def test_decode_maps_malformed_fields_to_defaults():
    result = decode_classification(
        '{"sentiment": 42, "confidence": "high", "topic": "", "theme": ["x"]}'
    )
    assert result.sentiment == "neutral"
    assert result.confidence == 0.9
    assert result.topic == "Other"
    assert result.theme == "Other"


def test_decode_clamps_confidence():
    assert decode_classification('{"sentiment": "negative", "confidence": 3}').confidence == 1.0
    assert decode_classification('{"sentiment": "negative", "confidence": -1}').confidence == 0.0
    assert decode_classification('{"sentiment": "negative", "confidence": "0.75"}').confidence == 0.75


@pytest.mark.parametrize("raw", ["not json at all", '["positive"]', '{"sentiment": '])
def test_decode_failure(raw):
    with pytest.raises(ClassificationError):
        decode_classification(raw)


def test_truncate_comment():
    assert truncate_comment("short", 10) == "short"
    assert truncate_comment("x" * 12, 10) == "x" * 10 + TRUNCATION_MARKER


def test_classify_success():
    client = FakeModelClient(classify=lambda c: label("Positive.", "Speed", "Praise"))
    rec = asyncio.run(classify_comment(client, "Super appli, j'adore !", "shot.png"))
    assert rec.sentiment == "positive"
    assert rec.confidence == 0.8
    assert (rec.topic, rec.theme) == ("Speed", "Praise")
    assert rec.text == "Super appli, j'adore !"
    assert rec.source_image == "shot.png"
    assert rec.id


def test_classify_fenced_reply_with_translated_label():
    reply = (
        "Here's the result: ```json\n"
        '{"sentiment":"Très positif","topic":"UI","theme":"Praise"}\n'
        "``` Hope this helps!"
    )
    client = FakeModelClient(classify=lambda c: reply)
    rec = asyncio.run(classify_comment(client, "Belle interface", "shot.png"))
    assert rec.sentiment == "positive"
    assert rec.confidence == 0.9
    assert rec.topic == "UI"
    assert rec.theme == "Praise"


def test_classify_request_failure_yields_fallback():
    def boom(comment):
        raise ModelRequestError("HTTP 500", status_code=500)

    client = FakeModelClient(classify=boom)
    rec = asyncio.run(classify_comment(client, "Ça rame trop", "shot.png"))
    assert rec.sentiment == "neutral"
    assert rec.confidence == 0
    assert rec.topic == "Error"
    assert rec.theme == "Unanalyzed"
    assert rec.text == "Ça rame trop"
    assert rec.source_image == "shot.png"


def test_classify_garbage_reply_yields_fallback():
    client = FakeModelClient(classify=lambda c: "I cannot help with that.")
    rec = asyncio.run(classify_comment(client, "hello", "shot.png"))
    assert rec.topic == "Error"


def test_long_comment_is_truncated_in_prompt_only():
    text = "a" * 6000
    client = FakeModelClient(classify=lambda c: label("neutral"))
    rec = asyncio.run(classify_comment(client, text, "shot.png", max_chars=5000))
    assert client.classify_calls == ["a" * 5000 + TRUNCATION_MARKER]
    assert rec.text == text


def test_request_uses_structured_output():
    seen = {}

    class Recorder:
        async def generate(self, prompt, **kwargs):
            seen.update(kwargs)
            seen["comment"] = comment_of(prompt)
            return label("negative")

    asyncio.run(classify_comment(Recorder(), "bof", "shot.png", temperature=0.1))
    assert seen["response_schema"] == CLASSIFY_SCHEMA
    assert seen["system_instruction"] == CLASSIFY_SYSTEM_INSTRUCTION
    assert seen["temperature"] == 0.1
    assert seen["comment"] == "bof"
    assert "image" not in seen or seen["image"] is None


def test_record_ids_are_unique():
    client = FakeModelClient()
    recs = [asyncio.run(classify_comment(client, "same", "shot.png")) for _ in range(3)]
    assert len({r.id for r in recs}) == 3
