import asyncio
import base64
import json

import httpx
import pytest

from commentlens.config import Settings
from commentlens.exceptions import ConfigurationError, ModelRequestError
from commentlens.llm_client import GeminiClient
from commentlens.prompts import EXTRACT_SCHEMA
from fakes import make_image


def _reply(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def _client(handler, tmp_path, **kwargs):
    settings = Settings(gemini_api_key="test-key", cache_dir=str(tmp_path / "cache"))
    kwargs.setdefault("max_retries", 1)
    return GeminiClient(model="gemini-test", settings=settings, transport=httpx.MockTransport(handler), **kwargs)


def _generate(client, *args, **kwargs):
    async def run():
        async with client:
            return await client.generate(*args, **kwargs)
    return asyncio.run(run())


def test_missing_key_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        GeminiClient(api_key="", settings=Settings(gemini_api_key=None))


def test_generate_with_image_and_schema(tmp_path):
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["key"] = request.headers["x-goog-api-key"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_reply('["a", "b"]'))

    image = make_image("shot.png")
    text = _generate(_client(handler, tmp_path), "extract", image=image, response_schema=EXTRACT_SCHEMA)

    assert text == '["a", "b"]'
    assert seen["path"] == "/v1beta/models/gemini-test:generateContent"
    assert seen["key"] == "test-key"
    parts = seen["body"]["contents"][0]["parts"]
    assert parts[0] == {"text": "extract"}
    assert parts[1]["inline_data"]["mime_type"] == "image/png"
    assert base64.b64decode(parts[1]["inline_data"]["data"]) == image.data
    config = seen["body"]["generationConfig"]
    assert config["responseMimeType"] == "application/json"
    assert config["responseSchema"] == EXTRACT_SCHEMA


def test_system_instruction_and_temperature(tmp_path):
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_reply("{}"))

    _generate(_client(handler, tmp_path), "classify", system_instruction="be nice", temperature=0.1)
    assert seen["body"]["systemInstruction"] == {"parts": [{"text": "be nice"}]}
    assert seen["body"]["generationConfig"]["temperature"] == 0.1


def test_client_error_is_not_retried(tmp_path):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(400, json={"error": {"message": "bad request"}})

    with pytest.raises(ModelRequestError) as exc:
        _generate(_client(handler, tmp_path, max_retries=3), "x")
    assert exc.value.status_code == 400
    assert len(calls) == 1


def test_transient_error_is_retried(tmp_path):
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503, text="overloaded")
        return httpx.Response(200, json=_reply("ok"))

    assert _generate(_client(handler, tmp_path, max_retries=2), "x") == "ok"
    assert len(calls) == 2


def test_blocked_prompt_raises(tmp_path):
    def handler(request):
        return httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})

    with pytest.raises(ModelRequestError, match="SAFETY"):
        _generate(_client(handler, tmp_path), "x")


def test_cache_avoids_second_request(tmp_path):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=_reply("cached text"))

    assert _generate(_client(handler, tmp_path, use_cache=True), "same prompt") == "cached text"
    assert _generate(_client(handler, tmp_path, use_cache=True), "same prompt") == "cached text"
    assert len(calls) == 1


def test_empty_reply_is_not_cached(tmp_path):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"candidates": [{"content": {"parts": []}}]})

    assert _generate(_client(handler, tmp_path, use_cache=True), "same prompt") == ""
    assert _generate(_client(handler, tmp_path, use_cache=True), "same prompt") == ""
    assert len(calls) == 2


def test_undecodable_structured_reply_is_not_cached(tmp_path):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=_reply("Sorry, I cannot read this image."))

    for _ in range(2):
        _generate(_client(handler, tmp_path, use_cache=True), "extract", response_schema=EXTRACT_SCHEMA)
    assert len(calls) == 2


def test_fenced_structured_reply_is_cached(tmp_path):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=_reply('```json\n["a"]\n```'))

    for _ in range(2):
        _generate(_client(handler, tmp_path, use_cache=True), "extract", response_schema=EXTRACT_SCHEMA)
    assert len(calls) == 1
