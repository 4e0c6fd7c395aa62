from __future__ import annotations
import base64
import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

import httpx
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from .config import CFG, Settings
from .exceptions import ConfigurationError, ModelRequestError
from .sanitize import clean_json
from .schemas import ImageInput

logger = logging.getLogger(__name__)


class ModelClient(Protocol):
    """Given a prompt and an optional image, return the model's text."""

    async def generate(
        self,
        prompt: str,
        *,
        image: Optional[ImageInput] = None,
        response_schema: Optional[Dict[str, Any]] = None,
        system_instruction: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> str:
        ...


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        code = exc.response.status_code
        return code == 429 or code >= 500
    return isinstance(exc, httpx.TransportError)


class GeminiClient:
    """
    Gemini generateContent over REST with:
      - generate(prompt, image=..., response_schema=...) -> str
      - transient errors (transport, 429, 5xx) retried with exponential backoff
      - optional file cache keyed by the full request payload
    One instance is safe to share between concurrent requests.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        *,
        settings: Settings = CFG,
        max_retries: Optional[int] = None,
        use_cache: Optional[bool] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        if not self.api_key:
            raise ConfigurationError("GEMINI_API_KEY is not set; cannot create the model client")
        self.model = model or settings.gemini_model
        self.max_retries = max(1, settings.max_retries if max_retries is None else max_retries)
        self.use_cache = settings.use_cache if use_cache is None else use_cache
        self.cache_dir = Path(settings.cache_dir)
        self.session = httpx.AsyncClient(
            base_url=settings.gemini_base_url,
            timeout=settings.request_timeout,
            headers={"x-goog-api-key": self.api_key},
            transport=transport,
        )

    async def __aenter__(self) -> "GeminiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.session.aclose()

    # ---------------- cache helpers ----------------
    def _cache_key(self, payload: Dict[str, Any]) -> Path:
        raw = json.dumps({"model": self.model, "payload": payload}, sort_keys=True)
        return self.cache_dir / (hashlib.sha256(raw.encode()).hexdigest() + ".json")

    def _cached(self, path: Path) -> Optional[str]:
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text())["text"]
        except (ValueError, KeyError):
            return None

    def _save_cache(self, path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps({"text": text}))

    @staticmethod
    def _cacheable(text: str, response_schema: Optional[Dict[str, Any]]) -> bool:
        # empty or undecodable structured replies must stay retryable
        if not text.strip():
            return False
        if response_schema is None:
            return True
        try:
            json.loads(clean_json(text))
        except ValueError:
            return False
        return True

    # ---------------- request building ----------------
    def _payload(
        self,
        prompt: str,
        image: Optional[ImageInput],
        response_schema: Optional[Dict[str, Any]],
        system_instruction: Optional[str],
        temperature: Optional[float],
    ) -> Dict[str, Any]:
        parts: list[Dict[str, Any]] = [{"text": prompt}]
        if image is not None:
            parts.append({
                "inline_data": {
                    "mime_type": image.mime_type,
                    "data": base64.b64encode(image.data).decode("ascii"),
                }
            })

        generation_config: Dict[str, Any] = {"maxOutputTokens": self.settings.max_tokens}
        if response_schema is not None:
            generation_config["responseMimeType"] = "application/json"
            generation_config["responseSchema"] = response_schema
        if temperature is not None:
            generation_config["temperature"] = temperature

        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": generation_config,
        }
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        return payload

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"/models/{self.model}:generateContent"
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_retries),
                wait=wait_exponential(multiplier=1, min=1, max=30),
                retry=retry_if_exception(_is_transient),
                reraise=True,
            ):
                with attempt:
                    r = await self.session.post(url, json=payload)
                    r.raise_for_status()
        except httpx.HTTPStatusError as e:
            code = e.response.status_code
            raise ModelRequestError(
                f"model service returned HTTP {code}: {e.response.text[:200]}", status_code=code
            ) from e
        except httpx.HTTPError as e:
            raise ModelRequestError(f"model request failed: {e!r}") from e

        try:
            return r.json()
        except ValueError as e:
            raise ModelRequestError("model service returned a non-JSON body") from e

    @staticmethod
    def _text(data: Dict[str, Any]) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            reason = (data.get("promptFeedback") or {}).get("blockReason", "no candidates")
            raise ModelRequestError(f"model returned no candidates ({reason})")
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(p.get("text", "") for p in parts if isinstance(p, dict))

    # ---------------- completions ----------------
    async def generate(
        self,
        prompt: str,
        *,
        image: Optional[ImageInput] = None,
        response_schema: Optional[Dict[str, Any]] = None,
        system_instruction: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> str:
        payload = self._payload(prompt, image, response_schema, system_instruction, temperature)

        cache_path = self._cache_key(payload) if self.use_cache else None
        if cache_path is not None:
            cached = self._cached(cache_path)
            if cached is not None:
                logger.debug("cache hit %s", cache_path.name)
                return cached

        text = self._text(await self._post(payload))

        if cache_path is not None and self._cacheable(text, response_schema):
            self._save_cache(cache_path, text)
        return text
