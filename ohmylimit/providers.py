"""HTTP translation providers: Ollama, local OpenAI-compatible servers and OpenAI."""

from __future__ import annotations

import json
from typing import Any

import httpx

from ohmylimit.translation import (
    NoopTranslator,
    ProviderHealth,
    TranslationError,
    TranslationProviderKind,
    TranslationRequest,
    TranslationResponse,
    TranslationTokenUsage,
    Translator,
    TranslatorConfig,
    system_prompt,
    user_prompt,
    validate_non_empty_translation,
)


def _get(value: Any, key: str) -> Any:
    """Look up ``key`` in a JSON object; anything else yields ``None``."""
    return value.get(key) if isinstance(value, dict) else None


def _as_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _as_uint(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return None


class _HttpTranslator(Translator):
    """Shared plumbing for translators that talk HTTP."""

    _default_base_url = ""
    _default_model = ""

    def __init__(self, config: TranslatorConfig) -> None:
        self.config = config

    @property
    def base_url(self) -> str:
        url = self.config.base_url
        if url is None:
            url = self._default_base_url
        return url.rstrip("/")

    @property
    def model(self) -> str:
        return self.config.model if self.config.model is not None else self._default_model

    async def _send(
        self,
        method: str,
        url: str,
        *,
        call_error: str,
        status_error: str,
        payload: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                response = await client.request(method, url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise TranslationError(f"{call_error}: {exc}") from exc
        if response.is_error:
            raise TranslationError(f"{status_error}: HTTP {response.status_code}")
        return response

    @staticmethod
    def _json_body(response: httpx.Response, parse_error: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise TranslationError(f"{parse_error}: {exc}") from exc


class OllamaTranslator(_HttpTranslator):
    """Translates through an Ollama server's chat API."""

    _default_base_url = "http://localhost:11434"
    _default_model = "qwen2.5-coder:7b"

    async def translate(self, request: TranslationRequest) -> TranslationResponse:
        response = await self._send(
            "POST",
            f"{self.base_url}/api/chat",
            payload={
                "model": self.model,
                "stream": False,
                "messages": [
                    {"role": "system", "content": system_prompt(request.direction)},
                    {"role": "user", "content": user_prompt(request.direction, request.text)},
                ],
            },
            call_error="failed to call Ollama translation provider",
            status_error="Ollama translation provider returned an error",
        )
        body = self._json_body(response, "failed to parse Ollama translation response")
        text = (_as_str(_get(_get(body, "message"), "content")) or "").strip()
        validate_non_empty_translation(text)
        return TranslationResponse(text=text, provider=TranslationProviderKind.OLLAMA)

    async def health_check(self) -> ProviderHealth:
        await self._send(
            "GET",
            f"{self.base_url}/api/tags",
            call_error="failed to reach Ollama",
            status_error="Ollama health check returned an error",
        )
        return ProviderHealth(
            provider=TranslationProviderKind.OLLAMA,
            message=f"Ollama reachable at {self.base_url}",
        )


class LocalOpenAiCompatibleTranslator(_HttpTranslator):
    """Translates through a local server exposing ``/chat/completions``."""

    _default_base_url = "http://localhost:1234/v1"
    _default_model = "local-model"

    async def translate(self, request: TranslationRequest) -> TranslationResponse:
        response = await self._send(
            "POST",
            f"{self.base_url}/chat/completions",
            payload={
                "model": self.model,
                "temperature": 0,
                "messages": [
                    {"role": "system", "content": system_prompt(request.direction)},
                    {"role": "user", "content": user_prompt(request.direction, request.text)},
                ],
            },
            call_error="failed to call local OpenAI-compatible translation provider",
            status_error="local OpenAI-compatible provider returned an error",
        )
        body = self._json_body(response, "failed to parse local OpenAI-compatible response")
        choices = _get(body, "choices")
        first = choices[0] if isinstance(choices, list) and choices else None
        text = (_as_str(_get(_get(first, "message"), "content")) or "").strip()
        validate_non_empty_translation(text)
        return TranslationResponse(
            text=text, provider=TranslationProviderKind.LOCAL_OPENAI_COMPATIBLE
        )

    async def health_check(self) -> ProviderHealth:
        await self._send(
            "GET",
            f"{self.base_url}/models",
            call_error="failed to reach local OpenAI-compatible provider",
            status_error="local OpenAI-compatible health check returned an error",
        )
        return ProviderHealth(
            provider=TranslationProviderKind.LOCAL_OPENAI_COMPATIBLE,
            message=f"local OpenAI-compatible provider reachable at {self.base_url}",
        )


_TRANSLATION_SCHEMA = {
    "type": "json_schema",
    "name": "translation_result",
    "strict": True,
    "schema": {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "translated_text": {
                "type": "string",
                "description": "The translated text only.",
            }
        },
        "required": ["translated_text"],
    },
}


class RemoteOpenAiCompatibleTranslator(_HttpTranslator):
    """Translates through the OpenAI Responses API with a structured output schema."""

    _default_base_url = "https://api.openai.com/v1"
    _default_model = "gpt-5.4-mini"

    def _auth_headers(self) -> dict[str, str]:
        key = self.config.api_key
        if key is None or not key.strip():
            raise TranslationError("OpenAI provider requires an API key env var")
        return {"Authorization": f"Bearer {key}"}

    async def translate(self, request: TranslationRequest) -> TranslationResponse:
        headers = self._auth_headers()
        response = await self._send(
            "POST",
            f"{self.base_url}/responses",
            headers=headers,
            payload={
                "model": self.model,
                "instructions": system_prompt(request.direction),
                "input": [
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "input_text",
                                "text": user_prompt(request.direction, request.text),
                            }
                        ],
                    }
                ],
                "text": {"format": _TRANSLATION_SCHEMA},
            },
            call_error="failed to call OpenAI translation provider",
            status_error="OpenAI translation provider returned an error",
        )
        body = self._json_body(response, "failed to parse OpenAI translation response")
        text = translated_text_from_response(body)
        validate_non_empty_translation(text)
        return TranslationResponse(
            text=text,
            provider=TranslationProviderKind.OPENAI,
            usage=token_usage_from_response(body),
        )

    async def health_check(self) -> ProviderHealth:
        headers = self._auth_headers()
        await self._send(
            "GET",
            f"{self.base_url}/models",
            headers=headers,
            call_error="failed to reach OpenAI",
            status_error="OpenAI health check returned an error",
        )
        return ProviderHealth(
            provider=TranslationProviderKind.OPENAI, message="OpenAI API reachable"
        )


def build_translator(config: TranslatorConfig) -> Translator:
    """Create the translator matching ``config.provider``."""
    kind = config.provider
    if kind is TranslationProviderKind.NOOP:
        return NoopTranslator()
    if kind is TranslationProviderKind.OLLAMA:
        return OllamaTranslator(config)
    if kind is TranslationProviderKind.LOCAL_OPENAI_COMPATIBLE:
        return LocalOpenAiCompatibleTranslator(config)
    return RemoteOpenAiCompatibleTranslator(config)


def token_usage_from_response(body: Any) -> TranslationTokenUsage | None:
    """Extract token usage from a Responses API body, if fully present."""
    usage = _get(body, "usage")
    input_tokens = _as_uint(_get(usage, "input_tokens"))
    if input_tokens is None:
        return None
    output_tokens = _as_uint(_get(usage, "output_tokens"))
    if output_tokens is None:
        return None
    cached = _as_uint(_get(_get(usage, "input_tokens_details"), "cached_tokens")) or 0
    return TranslationTokenUsage(
        input_tokens=input_tokens,
        cached_input_tokens=cached,
        output_tokens=output_tokens,
    )


def translated_text_from_response(body: Any) -> str:
    """Find ``translated_text`` in a Responses API body."""
    output_text = _as_str(_get(body, "output_text"))
    if output_text is not None:
        text = _translated_text_from_json(output_text)
        if text is not None:
            return text

    output = _get(body, "output")
    if not isinstance(output, list):
        raise TranslationError("OpenAI response missing output")

    for item in output:
        content = _get(item, "content")
        if not isinstance(content, list):
            continue
        for part in content:
            refusal = _as_str(_get(part, "refusal"))
            if refusal is not None:
                raise TranslationError(f"OpenAI refused translation: {refusal}")
            text = _as_str(_get(part, "text"))
            if text is None:
                continue
            translated = _translated_text_from_json(text)
            if translated is not None:
                return translated

    raise TranslationError("OpenAI response did not contain translated_text")


def _translated_text_from_json(text: str) -> str | None:
    try:
        value = json.loads(text)
    except ValueError as exc:
        raise TranslationError(
            f"OpenAI structured translation response was not JSON: {text[:120]}"
        ) from exc
    return _as_str(_get(value, "translated_text"))