"""Text generation over interchangeable LLM backends (Groq, Together, Hugging Face).

Every backend exposes ``generate(prompt) -> str`` and raises ``ProviderError``
on a non-2xx response, a timeout, or a payload without generated text. Nothing
here retries; callers decide what a failure means.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import openai
import requests
from openai import OpenAI

from autoapply.errors import ConfigurationError, ProviderError
from autoapply.log import get_logger

log = get_logger(__name__)

MAX_TOKENS = 2000
TEMPERATURE = 0.7
REQUEST_TIMEOUT = 120
MAX_PROMPT_CHARS = 16_000

GROQ_BASE_URL = "https://api.groq.com/openai/v1"
TOGETHER_URL = "https://api.together.xyz/v1/completions"
HUGGINGFACE_URL = "https://api-inference.huggingface.co/models/{model}"


class LLMProvider(ABC):
    name: str = ""

    def __init__(self, api_key: str, model: str, *, timeout: float = REQUEST_TIMEOUT) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    def generate(self, prompt: str) -> str:
        if len(prompt) > MAX_PROMPT_CHARS:
            log.debug("Prompt truncated from %d to %d chars", len(prompt), MAX_PROMPT_CHARS)
            prompt = prompt[:MAX_PROMPT_CHARS]
        text = self._complete(prompt)
        if not isinstance(text, str):
            raise ProviderError(self.name, f"expected text, got {type(text).__name__}")
        return text.strip()

    @abstractmethod
    def _complete(self, prompt: str) -> str:
        pass


class GroqProvider(LLMProvider):
    """Groq's OpenAI-compatible chat completions endpoint."""

    name = "groq"

    def __init__(self, api_key: str, model: str, *, timeout: float = REQUEST_TIMEOUT) -> None:
        super().__init__(api_key, model, timeout=timeout)
        self.client = OpenAI(api_key=api_key, base_url=GROQ_BASE_URL, timeout=timeout, max_retries=0)

    def _complete(self, prompt: str) -> str:
        try:
            r = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=MAX_TOKENS,
                temperature=TEMPERATURE,
            )
        except openai.APIStatusError as exc:
            raise ProviderError(self.name, _short(exc.message), status=exc.status_code) from exc
        except openai.APIError as exc:
            raise ProviderError(self.name, _short(str(exc))) from exc
        try:
            return r.choices[0].message.content or ""
        except (AttributeError, IndexError, TypeError) as exc:
            raise ProviderError(self.name, "malformed completion payload") from exc


class _HTTPProvider(LLMProvider):
    def _post(self, url: str, payload: dict[str, Any]) -> Any:
        try:
            r = requests.post(
                url,
                json=payload,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ProviderError(self.name, _short(str(exc))) from exc
        if not r.ok:
            raise ProviderError(self.name, _short(r.text), status=r.status_code)
        try:
            return r.json()
        except ValueError as exc:
            raise ProviderError(self.name, "response was not JSON", status=r.status_code) from exc


class TogetherProvider(_HTTPProvider):
    """Together's plain (non-chat) completions endpoint."""

    name = "together"

    def _complete(self, prompt: str) -> str:
        data = self._post(TOGETHER_URL, {
            "model": self.model,
            "prompt": prompt,
            "max_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
        })
        try:
            return data["choices"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderError(self.name, "malformed completion payload") from exc


class HuggingFaceProvider(_HTTPProvider):
    name = "huggingface"

    def _complete(self, prompt: str) -> str:
        data = self._post(HUGGINGFACE_URL.format(model=self.model), {
            "inputs": prompt,
            "parameters": {
                "max_new_tokens": MAX_TOKENS,
                "temperature": TEMPERATURE,
                "return_full_text": False,
            },
        })
        if isinstance(data, dict) and data.get("error"):
            raise ProviderError(self.name, _short(str(data["error"])))
        try:
            return data[0]["generated_text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderError(self.name, "malformed generation payload") from exc


PROVIDERS: dict[str, type[LLMProvider]] = {
    "groq": GroqProvider,
    "together": TogetherProvider,
    "huggingface": HuggingFaceProvider,
}


def get_llm_provider(config: dict) -> LLMProvider:
    """Resolve ``llm.provider`` once per run; unknown names and missing keys are fatal."""
    settings = config.get("llm") or {}
    name = str(settings.get("provider") or "").strip().lower()
    cls = PROVIDERS.get(name)
    if cls is None:
        raise ConfigurationError(f"Unsupported LLM provider: {name or '(none)'}")
    api_key = str(settings.get("api_key") or "").strip()
    if not api_key:
        raise ConfigurationError(f"LLM provider '{name}' needs llm.api_key")
    model = str(settings.get("model") or "").strip()
    if not model:
        raise ConfigurationError(f"LLM provider '{name}' needs llm.model")
    return cls(api_key, model)


def generate(prompt: str, config: dict) -> str:
    """One-off generation with the backend named in ``config``."""
    return get_llm_provider(config).generate(prompt)


def _short(text: str, limit: int = 300) -> str:
    return (text or "").strip().split("\n")[0][:limit]
