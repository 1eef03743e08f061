from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import logging

import httpx
import openai
from openai import AsyncOpenAI

from app.config import Settings
from app.services.errors import MissingCredentialError, UnknownProviderError, UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "openai"


@dataclass(frozen=True)
class ModelParams:
    temperature: Optional[float] = None
    # Sent as a system message to OpenAI, prepended to the prompt for Gemini
    system: Optional[str] = None
    # Gemini only sees the system text when this is set
    prefix_system: bool = True


class TextProvider:
    """One upstream completion API. Each call issues exactly one HTTP request."""

    name = ""

    async def complete_text(self, prompt: str, params: ModelParams) -> str:
        """Return the generated text, or "" when the response carries none."""
        raise NotImplementedError


def _dig(data: Any, *path: Any) -> Any:
    # Walks dicts/lists/attribute objects; None on the first missing hop
    for key in path:
        if data is None:
            return None
        if isinstance(key, int):
            if not isinstance(data, (list, tuple)) or len(data) <= key:
                return None
            data = data[key]
        elif isinstance(data, dict):
            data = data.get(key)
        else:
            data = getattr(data, key, None)
    return data


class OpenAIProvider(TextProvider):
    name = "openai"

    def __init__(self, api_key: str, model: str, base_url: str, http_client: Optional[httpx.AsyncClient] = None):
        self.model = model
        # No retries: a failed call is reported to the caller immediately
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            http_client=http_client,
            max_retries=0,
        )

    def build_messages(self, prompt: str, params: ModelParams) -> List[Dict[str, str]]:
        messages = []
        if params.system:
            messages.append({"role": "system", "content": params.system})
        messages.append({"role": "user", "content": prompt})
        return messages

    async def complete_text(self, prompt: str, params: ModelParams) -> str:
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": self.build_messages(prompt, params),
        }
        if params.temperature is not None:
            kwargs["temperature"] = params.temperature
        try:
            resp = await self._client.chat.completions.create(**kwargs)
        except openai.APIStatusError as e:
            logger.warning("openai: upstream status=%s", e.status_code)
            raise UpstreamError("Upstream provider returned an error", upstream_status=e.status_code)
        except openai.APIError as e:
            logger.warning("openai: upstream call failed type=%s", type(e).__name__)
            raise UpstreamError("Upstream provider request failed")
        except ValueError:
            logger.warning("openai: undecodable JSON response body")
            raise UpstreamError("Upstream provider returned an unreadable response")
        if isinstance(resp, str):
            # Non-JSON content type comes back as the raw text
            logger.warning("openai: non-JSON response body")
            raise UpstreamError("Upstream provider returned an unreadable response")
        content = _dig(resp, "choices", 0, "message", "content")
        return content if isinstance(content, str) else ""


class GeminiProvider(TextProvider):
    name = "google"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        http_client: httpx.AsyncClient,
        key_location: str = "header",
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.key_location = key_location
        self._http = http_client

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def build_body(self, prompt: str, params: ModelParams) -> Dict[str, Any]:
        text = f"{params.system}\n{prompt}" if params.system and params.prefix_system else prompt
        return {"contents": [{"parts": [{"text": text}]}]}

    async def complete_text(self, prompt: str, params: ModelParams) -> str:
        headers = {"Content-Type": "application/json"}
        query: Dict[str, str] = {}
        if self.key_location == "query":
            query["key"] = self.api_key
        else:
            headers["x-goog-api-key"] = self.api_key
        try:
            resp = await self._http.post(
                self.endpoint,
                params=query or None,
                headers=headers,
                json=self.build_body(prompt, params),
            )
        except httpx.HTTPError as e:
            logger.warning("gemini: upstream call failed type=%s", type(e).__name__)
            raise UpstreamError("Upstream provider request failed")
        if not resp.is_success:
            logger.warning("gemini: upstream status=%s", resp.status_code)
            raise UpstreamError("Upstream provider returned an error", upstream_status=resp.status_code)
        try:
            data = resp.json()
        except ValueError:
            logger.warning("gemini: non-JSON response body")
            raise UpstreamError("Upstream provider returned an unreadable response", upstream_status=resp.status_code)
        text = _dig(data, "candidates", 0, "content", "parts", 0, "text")
        return text if isinstance(text, str) else ""


@dataclass(frozen=True)
class ProviderInfo:
    id: str
    name: str
    description: str
    key_env: str


PROVIDERS: Dict[str, ProviderInfo] = {
    "openai": ProviderInfo("openai", "OpenAI GPT-4", "Advanced language model", "OPENAI_API_KEY"),
    "google": ProviderInfo("google", "Google Gemini", "Google's AI model", "GOOGLE_GENERATIVE_AI_API_KEY"),
}


def _api_key(provider: str, settings: Settings) -> str:
    return settings.openai_api_key if provider == "openai" else settings.google_api_key


def get_provider(name: str, settings: Settings, http_client: httpx.AsyncClient) -> TextProvider:
    """Resolve a provider id to a ready client. Never falls back to another provider."""
    info = PROVIDERS.get(name)
    if info is None:
        raise UnknownProviderError("Invalid AI provider")
    key = _api_key(name, settings)
    if not key:
        logger.error("provider: missing credential provider=%s", name)
        raise MissingCredentialError(f"{info.key_env} not configured")
    if name == "openai":
        return OpenAIProvider(key, settings.openai_model, settings.openai_base_url, http_client)
    return GeminiProvider(
        key,
        settings.gemini_model,
        settings.gemini_base_url,
        http_client,
        key_location=settings.gemini_key_location,
    )


def available_providers(settings: Settings) -> List[Dict[str, Any]]:
    return [
        {
            "id": info.id,
            "name": info.name,
            "description": info.description,
            "configured": bool(_api_key(info.id, settings)),
        }
        for info in PROVIDERS.values()
    ]
