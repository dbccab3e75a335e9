# Overview: HTTP client for the OpenAI-compatible provider (embeddings and image descriptions).

from __future__ import annotations

import logging

import httpx
from flask import current_app

logger = logging.getLogger(__name__)

DESCRIPTION_PROMPT = (
    "Describe this phone accessory product in detail for an e-commerce listing. "
    "Include key features, materials, benefits, and potential use cases. "
    "Keep it professional, engaging, and around 100 words. Focus on selling points."
)
DESCRIPTION_MAX_TOKENS = 500


class AIServiceError(RuntimeError):
    """The AI provider is unconfigured, unreachable, or returned an unusable response."""


class AIClient:
    """
    Minimal synchronous client for an OpenAI-compatible API.

    The key never leaves the server; callers only see the generated text
    or vectors.
    """

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        embedding_model: str,
        vision_model: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.embedding_model = embedding_model
        self.vision_model = vision_model
        self._headers = {"Authorization": f"Bearer {api_key}"}
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_config(cls, config) -> "AIClient | None":
        api_key = config.get("OPENAI_API_KEY")
        if not api_key:
            return None
        return cls(
            api_key=api_key,
            base_url=config.get("OPENAI_BASE_URL", "https://api.openai.com/v1"),
            embedding_model=config.get("EMBEDDING_MODEL", "text-embedding-ada-002"),
            vision_model=config.get("VISION_MODEL", "gpt-4o"),
            timeout=float(config.get("AI_REQUEST_TIMEOUT", 30)),
        )

    def _post(self, path: str, payload: dict) -> dict:
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(f"{self.base_url}{path}", json=payload, headers=self._headers)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.warning("AI provider returned %s for %s", e.response.status_code, path)
            raise AIServiceError(f"AI provider returned HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("AI provider call to %s failed: %s", path, e)
            raise AIServiceError("AI provider request failed") from e

    def embed(self, text: str) -> list[float]:
        """Return the embedding vector for `text`."""
        data = self._post("/embeddings", {"model": self.embedding_model, "input": text})
        try:
            vector = data["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as e:
            raise AIServiceError("AI provider returned no embedding") from e
        return [float(x) for x in vector]

    def describe_image(self, image_url: str, prompt: str = DESCRIPTION_PROMPT) -> str:
        """Generate listing copy for the product shown at `image_url`."""
        payload = {
            "model": self.vision_model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {"type": "image_url", "image_url": {"url": image_url}},
                    ],
                }
            ],
            "max_tokens": DESCRIPTION_MAX_TOKENS,
        }
        data = self._post("/chat/completions", payload)
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise AIServiceError("AI provider returned no description") from e
        if not content or not content.strip():
            raise AIServiceError("AI provider returned an empty description")
        return content.strip()


def get_ai_client() -> AIClient | None:
    """Client built from the app config, or None when no provider is configured."""
    return AIClient.from_config(current_app.config)


def embedding_text(name: str | None, description: str | None) -> str:
    return f"{name or ''} {description or ''}".strip()
