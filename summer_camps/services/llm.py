"""Thin wrapper around an OpenAI-compatible vision chat-completion API."""

from __future__ import annotations

import base64
import logging

from openai import AsyncOpenAI as _HTTPClient

from summer_camps.config import settings

logger = logging.getLogger(__name__)

_client: _HTTPClient | None = None


def _get_client() -> _HTTPClient:
    global _client
    if _client is None:
        _client = _HTTPClient(
            base_url=settings.llm_base_url,
            api_key=settings.llm_api_key,  # Ollama ignores the key
        )
    return _client


async def chat_with_image(
    system_prompt: str,
    user_prompt: str,
    png_bytes: bytes,
    *,
    model: str | None = None,
    temperature: float = 0.2,
    max_tokens: int | None = None,
) -> str:
    """Send one image plus an instruction and return the assistant's reply."""
    client = _get_client()
    image_url = "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")
    response = await client.chat.completions.create(
        model=model or settings.llm_model,
        messages=[
            {"role": "system", "content": system_prompt},
            {
                "role": "user",
                "content": [
                    {"type": "image_url", "image_url": {"url": image_url}},
                    {"type": "text", "text": user_prompt},
                ],
            },
        ],
        temperature=temperature,
        max_tokens=max_tokens or settings.llm_max_tokens,
    )
    content = response.choices[0].message.content or ""
    logger.debug("LLM response (%d chars): %s…", len(content), content[:120])
    return content.strip()
