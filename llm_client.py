"""
OpenAI-compatible chat completion client.
"""
from __future__ import annotations

import logging
import time
from functools import lru_cache
from typing import List, Optional

import openai
from openai import OpenAI
from pydantic import BaseModel

from config import DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE
from errors import RemoteAPIError

logger = logging.getLogger(__name__)


class AIConfig(BaseModel):
    api_key: str
    base_url: str
    model: str


class ChatOptions(BaseModel):
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS


@lru_cache(maxsize=8)
def get_llm_client(api_key: str, base_url: str) -> OpenAI:
    """Return a cached OpenAI client for a given key/base URL pair.

    Retries are disabled: a pipeline run makes exactly one attempt.
    """
    return OpenAI(api_key=api_key, base_url=base_url, max_retries=0)


def chat_completion(
    config: AIConfig,
    messages: List[dict],
    options: Optional[ChatOptions] = None,
    client: Optional[OpenAI] = None,
) -> str:
    """
    Send one non-streaming chat completion and return the first choice's text.

    Raises:
        RemoteAPIError: non-2xx status, connection failure, or no choices.
    """
    options = options or ChatOptions()
    client = client or get_llm_client(config.api_key, config.base_url)

    start_time = time.monotonic()
    try:
        response = client.chat.completions.create(
            model=config.model,
            messages=messages,
            temperature=options.temperature,
            max_tokens=options.max_tokens,
        )
    except openai.APIStatusError as e:
        raise RemoteAPIError(f"AI API error: {e.status_code} - {e.response.text}") from e
    except openai.APIError as e:
        raise RemoteAPIError(f"AI API error: {e}") from e

    logger.info(
        "chat completion model=%s total_ms=%d",
        config.model,
        int((time.monotonic() - start_time) * 1000),
    )

    if not response.choices:
        raise RemoteAPIError("AI API returned no choices")

    content = response.choices[0].message.content
    if not content:
        raise RemoteAPIError("AI API returned empty content")
    return content
