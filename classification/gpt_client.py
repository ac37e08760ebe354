"""
Shared OpenAI helper for the classification pipeline.

Model: gpt-4o-mini  (override with GPT_MODEL env var)
Advanced re-analysis uses GPT_MODEL_ADVANCED (default gpt-4o).
"""

import os
from typing import Optional

from openai import AsyncOpenAI

# ── Model config ───────────────────────────────────────────────────────────────
GPT_MODEL = os.getenv("GPT_MODEL", "gpt-4o-mini")
GPT_MODEL_ADVANCED = os.getenv("GPT_MODEL_ADVANCED", "gpt-4o")

# Lazy singleton
_client: Optional[AsyncOpenAI] = None


class MissingApiKeyError(RuntimeError):
    """OPENAI_API_KEY is not configured."""


def _get_client() -> AsyncOpenAI:
    global _client
    if _client is None:
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise MissingApiKeyError(
                "OPENAI_API_KEY is not set. Add it to your .env file."
            )
        _client = AsyncOpenAI(api_key=api_key)
    return _client


def model_name(advanced: bool = False) -> str:
    return GPT_MODEL_ADVANCED if advanced else GPT_MODEL


async def call_gpt_json(
    prompt: str,
    system: str,
    model: Optional[str] = None,
    temperature: float = 0.1,
    max_tokens: int = 2000,
) -> str:
    """
    Call OpenAI Chat Completions in JSON mode and return the raw message text.

    Args:
        prompt:      User-turn message (the problem text)
        system:      System prompt (the classification instructions)
        model:       Model override; defaults to GPT_MODEL
        temperature: Sampling temperature (lower = more deterministic)
        max_tokens:  Max response tokens

    Returns:
        Raw string content of the model response (expected to be a JSON object)
    """
    client = _get_client()
    response = await client.chat.completions.create(
        model=model or GPT_MODEL,
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ],
        temperature=temperature,
        max_tokens=max_tokens,
        response_format={"type": "json_object"},
    )
    return response.choices[0].message.content or ""
