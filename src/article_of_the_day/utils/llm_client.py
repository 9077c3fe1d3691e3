"""Unified LLM client using LiteLLM.

Provides a single interface for multiple LLM providers (Anthropic, Google, OpenAI, etc.)
"""

import logging
from typing import Optional

import litellm

# Suppress verbose LiteLLM logging
litellm.set_verbose = False
logging.getLogger("LiteLLM").setLevel(logging.WARNING)


async def get_completion_async(
    model: str,
    messages: list[dict],
    max_tokens: int = 1024,
    temperature: float = 0.3,
    timeout: Optional[float] = None,
) -> str:
    """
    Get a completion from any supported model via LiteLLM.

    Args:
        model: Model identifier. Examples:
            - "claude-sonnet-4-20250514" (Anthropic)
            - "gemini/gemini-2.5-flash" (Google)
            - "gpt-4o-mini" (OpenAI)
        messages: List of message dicts with role and content
        max_tokens: Maximum response tokens
        temperature: Sampling temperature
        timeout: Request timeout in seconds, passed to the provider

    Returns:
        Response text content (may be empty)

    Raises:
        Exception: If the API call fails
    """
    kwargs = {
        "model": model,
        "messages": messages,
        "max_tokens": max_tokens,
        "temperature": temperature,
    }

    if timeout is not None:
        kwargs["timeout"] = timeout

    response = await litellm.acompletion(**kwargs)
    return response.choices[0].message.content or ""
