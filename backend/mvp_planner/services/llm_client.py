"""Centralized LLM client (OpenAI chat completions over httpx).

All planning generators MUST call ``call_llm_async()`` from this module.
This ensures:
  - Model, temperature, timeout, and token limits are read from env.
  - 1 retry on HTTP error, timeout, or empty reply.
  - Consistent logging across all generators.

The client returns the model's raw text. Turning that text into JSON is the
job of ``services.json_extraction``; failures here raise ``LLMError`` so the
caller can decide whether to surface or mask them.
"""

from __future__ import annotations

import os
import time
from typing import Any, Dict, List, Optional

import httpx

# ---------------------------------------------------------------------------
# Constants (all read from environment with safe defaults)
# ---------------------------------------------------------------------------
_OPENAI_API_URL = os.getenv("OPENAI_API_URL", "https://api.openai.com/v1/chat/completions")


class LLMError(RuntimeError):
    """The model could not be reached or returned nothing usable."""


def _env_float(key: str, default: float) -> float:
    try:
        return float(os.getenv(key, str(default)))
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


def get_openai_key() -> str:
    """Read OPENAI_API_KEY from the environment. Raises LLMError if missing."""
    key = os.getenv("OPENAI_API_KEY", "").strip()
    if not key:
        print("⚠️  [LLM] API key missing (OPENAI_API_KEY)")
        raise LLMError("OPENAI_API_KEY environment variable not set")
    return key


def get_openai_model() -> str:
    """Read OPENAI_MODEL from the environment (default: gpt-4.1)."""
    return os.getenv("OPENAI_MODEL", "gpt-4.1").strip()


def _get_temperature() -> float:
    return _env_float("OPENAI_TEMPERATURE", 0.7)


def _get_timeout() -> float:
    return _env_float("OPENAI_REQUEST_TIMEOUT", 60.0)


def _get_default_max_tokens() -> int:
    return _env_int("OPENAI_MAX_COMPLETION_TOKENS", 2000)


def build_messages(system: str, prompt: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": prompt},
    ]


def build_payload(
    *,
    model: str,
    messages: List[Dict[str, str]],
    max_completion_tokens: int,
    temperature: float,
) -> Dict[str, Any]:
    """Build an OpenAI chat completions payload."""
    payload: Dict[str, Any] = {
        "model": model,
        "messages": messages,
        "max_tokens": max_completion_tokens,
        "temperature": temperature,
    }

    print(f"🧠 [LLM] Model: {model}")
    print(f"🧠 [LLM] Tokens requested: {max_completion_tokens}")

    return payload


def _extract_content(data: Dict[str, Any]) -> str:
    try:
        return (data["choices"][0]["message"]["content"] or "").strip()
    except (KeyError, IndexError, TypeError) as exc:
        raise LLMError(f"Unexpected response shape from model: {exc}") from exc


async def call_llm_async(
    *,
    system: str,
    prompt: str,
    max_completion_tokens: int = 0,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
) -> str:
    """Call the chat completions API and return the reply text.

    Parameters
    ----------
    system : str
        System instruction restating the expected JSON schema.
    prompt : str
        The user prompt with project context.
    max_completion_tokens : int
        Token limit for the response. 0 = use env default.

    Raises
    ------
    LLMError
        If the key is missing or all attempts fail.
    """
    if api_key is None:
        api_key = get_openai_key()
    if model is None:
        model = get_openai_model()
    if max_completion_tokens <= 0:
        max_completion_tokens = _get_default_max_tokens()

    timeout = _get_timeout()
    max_retries = 1  # 1 retry only (2 attempts total)

    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }

    payload = build_payload(
        model=model,
        messages=build_messages(system, prompt),
        max_completion_tokens=max_completion_tokens,
        temperature=_get_temperature(),
    )

    last_error = "unknown error"
    for attempt in range(max_retries + 1):
        t0 = time.time()
        try:
            print(f"🧠 [LLM] Calling {model} (attempt {attempt + 1}/{max_retries + 1})")
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.post(_OPENAI_API_URL, headers=headers, json=payload)
            duration = time.time() - t0
            print(f"📦 [LLM] HTTP {response.status_code} ({duration:.1f}s)")

            if response.status_code != 200:
                last_error = f"Model API returned HTTP {response.status_code}"
                print(f"⚠️  [LLM] Error response: {response.text[:400]}")
                continue

            try:
                data = response.json()
            except ValueError:
                last_error = "Model API returned a non-JSON body"
                print(f"⚠️  [LLM] Non-JSON body (attempt {attempt + 1})")
                continue

            usage = data.get("usage")
            if usage:
                print(f"🧠 [LLM] Tokens used: prompt={usage.get('prompt_tokens', '?')}, completion={usage.get('completion_tokens', '?')}, total={usage.get('total_tokens', '?')}")

            content = _extract_content(data)
            print(f"🧠 [LLM] Raw output length: {len(content)} chars")

            if not content:
                last_error = "Model returned an empty response"
                print(f"⚠️  [LLM] Empty response (attempt {attempt + 1})")
                continue

            return content

        except httpx.TimeoutException:
            duration = time.time() - t0
            last_error = f"Model request timed out after {duration:.1f}s"
            print(f"❌ [LLM] Timeout ({duration:.1f}s)")

        except httpx.HTTPError as exc:
            last_error = f"Model request failed: {exc}"
            print(f"❌ [LLM] HTTP error: {exc}")

        if attempt < max_retries:
            print("🔄 [LLM] Retrying...")

    raise LLMError(last_error)
