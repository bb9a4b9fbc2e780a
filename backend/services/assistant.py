# backend/services/assistant.py

from __future__ import annotations

import asyncio
import random
from typing import Optional, Protocol
import logging

import httpx

from core.errors import AssistantUnavailable

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a concise debugging assistant in a developer chat room. "
    "Answer in a few short bullet points."
)


class AssistantResponder(Protocol):
    """Produces reply text for a triggering chat message. May take seconds."""

    async def generate_reply(self, text: str) -> str: ...

    async def aclose(self) -> None: ...


# ============================================================================
# CANNED RESPONDER
# ============================================================================

DEBUG_CHECKLIST = (
    "🔍 **Debug Checklist:**\n"
    "• Check array bounds and None values\n"
    "• Re-read loop conditions and edge cases\n"
    "• Review what changed recently\n"
    "• Log the suspicious variables\n"
    "• Walk the stack trace top to bottom"
)

COMMON_FIXES = (
    "🔧 **Common Fixes:**\n"
    "1. Look for a missing bracket or colon\n"
    "2. Restart the dev server\n"
    "3. Clear caches and rebuild\n"
    "4. Check dependency versions\n"
    "5. Share the full error and the code around it"
)

USAGE_GUIDE = (
    "🆘 **Debug Assistant:**\n"
    "• **Syntax**: paste the broken code\n"
    "• **Runtime**: share the error log\n"
    "• **Logic**: describe expected vs actual\n"
    "• **Performance**: share the algorithm"
)

READY_NOTICE = (
    "🤖 **Assistant ready!**\n"
    "Mention @ai with \"bug in ...\", \"fix ...\" or \"help with ...\""
)


class CannedAssistantResponder:
    """
    Keyword-matched replies after a simulated service delay.

    Stands in for a real language model; the delay is there so the relay is
    exercised with realistic latency.
    """

    def __init__(self, min_delay: float = 1.2, max_delay: float = 2.0) -> None:
        self.min_delay = min_delay
        self.max_delay = max(min_delay, max_delay)

    @staticmethod
    def pick_reply(text: str) -> str:
        lowered = text.lower()
        if "bug" in lowered or "error" in lowered:
            return DEBUG_CHECKLIST
        if "fix" in lowered:
            return COMMON_FIXES
        if "help" in lowered or "@ai" in lowered:
            return USAGE_GUIDE
        return READY_NOTICE

    async def generate_reply(self, text: str) -> str:
        delay = random.uniform(self.min_delay, self.max_delay)
        if delay > 0:
            await asyncio.sleep(delay)
        return self.pick_reply(text)

    async def aclose(self) -> None:
        return None


# ============================================================================
# HTTP RESPONDER
# ============================================================================

class HttpAssistantResponder:
    """
    Replies from an OpenAI-compatible `/chat/completions` endpoint.

    Args:
        api_url: Base URL, e.g. https://api.openai.com/v1
        api_key: Bearer token (omitted from the request if empty)
        model: Model name sent with every request
        timeout: Per-request timeout in seconds
        client: Pre-built httpx.AsyncClient (tests pass one with a mock transport)
    """

    def __init__(
        self,
        api_url: str,
        api_key: str = "",
        model: str = "gpt-4o-mini",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.endpoint = api_url.rstrip("/") + "/chat/completions"
        self.api_key = api_key
        self.model = model
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def generate_reply(self, text: str) -> str:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": text},
            ],
        }

        try:
            response = await self.client.post(self.endpoint, json=body, headers=headers)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise AssistantUnavailable(f"Assistant request failed: {e}") from e

        try:
            return data["choices"][0]["message"]["content"].strip()
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise AssistantUnavailable("Malformed assistant response") from e

    async def aclose(self) -> None:
        await self.client.aclose()


def build_responder(settings) -> AssistantResponder:
    """Pick the responder named by ASSISTANT_BACKEND."""
    if settings.ASSISTANT_BACKEND == "http":
        logger.info("Assistant backend: %s (%s)", settings.ASSISTANT_API_URL, settings.ASSISTANT_MODEL)
        return HttpAssistantResponder(
            api_url=settings.ASSISTANT_API_URL,
            api_key=settings.ASSISTANT_API_KEY,
            model=settings.ASSISTANT_MODEL,
            timeout=settings.ASSISTANT_TIMEOUT,
        )
    if settings.ASSISTANT_BACKEND != "canned":
        logger.warning(
            "Unknown ASSISTANT_BACKEND %r, falling back to canned replies", settings.ASSISTANT_BACKEND
        )
    logger.info("Assistant backend: canned replies")
    return CannedAssistantResponder(settings.ASSISTANT_MIN_DELAY, settings.ASSISTANT_MAX_DELAY)
