"""
AI gateway client for outline, section-content and refinement generation.

Talks to an OpenAI-compatible ``/chat/completions`` endpoint with a bearer
key (AI_GATEWAY_URL / AI_GATEWAY_API_KEY).  All prompts are stored as
module-level constants so they can be tuned without touching logic code.

Public API
----------
AIGatewayClient.generate_outline(topic, document_type)               -> List[str]
AIGatewayClient.generate_section_content(topic, document_type, title) -> str
AIGatewayClient.generate_sections(topic, document_type, titles)      -> List[str]
AIGatewayClient.refine_content(title, current_content, instruction)  -> str
AIGatewayClient.check_health()                                       -> bool

Every failure (missing key, non-2xx, timeout, malformed reply) raises
:class:`AIServiceError`.  Nothing is retried.
"""
from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, List, Optional, Tuple

import httpx

from app.config import settings

logger = logging.getLogger(__name__)


class AIServiceError(Exception):
    """Raised when the AI gateway call fails or returns an unusable reply."""


def _kind_key(document_type: Any) -> str:
    # Accepts both the plain string and the DocumentType enums
    return str(getattr(document_type, "value", document_type))


# ---------------------------------------------------------------------------
# Prompt templates: edit these to tune LLM output without touching logic
# ---------------------------------------------------------------------------

_KIND_LABELS = {
    "docx": ("Word document", "section"),
    "pptx": ("PowerPoint presentation", "slide"),
}

_OUTLINE_SYSTEM_PROMPT = """\
You are an expert document planner. You design clear, logically ordered \
outlines for business and academic documents.\
"""

_OUTLINE_PROMPT = """\
Create an outline for a {kind_label} about the following topic:

{topic}

Propose between 5 and 10 {unit} titles, in the order they should appear. \
Each title must be short (at most 8 words).

Respond ONLY with a valid JSON array of strings. No explanation, no markdown:
["First title", "Second title", "..."]\
"""

_CONTENT_SYSTEM_PROMPT = """\
You are an expert content writer. Write clear, well-structured, factual \
content. Return only the content itself, with no title and no preamble.\
"""

_CONTENT_PROMPT = """\
Document topic: {topic}
Document type: {kind_label}

Write the content for the {unit} titled "{title}".
{length_hint}

Provide the {unit} content:\
"""

_LENGTH_HINTS = {
    "docx": "Write 2-4 paragraphs of prose.",
    "pptx": "Write 3-6 concise bullet points, one per line, suitable for a slide.",
}

_REFINE_SYSTEM_PROMPT = """\
You are an expert content editor. Refine the given content based on the \
user's request while maintaining the overall structure and purpose. Return \
only the refined content, nothing else.\
"""

_REFINE_PROMPT = """\
Section Title: {title}

Current Content:
{current_content}

Refinement Request: {instruction}

Provide the refined content:\
"""


# ---------------------------------------------------------------------------
# Main client class
# ---------------------------------------------------------------------------

class AIGatewayClient:
    """
    Chat-completions client for the hosted AI gateway.

    Limits concurrency to MAX_CONCURRENT simultaneous calls when content
    for several sections is requested at once.
    """

    MAX_CONCURRENT: int = 3

    OUTLINE_SYSTEM_PROMPT = _OUTLINE_SYSTEM_PROMPT
    OUTLINE_PROMPT = _OUTLINE_PROMPT
    CONTENT_SYSTEM_PROMPT = _CONTENT_SYSTEM_PROMPT
    CONTENT_PROMPT = _CONTENT_PROMPT
    REFINE_SYSTEM_PROMPT = _REFINE_SYSTEM_PROMPT
    REFINE_PROMPT = _REFINE_PROMPT

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.AI_GATEWAY_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.AI_GATEWAY_API_KEY
        self.model = model or settings.AI_MODEL
        self.timeout = httpx.Timeout(float(settings.AI_TIMEOUT), connect=10.0)
        self._transport = transport
        self._semaphore = asyncio.Semaphore(self.MAX_CONCURRENT)

    # ------------------------------------------------------------------
    # Public generation methods
    # ------------------------------------------------------------------

    async def generate_outline(self, topic: str, document_type: str) -> List[str]:
        """
        Propose an ordered list of section/slide titles for *topic*.

        Raises AIServiceError when the reply contains no usable titles.
        """
        kind_label, unit = self._kind(document_type)
        prompt = self.OUTLINE_PROMPT.format(
            kind_label=kind_label,
            unit=unit,
            topic=topic,
        )
        reply = await self._chat(self.OUTLINE_SYSTEM_PROMPT, prompt)

        success, parsed = self._parse_json_array(reply)
        if not success:
            logger.warning("generate_outline: unparseable reply. Preview: %s", reply[:300])
            raise AIServiceError("AI gateway returned a malformed outline")

        outline = [item.strip() for item in parsed if isinstance(item, str)]
        outline = [title for title in outline if title]
        if not outline:
            raise AIServiceError("AI gateway returned an empty outline")

        logger.info("generate_outline: %d titles for topic %r", len(outline), topic[:80])
        return outline

    async def generate_section_content(
        self,
        topic: str,
        document_type: str,
        title: str,
    ) -> str:
        """Draft the body text for one section/slide."""
        kind_label, unit = self._kind(document_type)
        prompt = self.CONTENT_PROMPT.format(
            topic=topic,
            kind_label=kind_label,
            unit=unit,
            title=title,
            length_hint=_LENGTH_HINTS.get(_kind_key(document_type), _LENGTH_HINTS["docx"]),
        )
        content = (await self._chat(self.CONTENT_SYSTEM_PROMPT, prompt)).strip()
        if not content:
            raise AIServiceError(f"AI gateway returned empty content for {title!r}")
        return content

    async def generate_sections(
        self,
        topic: str,
        document_type: str,
        titles: List[str],
    ) -> List[str]:
        """
        Draft content for every title.  Results are returned in the order of
        *titles*; the first failure propagates and cancels the calls still
        pending.
        """
        async def _one(title: str) -> str:
            async with self._semaphore:
                return await self.generate_section_content(topic, document_type, title)

        tasks = [asyncio.ensure_future(_one(title)) for title in titles]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

    async def refine_content(
        self,
        title: str,
        current_content: str,
        instruction: str,
    ) -> str:
        """Rewrite *current_content* according to a free-text *instruction*."""
        prompt = self.REFINE_PROMPT.format(
            title=title,
            current_content=current_content,
            instruction=instruction,
        )
        refined = (await self._chat(self.REFINE_SYSTEM_PROMPT, prompt)).strip()
        if not refined:
            raise AIServiceError("AI gateway returned empty refined content")
        return refined

    async def check_health(self) -> bool:
        """Return ``True`` if the gateway is reachable and the key is configured."""
        if not self.api_key:
            return False
        try:
            async with self._client(timeout=5.0) as client:
                resp = await client.get(f"{self.base_url}/models", headers=self._headers())
                return resp.status_code < 500
        except Exception as exc:
            logger.error("AI gateway health check failed: %s", exc)
            return False

    # ------------------------------------------------------------------
    # Core gateway caller
    # ------------------------------------------------------------------

    async def _chat(self, system_prompt: str, user_prompt: str) -> str:
        """
        POST one chat-completions request and return the assistant message.

        Raises AIServiceError on any error (missing key, timeout, connection
        failure, non-2xx response, unexpected payload shape).
        """
        if not self.api_key:
            raise AIServiceError("AI_GATEWAY_API_KEY not configured")

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }

        try:
            async with self._client() as client:
                resp = await client.post(
                    f"{self.base_url}/chat/completions",
                    json=payload,
                    headers=self._headers(),
                )
        except httpx.TimeoutException as exc:
            logger.error("_chat: request timed out after %.0f s", self.timeout.read or 0)
            raise AIServiceError("AI gateway request timed out") from exc
        except httpx.HTTPError as exc:
            logger.error("_chat: connection error — %s", exc)
            raise AIServiceError(f"AI gateway connection error: {exc}") from exc

        if resp.status_code != 200:
            logger.error(
                "_chat: gateway returned HTTP %d: %s",
                resp.status_code,
                resp.text[:300],
            )
            raise AIServiceError(f"AI API error: {resp.status_code} {resp.reason_phrase}")

        try:
            return resp.json()["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            logger.error("_chat: unexpected response shape: %s", resp.text[:300])
            raise AIServiceError("AI gateway returned an unexpected response") from exc

    def _client(self, timeout: Any = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout if timeout is not None else self.timeout,
            transport=self._transport,
        )

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    @staticmethod
    def _kind(document_type: str) -> Tuple[str, str]:
        return _KIND_LABELS.get(_kind_key(document_type), _KIND_LABELS["docx"])

    # ------------------------------------------------------------------
    # JSON parsing helpers
    # ------------------------------------------------------------------

    def _parse_json_array(self, response: str) -> Tuple[bool, List[Any]]:
        """
        Parse a JSON array from potentially messy LLM output.

        Handles markdown code fences, trailing commas and surrounding prose.
        Returns ``(success, parsed_list)``.
        """
        if not response:
            return False, []

        text = self._strip_code_fences(response.strip())

        for candidate in (text, self._fix_json_issues(text)):
            ok, val = self._try_json(candidate)
            if ok and isinstance(val, list):
                return True, val

        fragment = self._extract_json_structure(text, "[", "]")
        if fragment:
            for candidate in (fragment, self._fix_json_issues(fragment)):
                ok, val = self._try_json(candidate)
                if ok and isinstance(val, list):
                    return True, val

        return False, []

    @staticmethod
    def _try_json(text: str) -> Tuple[bool, Any]:
        try:
            return True, json.loads(text)
        except (json.JSONDecodeError, ValueError):
            return False, None

    @staticmethod
    def _strip_code_fences(text: str) -> str:
        """Remove ```json / ``` delimiters that LLMs often wrap output in."""
        text = re.sub(r"^```(?:json|text)?\s*\n?", "", text, flags=re.IGNORECASE)
        text = re.sub(r"\n?```\s*$", "", text)
        return text.strip()

    @staticmethod
    def _fix_json_issues(text: str) -> str:
        """Repair trailing commas before ] or }."""
        return re.sub(r",(\s*[}\]])", r"\1", text).strip()

    @staticmethod
    def _extract_json_structure(text: str, open_b: str, close_b: str) -> str:
        """
        Find the first complete balanced open_b … close_b structure in *text*.
        Returns the matched fragment, or empty string if not found.
        """
        start = text.find(open_b)
        if start == -1:
            return ""

        depth = 0
        in_string = False
        escape_next = False

        for i, ch in enumerate(text[start:], start=start):
            if escape_next:
                escape_next = False
                continue
            if ch == "\\" and in_string:
                escape_next = True
                continue
            if ch == '"':
                in_string = not in_string
                continue
            if in_string:
                continue
            if ch == open_b:
                depth += 1
            elif ch == close_b:
                depth -= 1
                if depth == 0:
                    return text[start : i + 1]
        return ""


def get_ai_client() -> AIGatewayClient:
    """FastAPI dependency returning a gateway client (overridden in tests)."""
    return AIGatewayClient()
