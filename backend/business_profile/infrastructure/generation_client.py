"""Anthropic Generation Client — GenerationClient backed by AsyncAnthropic with retry and backoff.

Invariants:
    - Rate limits (429): exponential backoff with jitter, respects Retry-After header
    - Transient errors (5xx, 529, connection): max_retries retries with exponential backoff
    - Client errors (4xx except 429): immediate failure, no retry
    - All failures mapped to GenerationError (core/errors.py); nothing from the SDK escapes
    - Only fields the target record has are returned; the reply is otherwise opaque
    - OBJECTIVES replies are a list of drafts; COMPETITOR_ANALYSIS replies keep only the
      analysis sections and string social profile URLs

Design Decisions:
    - Wrapper over raw client: retry logic stays out of the merge service
    - ±25% jitter on backoff: prevents thundering herd on shared rate limits
    - Company identity read through the RemoteStore so the prompt has something to work
      from; the client never writes
"""

import asyncio
import json
import random
import logging
from typing import Any

import anthropic
from anthropic import (
    APIError,
    APIConnectionError,
    APIStatusError,
    RateLimitError,
    APITimeoutError,
    InternalServerError,
)

from business_profile.core.domain_types import GenerationKind, ResourceType, TenantId
from business_profile.core.errors import ErrorContext, GenerationError, ProfileEditorError
from business_profile.core.repository_protocols import RemoteStore
from business_profile.schemas.records import writable_fields

logger = logging.getLogger(__name__)

# OverloadedError (HTTP 529) is detected by status code rather than a private import
_OVERLOADED_STATUS = 529

# Bookkeeping columns the model is never asked for
_NOT_GENERATED = frozenset({"company_id", "generated_with_ai"})

_PROMPTS = {
    GenerationKind.STRATEGY: (
        "Write the company's mission (mision), vision (vision) and value "
        "proposition (propuesta_valor)."
    ),
    GenerationKind.BRANDING: (
        "Propose a brand palette as hex colors and describe the visual identity "
        "and brand voice."
    ),
    GenerationKind.COMMUNICATION: (
        "Define the brand voice, emoji usage, language formality, hashtags, "
        "forbidden words and content pillars."
    ),
    GenerationKind.OBJECTIVES: (
        "Propose three to five business objectives. Reply as {\"objectives\": [...]} "
        "where each item uses the keys below; objective_type is short_term, "
        "medium_term or long_term and priority is 1 (highest) to 5."
    ),
    GenerationKind.COMPETITOR_ANALYSIS: (
        "Analyze the competitor below from its website and public presence. Put the "
        "URLs of any social profiles you find under social_networks, keyed by "
        "instagram, facebook, linkedin, twitter or tiktok."
    ),
}

# Sections of a competitor analysis document
_ANALYSIS_SECTIONS = (
    "summary", "description", "products", "market", "audience",
    "strengths", "weaknesses", "digital_presence", "social_networks",
)

_SYSTEM = (
    "You help small businesses write their marketing profile. Reply with a single "
    "JSON object and nothing else. Use only the keys you are given."
)


def _is_overloaded(e: APIError) -> bool:
    return isinstance(e, APIStatusError) and e.status_code == _OVERLOADED_STATUS


def generated_fields(kind: GenerationKind) -> list[str]:
    if kind == GenerationKind.COMPETITOR_ANALYSIS:
        return list(_ANALYSIS_SECTIONS)
    return sorted(writable_fields(kind.target) - _NOT_GENERATED)


def parse_reply(kind: GenerationKind, text: str) -> dict[str, Any]:
    """Extract the JSON object from a reply and keep only the kind's fields."""
    start, end = text.find("{"), text.rfind("}")
    if start < 0 or end <= start:
        raise GenerationError("reply contained no JSON object", "invalid_response")
    try:
        payload = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise GenerationError(f"reply was not valid JSON: {e.msg}", "invalid_response")
    if not isinstance(payload, dict):
        raise GenerationError("reply was not a JSON object", "invalid_response")
    allowed = set(generated_fields(kind))
    if kind == GenerationKind.OBJECTIVES:
        drafts = payload.get("objectives")
        if not isinstance(drafts, list):
            raise GenerationError("reply had no objectives list", "invalid_response")
        return {"objectives": [
            {k: v for k, v in d.items() if k in allowed}
            for d in drafts if isinstance(d, dict)
        ]}
    result = {k: v for k, v in payload.items() if k in allowed}
    if kind == GenerationKind.COMPETITOR_ANALYSIS:
        social = result.get("social_networks")
        result["social_networks"] = {
            k: v for k, v in social.items() if isinstance(v, str) and v
        } if isinstance(social, dict) else {}
    return result


class AnthropicGenerationClient:
    """Produces singleton fields, objective drafts or a competitor analysis from a completion."""

    def __init__(
        self,
        api_key: str,
        store: RemoteStore,
        model: str,
        max_tokens: int = 2048,
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 30_000,
        timeout_seconds: int = 60,
    ):
        self.client = anthropic.AsyncAnthropic(
            api_key=api_key,
            timeout=timeout_seconds,
        )
        self._store = store
        self.model = model
        self.max_tokens = max_tokens
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    async def generate(
        self, tenant_id: TenantId, kind: GenerationKind,
        subject: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        context = ErrorContext(tenant_id=str(tenant_id), resource=kind.target.value)
        prompt = await self._prompt(tenant_id, kind, subject)
        messages = [{"role": "user", "content": prompt}]
        response = await self._create_message(messages, context)
        text = "".join(
            getattr(block, "text", "") for block in response.content
            if getattr(block, "type", None) == "text"
        )
        return parse_reply(kind, text)

    async def _prompt(
        self, tenant_id: TenantId, kind: GenerationKind,
        subject: dict[str, Any] | None = None,
    ) -> str:
        try:
            company = await self._store.fetch_one(ResourceType.COMPANY, {"id": tenant_id})
        except ProfileEditorError as e:
            raise GenerationError(
                f"could not read company: {e.message}", "store",
                context=ErrorContext(tenant_id=str(tenant_id)),
            )
        profile = {}
        if company is not None:
            profile = company.model_dump(
                include={"name", "description", "industry_sector", "company_size",
                         "country", "website_url"},
                exclude_none=True,
            )
        parts = [f"Company: {json.dumps(profile, ensure_ascii=False)}"]
        if subject:
            parts.append(f"Competitor: {json.dumps(subject, ensure_ascii=False, default=str)}")
        parts.append(_PROMPTS[kind])
        parts.append(f"Keys: {', '.join(generated_fields(kind))}")
        return "\n\n".join(parts)

    async def _create_message(self, messages: list, context: ErrorContext):
        """Create message with automatic retry on transient failures."""
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.messages.create(
                    model=self.model,
                    max_tokens=self.max_tokens,
                    system=_SYSTEM,
                    messages=messages,
                )
                logger.info(
                    "Anthropic API success",
                    extra={
                        "attempt": attempt + 1,
                        "tenant_id": context.tenant_id,
                        "resource": context.resource,
                    },
                )
                return response

            except RateLimitError as e:
                await self._handle_rate_limit(e, attempt, context)

            except APITimeoutError:
                # subclass of APIConnectionError, so it has to be caught first
                raise GenerationError("API timeout", "timeout", context=context)

            except (APIConnectionError, InternalServerError) as e:
                await self._handle_transient_error(e, attempt, context)

            except APIError as e:
                if _is_overloaded(e):
                    await self._handle_transient_error(e, attempt, context)
                    continue
                raise GenerationError(str(e), "client_error", context=context)

    async def _handle_rate_limit(
        self, e: RateLimitError, attempt: int, context: ErrorContext,
    ) -> None:
        retry_after_ms = self._extract_retry_after(e)
        if attempt >= self.max_retries:
            raise GenerationError(
                "Rate limit exceeded after retries",
                "rate_limit",
                retry_after_ms=retry_after_ms,
                context=context,
            )
        delay = retry_after_ms or self._backoff(attempt)
        logger.warning(
            f"Rate limit hit, retry after {delay}ms",
            extra={"attempt": attempt + 1, "tenant_id": context.tenant_id},
        )
        await asyncio.sleep(delay / 1000)

    async def _handle_transient_error(
        self, e: Exception, attempt: int, context: ErrorContext,
    ) -> None:
        if attempt >= self.max_retries:
            raise GenerationError(
                f"Transient failure after {self.max_retries} retries: {e}",
                "connection_error",
                context=context,
            )
        delay = self._backoff(attempt)
        logger.warning(
            f"Transient error, retry after {delay}ms: {e}",
            extra={"attempt": attempt + 1, "tenant_id": context.tenant_id},
        )
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    def _extract_retry_after(self, error: RateLimitError) -> int | None:
        """Retry-After header in milliseconds, if the response carried a usable one."""
        response = getattr(error, "response", None)
        if response is None:
            return None
        val = response.headers.get("retry-after")
        if val and val.isdigit():
            return int(val) * 1000
        return None
