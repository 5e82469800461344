# core/claim_verifier.py
from typing import Optional
from config.settings import settings
from core.anthropic_client import AnthropicClient
from core.perplexity_client import PerplexityClient
from core.response_parser import decode_payload
from model.fact import Fact, Source, Verdict
from model.llm import VerificationPayload, verification_json_schema
from util.errors import ParseError, RateLimitError, TransportError
from util.functions import date_context
from util.timing import local_now
from util.types import Clock
import logging

logger = logging.getLogger(__name__)

NOT_CONFIGURED_EXPLANATION = "No verification backend configured."
UNPARSEABLE_EXPLANATION = "Unable to parse verification response."


def _to_fact(claim: str, payload: VerificationPayload) -> Fact:
    # `verified` is derived from the verdict; the model's own boolean is only logged.
    verified = payload.verdict is Verdict.verified
    if payload.verified != verified:
        logger.info(
            "verify.flag_mismatch model_verified=%s verdict=%s",
            payload.verified,
            payload.verdict.value,
        )
    return Fact(
        claim=claim,
        verified=verified,
        verdict=payload.verdict,
        explanation=payload.explanation,
        sources=payload.sources,
    )


class ClaimVerifier:
    """
    Primary: search-augmented backend (Perplexity) when configured.
    Secondary: plain LLM. Any primary failure falls through to the secondary;
    with no secondary the primary's error propagates.
    """

    def __init__(
        self,
        llm: Optional[AnthropicClient],
        search: Optional[PerplexityClient] = None,
        *,
        clock: Clock = local_now,
        max_tokens: int = settings.VERIFY_MAX_TOKENS,
    ) -> None:
        self._llm = llm
        self._search = search
        self._clock = clock
        self._max_tokens = max_tokens

    async def verify(self, claim: str) -> Fact:
        if self._search is not None:
            try:
                return await self._verify_with_search(claim)
            except (RateLimitError, TransportError, ParseError) as e:
                if self._llm is None:
                    raise
                logger.warning("verify.search.fallback err=%s", type(e).__name__)

        if self._llm is None:
            return Fact(
                claim=claim,
                verified=False,
                verdict=Verdict.cannot_verify,
                explanation=NOT_CONFIGURED_EXPLANATION,
                sources=[],
            )
        return await self._verify_with_llm(claim)

    async def _verify_with_search(self, claim: str) -> Fact:
        ctx = date_context(self._clock())
        content, citations = await self._search.chat(
            system=settings.SEARCH_SYSTEM_PROMPT.format(**ctx),
            user=settings.SEARCH_USER_PROMPT.format(claim=claim),
            json_schema=verification_json_schema(),
        )
        result = decode_payload(content, VerificationPayload, default_key="sources")
        if not result.ok:
            raise ParseError(result.reason or "unparseable search response")

        payload = result.value
        if not payload.sources and citations:
            payload = payload.model_copy(
                update={"sources": [Source(title=u, url=u) for u in citations]}
            )
        fact = _to_fact(claim, payload)
        logger.info("verify.search.result verdict=%s sources=%d", fact.verdict.value, len(fact.sources))
        return fact

    async def _verify_with_llm(self, claim: str) -> Fact:
        prompt = settings.VERIFY_PROMPT.format(claim=claim, **date_context(self._clock()))
        raw = await self._llm.complete(
            prompt, max_tokens=self._max_tokens, purpose="verify"
        )
        result = decode_payload(raw, VerificationPayload, default_key="sources")
        if not result.ok:
            logger.warning("verify.llm.parse_failed reason=%s", result.reason)
            return Fact(
                claim=claim,
                verified=False,
                verdict=Verdict.cannot_verify,
                explanation=UNPARSEABLE_EXPLANATION,
                sources=[],
            )
        fact = _to_fact(claim, result.value)
        logger.info("verify.llm.result verdict=%s sources=%d", fact.verdict.value, len(fact.sources))
        return fact
