# core/claim_extractor.py
from typing import List, Optional
from config.settings import settings
from core.anthropic_client import AnthropicClient
from core.response_parser import decode_payload
from model.llm import ClaimsPayload
from util.errors import TransportError
from util.functions import date_context
from util.timing import local_now
from util.types import Clock
import logging

logger = logging.getLogger(__name__)


class ClaimExtractor:
    """
    One LLM call per slide returning externally verifiable claims.

    The slide image, when present, is the source of truth and the text layer is
    passed along as a possibly garbled hint. Rate limits propagate; transport
    and parse failures degrade to no claims.
    """

    def __init__(
        self,
        llm: AnthropicClient,
        *,
        clock: Clock = local_now,
        max_tokens: int = settings.EXTRACT_MAX_TOKENS,
    ) -> None:
        self._llm = llm
        self._clock = clock
        self._max_tokens = max_tokens

    def build_prompt(self, slide_text: str, has_image: bool) -> str:
        prompt = settings.EXTRACT_PROMPT.format(**date_context(self._clock()))
        text = (slide_text or "").strip()
        if not text:
            return prompt
        hint = settings.EXTRACT_TEXT_HINT if has_image else settings.EXTRACT_TEXT_ONLY
        return prompt + hint.format(slide_text=text)

    async def extract(
        self, slide_text: str, image_base64: Optional[str] = None
    ) -> List[str]:
        has_image = bool((image_base64 or "").strip())
        prompt = self.build_prompt(slide_text, has_image)
        try:
            raw = await self._llm.complete(
                prompt,
                image_base64=image_base64 if has_image else None,
                max_tokens=self._max_tokens,
                purpose="extract",
            )
        except TransportError as e:
            logger.error("extract.transport_error status=%s", e.status_code)
            return []

        result = decode_payload(raw, ClaimsPayload, default_key="claims")
        if not result.ok:
            logger.warning("extract.parse_failed reason=%s", result.reason)
        logger.info("extract.claims count=%d", len(result.value.claims))
        return result.value.claims
