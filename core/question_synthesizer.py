# core/question_synthesizer.py
from typing import List, Sequence
from config.settings import settings
from core.anthropic_client import AnthropicClient
from core.response_parser import decode_payload
from model.fact import Slide
from model.llm import QuestionsPayload
from util import functions
from util.timing import local_now
from util.types import Clock
import logging

logger = logging.getLogger(__name__)

SLIDE_SEPARATOR = "\n\n---\n\n"


def summarize_slides(slides: Sequence[Slide], max_chars: int) -> str:
    """
    Render each slide as its text prefix plus `- claim (verdict)` lines.
    """
    blocks: List[str] = []
    for slide in slides:
        facts = "\n".join(f"- {f.claim} ({f.verdict.value})" for f in slide.facts)
        blocks.append(
            f"Slide {slide.slideNumber}:\n"
            f"{functions.clip_chars(slide.text, max_chars)}\n\n"
            f"Verified Facts:\n{facts or 'None'}"
        )
    return SLIDE_SEPARATOR.join(blocks)


class QuestionSynthesizer:
    """
    Final investor-question pass over the whole deck. Rate-limit and transport
    errors propagate to the caller; an unparseable answer yields no questions.
    """

    def __init__(
        self,
        llm: AnthropicClient,
        *,
        clock: Clock = local_now,
        max_slide_chars: int = settings.QUESTION_SLIDE_TEXT_CHARS,
        max_tokens: int = settings.QUESTIONS_MAX_TOKENS,
    ) -> None:
        self._llm = llm
        self._clock = clock
        self._max_slide_chars = max_slide_chars
        self._max_tokens = max_tokens

    def build_prompt(self, slides: Sequence[Slide]) -> str:
        return settings.QUESTIONS_PROMPT.format(
            deck_summary=summarize_slides(slides, self._max_slide_chars),
            **functions.date_context(self._clock()),
        )

    async def synthesize(self, slides: Sequence[Slide]) -> List[str]:
        raw = await self._llm.complete(
            self.build_prompt(slides), max_tokens=self._max_tokens, purpose="questions"
        )
        result = decode_payload(raw, QuestionsPayload, default_key="questions")
        if not result.ok:
            logger.warning("questions.parse_failed reason=%s", result.reason)
        logger.info("questions.count n=%d slides=%d", len(result.value.questions), len(slides))
        return result.value.questions
