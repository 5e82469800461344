# service/deck_service.py
import logging
from typing import AsyncIterator, List
from fastapi import status
from config.settings import settings
from core.pdf_text import extract_slides
from core.pipeline import PipelineRun, PipelineStrategy, SlidePipeline
from core.question_synthesizer import QuestionSynthesizer
from core.streaming import make_deck_stream
from model.api import VerifyDeckRequest, VerifySlideRequest
from model.fact import Slide, SlideInput
from util.enums import ErrorMessage
from util.errors import AppError, RateLimitError, TransportError
from util.functions import retry_after_seconds

logger = logging.getLogger(__name__)


class DeckService:
    def __init__(
        self,
        pipeline: SlidePipeline,
        synthesizer: QuestionSynthesizer,
        *,
        slide_delay: float = settings.SLIDE_DELAY_SECONDS,
    ) -> None:
        self._pipeline = pipeline
        self._synthesizer = synthesizer
        self._slide_delay = slide_delay

    async def verify_slide(self, payload: VerifySlideRequest) -> PipelineRun:
        """
        Single-slide mode. Rejects empty slides before any backend call.
        Logs: slide number and outcome counts only.
        """
        if not payload.has_content():
            logger.warning("verify.slide.empty slide=%d", payload.slideNumber)
            raise AppError(
                ErrorMessage.MISSING_SLIDE_CONTENT.value.message,
                ErrorMessage.MISSING_SLIDE_CONTENT.value.http_status,
            )
        slide = SlideInput(
            slideNumber=payload.slideNumber,
            text=payload.text,
            imageBase64=payload.imageBase64,
        )
        run = await self._pipeline.verify_slide(slide)
        logger.info(
            "verify.slide.ok slide=%d state=%s facts=%d",
            payload.slideNumber,
            run.state.value,
            sum(len(s.facts) for s in run.slides),
        )
        return run

    async def verify_deck(self, payload: VerifyDeckRequest) -> PipelineRun:
        """Batch mode over the whole deck, optionally followed by questions."""
        run = await self._pipeline.verify_deck(
            payload.slides,
            slide_delay=self._slide_delay,
            synthesize=payload.generateQuestions,
        )
        logger.info(
            "verify.deck.ok slides=%d/%d state=%s",
            len(run.slides),
            len(payload.slides),
            run.state.value,
        )
        return run

    def stream_deck(self, payload: VerifyDeckRequest) -> AsyncIterator[bytes]:
        run = PipelineRun(
            inputs=list(payload.slides),
            strategy=PipelineStrategy.batch(self._slide_delay),
        )
        return make_deck_stream(
            pipeline=self._pipeline, run=run, synthesize=payload.generateQuestions
        )

    async def generate_questions(self, slides: List[Slide]) -> List[str]:
        try:
            questions = await self._synthesizer.synthesize(slides)
        except RateLimitError as e:
            retry = retry_after_seconds(e.retry_after, settings.RATE_LIMIT_RETRY_AFTER_SECONDS)
            logger.warning("questions.rate_limited retry_after=%d", retry)
            raise AppError(
                "Rate limit exceeded. Please wait a moment and try again.",
                status.HTTP_429_TOO_MANY_REQUESTS,
                headers={"Retry-After": str(retry)},
            )
        except TransportError as e:
            logger.error("questions.transport_error status=%s", e.status_code)
            raise AppError(
                ErrorMessage.QUESTIONS_FAILED.value.message,
                ErrorMessage.QUESTIONS_FAILED.value.http_status,
            )
        logger.info("questions.ok slides=%d count=%d", len(slides), len(questions))
        return questions

    @staticmethod
    def extract_slides(data: bytes) -> List[SlideInput]:
        slides = extract_slides(data)
        if not slides:
            raise AppError(
                ErrorMessage.PDF_UNREADABLE.value.message,
                ErrorMessage.PDF_UNREADABLE.value.http_status,
            )
        logger.info("extract.slides.ok bytes=%d slides=%d", len(data), len(slides))
        return slides
