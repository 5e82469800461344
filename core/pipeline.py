# core/pipeline.py
import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator, List, Optional, Sequence
from config.settings import settings
from core.claim_extractor import ClaimExtractor
from core.claim_verifier import ClaimVerifier
from core.question_synthesizer import QuestionSynthesizer
from model.fact import Fact, Slide, SlideInput
from util.enums import ErrorMessage
from util.errors import ConfigurationError, PipelineError, RateLimitError, TransportError
from util.functions import retry_after_seconds
from util.timing import real_sleep, timed
from util.types import Sleeper
import logging

logger = logging.getLogger(__name__)

EXTRACT_RATE_LIMITED = "Rate limit exceeded. Please wait a moment and try again."
SLIDE_FAILED = "Error processing slide"


class RunState(str, Enum):
    IDLE = "Idle"
    EXTRACTING_CLAIMS = "ExtractingClaims"
    VERIFYING_CLAIMS = "VerifyingClaims"
    SLIDE_COMPLETE = "SlideComplete"
    ALL_SLIDES_COMPLETE = "AllSlidesComplete"
    SYNTHESIZING_QUESTIONS = "SynthesizingQuestions"
    DONE = "Done"
    ABORTED_ON_RATE_LIMIT = "AbortedOnRateLimit"
    CANCELLED = "Cancelled"


@dataclass(frozen=True)
class PipelineStrategy:
    """
    How a run treats slide boundaries.
    - single_slide: caller drives slides one at a time; a rate limit still
      returns the interrupted slide with whatever facts completed.
    - batch: whole deck in one run with a pause between slides; a rate limit
      aborts the run and the interrupted slide is dropped.
    """

    name: str
    slide_delay: float = 0.0
    keep_partial_slide: bool = True

    @classmethod
    def single_slide(cls) -> "PipelineStrategy":
        return cls(name="single", slide_delay=0.0, keep_partial_slide=True)

    @classmethod
    def batch(cls, slide_delay: float = settings.SLIDE_DELAY_SECONDS) -> "PipelineStrategy":
        return cls(name="batch", slide_delay=slide_delay, keep_partial_slide=False)


@dataclass
class PipelineRun:
    """Request-scoped state of one invocation. Never persisted."""

    inputs: List[SlideInput]
    strategy: PipelineStrategy
    slides: List[Slide] = field(default_factory=list)
    state: RunState = RunState.IDLE
    rate_limit: Optional[RateLimitError] = None
    questions: Optional[List[str]] = None
    questions_error: Optional[PipelineError] = None

    @property
    def aborted(self) -> bool:
        return self.state is RunState.ABORTED_ON_RATE_LIMIT

    def retry_after(self, default: int = settings.RATE_LIMIT_RETRY_AFTER_SECONDS) -> int:
        hint = self.rate_limit.retry_after if self.rate_limit else None
        return retry_after_seconds(hint, default)

    def abort(self, err: RateLimitError) -> None:
        self.rate_limit = err
        self.state = RunState.ABORTED_ON_RATE_LIMIT


def _cancelled(cancel: Optional[asyncio.Event]) -> bool:
    return cancel is not None and cancel.is_set()


class SlidePipeline:
    """
    Strictly sequential extract -> verify -> (optional) questions driver.

    Sequencing is what keeps the backend quota: one call in flight at a time,
    and `verify_delay` seconds of sleep between consecutive verification calls
    of a slide whether or not the previous call succeeded.
    """

    def __init__(
        self,
        extractor: ClaimExtractor,
        verifier: ClaimVerifier,
        *,
        synthesizer: Optional[QuestionSynthesizer] = None,
        verify_delay: float = settings.VERIFY_DELAY_SECONDS,
        sleep: Sleeper = real_sleep,
    ) -> None:
        self._extractor = extractor
        self._verifier = verifier
        self._synthesizer = synthesizer
        self._verify_delay = verify_delay
        self._sleep = sleep

    # ---------------- Entry points ----------------

    async def verify_slide(
        self, slide: SlideInput, *, cancel: Optional[asyncio.Event] = None
    ) -> PipelineRun:
        run = PipelineRun(inputs=[slide], strategy=PipelineStrategy.single_slide())
        return await self.execute(run, cancel=cancel)

    async def verify_deck(
        self,
        slides: Sequence[SlideInput],
        *,
        slide_delay: float = settings.SLIDE_DELAY_SECONDS,
        synthesize: bool = False,
        cancel: Optional[asyncio.Event] = None,
    ) -> PipelineRun:
        run = PipelineRun(inputs=list(slides), strategy=PipelineStrategy.batch(slide_delay))
        return await self.execute(run, synthesize=synthesize, cancel=cancel)

    async def execute(
        self,
        run: PipelineRun,
        *,
        synthesize: bool = False,
        cancel: Optional[asyncio.Event] = None,
    ) -> PipelineRun:
        with timed(logger, "pipeline.run", mode=run.strategy.name, slides=len(run.inputs)):
            async for _ in self.iter_slides(run, cancel=cancel):
                pass
            await self.finish(run, synthesize=synthesize)
        return run

    # ---------------- Slide loop ----------------

    async def iter_slides(
        self, run: PipelineRun, *, cancel: Optional[asyncio.Event] = None
    ) -> AsyncIterator[Slide]:
        """
        Yield each finished Slide in submission order. Stops early on a rate
        limit (run.aborted) or cancellation (run.state == CANCELLED).
        """
        for index, slide_input in enumerate(run.inputs):
            if index > 0 and run.strategy.slide_delay > 0:
                await self._sleep(run.strategy.slide_delay)
            if _cancelled(cancel):
                run.state = RunState.CANCELLED
                logger.info("pipeline.cancelled before_slide=%d", slide_input.slideNumber)
                return

            slide = await self._process_slide(run, slide_input, cancel)

            if run.aborted:
                logger.warning(
                    "pipeline.aborted slide=%d facts=%d keep=%s",
                    slide.slideNumber,
                    len(slide.facts),
                    run.strategy.keep_partial_slide,
                )
                if run.strategy.keep_partial_slide:
                    run.slides.append(slide)
                    yield slide
                return

            run.slides.append(slide)
            if run.state is RunState.CANCELLED:
                yield slide
                return
            run.state = RunState.SLIDE_COMPLETE
            yield slide

        run.state = RunState.ALL_SLIDES_COMPLETE

    async def _process_slide(
        self,
        run: PipelineRun,
        slide_input: SlideInput,
        cancel: Optional[asyncio.Event],
    ) -> Slide:
        number, text = slide_input.slideNumber, slide_input.text
        if not slide_input.has_content():
            # No text and no image: nothing to send to the extractor.
            logger.info("pipeline.slide.empty slide=%d", number)
            return Slide(slideNumber=number, text=text, facts=[])
        run.state = RunState.EXTRACTING_CLAIMS
        try:
            claims = await self._extractor.extract(text, slide_input.imageBase64)
        except ConfigurationError:
            raise
        except RateLimitError as e:
            run.abort(e)
            return Slide(slideNumber=number, text=text, facts=[], error=EXTRACT_RATE_LIMITED)
        except Exception as e:
            logger.error("pipeline.extract.error slide=%d err=%s", number, type(e).__name__, exc_info=True)
            return Slide(slideNumber=number, text=text, facts=[], error=str(e) or SLIDE_FAILED)

        facts: List[Fact] = []
        for j, claim in enumerate(claims):
            if j > 0:
                await self._sleep(self._verify_delay)
            if _cancelled(cancel):
                run.state = RunState.CANCELLED
                logger.info("pipeline.cancelled slide=%d claim=%d", number, j)
                break

            run.state = RunState.VERIFYING_CLAIMS
            try:
                fact = await self._verifier.verify(claim)
            except ConfigurationError:
                raise
            except RateLimitError as e:
                run.abort(e)
                return Slide(
                    slideNumber=number,
                    text=text,
                    facts=facts,
                    error=ErrorMessage.SLIDE_RATE_LIMITED.value.message,
                )
            except Exception as e:
                # Isolated per-claim failure: the claim yields no Fact.
                logger.error("pipeline.verify.error slide=%d claim=%d err=%s", number, j, type(e).__name__)
                continue
            facts.append(fact)

        logger.info("pipeline.slide.done slide=%d claims=%d facts=%d", number, len(claims), len(facts))
        return Slide(slideNumber=number, text=text, facts=facts)

    # ---------------- Questions ----------------

    async def finish(self, run: PipelineRun, *, synthesize: bool = False) -> PipelineRun:
        """
        Close a run whose slide loop has ended. Question synthesis only runs
        after every slide completed; its failure is recorded on the run and
        leaves the slide results untouched.
        """
        if run.state is not RunState.ALL_SLIDES_COMPLETE:
            return run
        if synthesize and self._synthesizer is not None:
            run.state = RunState.SYNTHESIZING_QUESTIONS
            try:
                run.questions = await self._synthesizer.synthesize(run.slides)
            except (RateLimitError, TransportError) as e:
                logger.warning("pipeline.questions.error err=%s", type(e).__name__)
                run.questions_error = e
        run.state = RunState.DONE
        return run
