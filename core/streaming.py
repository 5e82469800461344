# core/streaming.py
import time
from typing import AsyncIterator, Dict, Final, Optional
import asyncio
import json
import logging
from core.pipeline import PipelineRun, RunState, SlidePipeline
from model.api import ProgressPayload, ProgressPhase, StreamEvent
from util.enums import ErrorMessage
from util.errors import ConfigurationError

LINE_SEP: Final[str] = "\n"
logger = logging.getLogger(__name__)


def ndjson_line(obj: Dict[str, object]) -> bytes:
    return (json.dumps(obj, separators=(",", ":")) + LINE_SEP).encode("utf-8")


def _event(kind: str, payload: Dict[str, object]) -> bytes:
    return ndjson_line(StreamEvent(type=kind, payload=payload).model_dump())


def _progress(phase: ProgressPhase, processed: int, total: int) -> bytes:
    payload = ProgressPayload(
        phase=phase, processed=processed, total=total, ts=int(time.time())
    )
    return _event("progress", payload.model_dump())


async def make_deck_stream(
    *,
    pipeline: SlidePipeline,
    run: PipelineRun,
    synthesize: bool = False,
    cancel: Optional[asyncio.Event] = None,
) -> AsyncIterator[bytes]:
    """
    Drive a batch run and emit NDJSON events:
      - slides progress 0..N, one `slide` event per finished slide
      - `error` with retryAfter if the run aborts on a rate limit
      - optional questions progress, then `done` (carrying questions, if any)
    """
    total = len(run.inputs)
    logger.info("stream.start slides=%d synthesize=%s", total, synthesize)
    yield _progress("slides", 0, total)

    processed = 0
    try:
        async for slide in pipeline.iter_slides(run, cancel=cancel):
            processed += 1
            yield _event("slide", slide.model_dump(mode="json", exclude_none=True))
            yield _progress("slides", processed, total)
    except ConfigurationError as e:
        logger.error("stream.config.error")
        yield _event("error", {"message": str(e)})
        yield _event("done", {})
        return
    except Exception:
        logger.error("stream.live.error", exc_info=True)
        # Try to gracefully end the stream
        yield _event("error", {"message": ErrorMessage.INTERNAL_ERROR.value.message})
        yield _event("done", {})
        return

    if run.aborted:
        yield _event(
            "error",
            {
                "message": ErrorMessage.DECK_RATE_LIMITED.value.message,
                "retryAfter": run.retry_after(),
            },
        )
        yield _event("done", {"state": run.state.value})
        return

    if synthesize and run.state is RunState.ALL_SLIDES_COMPLETE:
        yield _progress("questions", 0, 1)
    await pipeline.finish(run, synthesize=synthesize)

    done: Dict[str, object] = {"state": run.state.value}
    if run.questions is not None:
        done["questions"] = run.questions
        yield _progress("questions", 1, 1)
    if run.questions_error is not None:
        yield _event("error", {"message": ErrorMessage.QUESTIONS_FAILED.value.message})
    logger.info("stream.done slides=%d state=%s", processed, run.state.value)
    yield _event("done", done)
