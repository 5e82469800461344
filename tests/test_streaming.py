# tests/test_streaming.py
import json

from conftest import FakeExtractor, FakeSynthesizer, FakeVerifier
from core.pipeline import PipelineRun, PipelineStrategy, SlidePipeline
from core.streaming import make_deck_stream, ndjson_line
from model.fact import SlideInput
from util.errors import RateLimitError


def _run(*numbers) -> PipelineRun:
    return PipelineRun(
        inputs=[SlideInput(slideNumber=n, text=f"slide-{n}") for n in numbers],
        strategy=PipelineStrategy.batch(0),
    )


async def _collect(stream):
    return [json.loads(line) async for line in stream]


def test_ndjson_line_is_compact_and_terminated():
    assert ndjson_line({"type": "done", "payload": {}}) == b'{"type":"done","payload":{}}\n'


async def test_stream_emits_slides_then_done_with_questions(virtual_time):
    pipeline = SlidePipeline(
        FakeExtractor({1: ["a"], 2: []}),
        FakeVerifier(virtual_time),
        synthesizer=FakeSynthesizer(["Q?"]),
        sleep=virtual_time.sleep,
    )
    events = await _collect(make_deck_stream(pipeline=pipeline, run=_run(1, 2), synthesize=True))

    types = [e["type"] for e in events]
    assert types[0] == "progress"
    slides = [e["payload"] for e in events if e["type"] == "slide"]
    assert [s["slideNumber"] for s in slides] == [1, 2]
    assert slides[0]["facts"][0]["verdict"] == "Verified"
    assert events[-1] == {"type": "done", "payload": {"state": "Done", "questions": ["Q?"]}}


async def test_stream_reports_rate_limit_with_retry_hint(virtual_time):
    pipeline = SlidePipeline(
        FakeExtractor({1: ["a"], 2: RateLimitError("quota", retry_after=25)}),
        FakeVerifier(virtual_time),
        sleep=virtual_time.sleep,
    )
    events = await _collect(make_deck_stream(pipeline=pipeline, run=_run(1, 2, 3)))

    slides = [e["payload"]["slideNumber"] for e in events if e["type"] == "slide"]
    assert slides == [1]
    error = next(e for e in events if e["type"] == "error")
    assert error["payload"]["retryAfter"] == 25
    assert events[-1]["payload"]["state"] == "AbortedOnRateLimit"
