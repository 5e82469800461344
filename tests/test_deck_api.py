# tests/test_deck_api.py
import fitz
import pytest
from fastapi.testclient import TestClient

from config.settings import settings
from conftest import FakeExtractor, FakeSynthesizer, FakeVerifier, VirtualTime
from controller.controller_dependencies import get_deck_service, inbound_rate_limiter
from core.pipeline import SlidePipeline
from main import app
from service.deck_service import DeckService
from util.constants import InternalURIs
from util.enums import ErrorMessage
from util.errors import AppError, RateLimitError, TransportError


@pytest.fixture
def wire():
    """Install a DeckService built from fakes; returns a builder."""

    def _wire(claims, failures=None, synthesizer=None):
        clock = VirtualTime()
        extractor = FakeExtractor(claims)
        verifier = FakeVerifier(clock, failures)
        synthesizer = synthesizer or FakeSynthesizer()
        pipeline = SlidePipeline(
            extractor, verifier, synthesizer=synthesizer, verify_delay=13, sleep=clock.sleep
        )
        service = DeckService(pipeline, synthesizer, slide_delay=0)
        app.dependency_overrides[get_deck_service] = lambda: service
        return extractor, verifier

    app.dependency_overrides[inbound_rate_limiter] = lambda: None
    yield _wire
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    # No context manager: the lifespan (Redis) is not started.
    return TestClient(app)


def test_healthz(client):
    assert client.get("/healthz").json() == {"ok": True}


def test_verify_slide_returns_slide(client, wire):
    wire({1: ["Market size is $4.2B"]})
    res = client.post(InternalURIs.VERIFY_SLIDE, json={"slideNumber": 1, "text": "slide-1"})

    assert res.status_code == 200
    body = res.json()
    assert body["slideNumber"] == 1
    assert "error" not in body
    assert body["facts"][0]["claim"] == "Market size is $4.2B"
    assert body["facts"][0]["verdict"] == "Verified"


def test_verify_slide_rejects_empty_input_before_any_call(client, wire):
    extractor, verifier = wire({1: ["a"]})
    res = client.post(InternalURIs.VERIFY_SLIDE, json={"slideNumber": 1, "text": "  "})

    assert res.status_code == 400
    assert res.json()["error"] == ErrorMessage.MISSING_SLIDE_CONTENT.value.message
    assert extractor.calls == [] and verifier.calls == []


def test_verify_slide_rate_limit_returns_partial_slide(client, wire):
    wire({1: ["c1", "c2", "c3"]}, failures={"c3": RateLimitError("quota", retry_after=20)})
    res = client.post(InternalURIs.VERIFY_SLIDE, json={"slideNumber": 1, "text": "slide-1"})

    assert res.status_code == 429
    assert res.headers["retry-after"] == "20"
    body = res.json()
    assert [f["claim"] for f in body["facts"]] == ["c1", "c2"]
    assert body["error"]


def test_verify_deck_returns_slides_and_questions(client, wire):
    wire({1: ["a"], 2: []}, synthesizer=FakeSynthesizer(["Why now?"]))
    res = client.post(
        InternalURIs.VERIFY_DECK,
        json={
            "slides": [{"slideNumber": 1, "text": "slide-1"}, {"slideNumber": 2, "text": "slide-2"}],
            "generateQuestions": True,
        },
    )
    assert res.status_code == 200
    body = res.json()
    assert [s["slideNumber"] for s in body["slides"]] == [1, 2]
    assert body["questions"] == ["Why now?"]
    assert "questionsError" not in body


def test_verify_deck_rate_limit_aborts_batch(client, wire):
    wire({1: ["a"], 2: RateLimitError("quota")})
    res = client.post(
        InternalURIs.VERIFY_DECK,
        json={"slides": [{"slideNumber": 1, "text": "slide-1"}, {"slideNumber": 2, "text": "slide-2"}]},
    )
    assert res.status_code == 429
    assert res.headers["retry-after"] == str(settings.RATE_LIMIT_RETRY_AFTER_SECONDS)
    body = res.json()
    assert body["error"] == "rate_limited"
    assert [s["slideNumber"] for s in body["slides"]] == [1]


def test_verify_deck_requires_slides(client, wire):
    wire({})
    assert client.post(InternalURIs.VERIFY_DECK, json={"slides": []}).status_code == 422


def test_stream_endpoint_emits_ndjson(client, wire):
    wire({1: ["a"]})
    res = client.post(
        InternalURIs.VERIFY_DECK_STREAM, json={"slides": [{"slideNumber": 1, "text": "slide-1"}]}
    )
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("application/x-ndjson")
    lines = [line for line in res.text.splitlines() if line]
    assert '"type":"slide"' in lines[1]
    assert lines[-1].startswith('{"type":"done"')


def test_generate_questions(client, wire):
    wire({}, synthesizer=FakeSynthesizer(["What is your CAC?"]))
    res = client.post(
        InternalURIs.GENERATE_QUESTIONS,
        json={"slides": [{"slideNumber": 1, "text": "Deck", "facts": []}]},
    )
    assert res.status_code == 200
    assert res.json() == {"questions": ["What is your CAC?"]}


def test_generate_questions_rate_limited(client, wire):
    wire({}, synthesizer=FakeSynthesizer(error=RateLimitError("quota", retry_after=9)))
    res = client.post(
        InternalURIs.GENERATE_QUESTIONS,
        json={"slides": [{"slideNumber": 1, "text": "Deck", "facts": []}]},
    )
    assert res.status_code == 429
    assert res.headers["retry-after"] == "9"
    assert res.json()["error"] == "rate_limited"


def test_generate_questions_transport_failure(client, wire):
    wire({}, synthesizer=FakeSynthesizer(error=TransportError("down", 503)))
    res = client.post(
        InternalURIs.GENERATE_QUESTIONS,
        json={"slides": [{"slideNumber": 1, "text": "Deck", "facts": []}]},
    )
    assert res.status_code == 502


def test_missing_credential_is_configuration_error(client, monkeypatch):
    monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", None)
    with pytest.raises(AppError) as info:
        get_deck_service()
    assert info.value.status_code == 500

    app.dependency_overrides[inbound_rate_limiter] = lambda: None
    try:
        res = client.post(InternalURIs.VERIFY_SLIDE, json={"slideNumber": 1, "text": "hello"})
    finally:
        app.dependency_overrides.clear()
    assert res.status_code == 500
    assert res.json()["error"] == ErrorMessage.NOT_CONFIGURED.value.message


def test_extract_slides_from_pdf(client, wire):
    doc = fitz.open()
    for line in ("Market size is $4.2B", "Team"):
        page = doc.new_page()
        page.insert_text((72, 72), line)
    data = doc.tobytes()
    doc.close()

    res = client.post(
        InternalURIs.EXTRACT_SLIDES,
        files={"file": ("deck.pdf", data, "application/pdf")},
    )
    assert res.status_code == 200
    slides = res.json()["slides"]
    assert [s["slideNumber"] for s in slides] == [1, 2]
    assert "Market size is $4.2B" in slides[0]["text"]


def test_extract_slides_rejects_garbage(client, wire):
    res = client.post(
        InternalURIs.EXTRACT_SLIDES,
        files={"file": ("deck.pdf", b"not a pdf", "application/pdf")},
    )
    assert res.status_code == 422


def test_generate_questions_fractional_retry_hint_is_at_least_one_second(client, wire):
    wire({}, synthesizer=FakeSynthesizer(error=RateLimitError("quota", retry_after=0.5)))
    res = client.post(
        InternalURIs.GENERATE_QUESTIONS,
        json={"slides": [{"slideNumber": 1, "text": "Deck", "facts": []}]},
    )
    assert res.status_code == 429
    assert res.headers["retry-after"] == "1"


def test_verify_deck_skips_blank_slides(client, wire):
    extractor, verifier = wire({2: ["Revenue grew 3x"]})
    res = client.post(
        InternalURIs.VERIFY_DECK,
        json={"slides": [{"slideNumber": 1, "text": ""}, {"slideNumber": 2, "text": "slide-2"}]},
    )
    assert res.status_code == 200
    slides = res.json()["slides"]
    assert slides[0]["facts"] == []
    assert extractor.calls == ["slide-2"]


def test_extract_slides_keeps_line_breaks(client, wire):
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "Market   size is $4.2B")
    page.insert_text((72, 144), "Founded 2021")
    data = doc.tobytes()
    doc.close()

    res = client.post(
        InternalURIs.EXTRACT_SLIDES,
        files={"file": ("deck.pdf", data, "application/pdf")},
    )
    assert res.status_code == 200
    assert res.json()["slides"][0]["text"] == "Market size is $4.2B\nFounded 2021"
