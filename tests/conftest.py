# tests/conftest.py
import os

# Settings are read at import time; pin a deterministic environment first.
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")
os.environ.setdefault("ALLOWED_ORIGIN", "http://localhost:3000")
os.environ.setdefault("RATE_LIMIT_TIMES", "100")
os.environ.setdefault("RATE_LIMIT_SECONDS", "60")
os.environ.setdefault("MAX_FILE_MB", "1")
os.environ.setdefault("TRUST_PROXY", "false")
os.environ["ANTHROPIC_API_KEY"] = "sk-ant-test"
os.environ.pop("PERPLEXITY_API_KEY", None)

from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Union

import pytest

from model.fact import Fact, Verdict
from util.errors import RateLimitError

FIXED_NOW = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)


class VirtualTime:
    """Sleeper that advances a virtual clock instead of waiting."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


Scripted = Union[str, Exception, Callable[[str], str]]


class FakeLLM:
    """Stands in for AnthropicClient.complete with scripted answers."""

    model = "fake-model"

    def __init__(self, *answers: Scripted) -> None:
        self._answers = list(answers)
        self.calls: List[Dict[str, object]] = []

    async def complete(self, prompt, *, image_base64=None, max_tokens=1024, purpose="complete"):
        self.calls.append(
            {"prompt": prompt, "image": image_base64, "max_tokens": max_tokens, "purpose": purpose}
        )
        answer = self._answers.pop(0) if len(self._answers) > 1 else self._answers[0]
        if isinstance(answer, Exception):
            raise answer
        if callable(answer):
            return answer(prompt)
        return answer


class FakeExtractor:
    def __init__(self, claims_by_slide: Dict[int, Union[List[str], Exception]]) -> None:
        self._claims = claims_by_slide
        self.calls: List[str] = []

    async def extract(self, slide_text: str, image_base64: Optional[str] = None) -> List[str]:
        self.calls.append(slide_text)
        # slide text doubles as the key: "slide-<n>"
        outcome = self._claims.get(int(slide_text.rsplit("-", 1)[-1]), [])
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)


class FakeVerifier:
    """Verifies claims in order; `failures` maps claim -> exception to raise."""

    def __init__(self, clock: Optional[VirtualTime] = None, failures=None) -> None:
        self._clock = clock
        self._failures = dict(failures or {})
        self.calls: List[str] = []
        self.started_at: List[float] = []

    async def verify(self, claim: str) -> Fact:
        self.calls.append(claim)
        if self._clock is not None:
            self.started_at.append(self._clock.now)
        err = self._failures.get(claim)
        if err is not None:
            raise err
        return Fact(
            claim=claim,
            verified=True,
            verdict=Verdict.verified,
            explanation=f"checked {claim}",
            sources=[],
        )


class FakeSynthesizer:
    def __init__(self, questions=None, error: Optional[Exception] = None) -> None:
        self._questions = questions or ["What is your CAC?"]
        self._error = error
        self.calls = 0

    async def synthesize(self, slides):
        self.calls += 1
        if self._error is not None:
            raise self._error
        return list(self._questions)


@pytest.fixture
def virtual_time() -> VirtualTime:
    return VirtualTime()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def rate_limit() -> RateLimitError:
    return RateLimitError("quota", retry_after=30)
