# model/api.py
from pydantic import BaseModel, Field
from model.fact import Slide, SlideInput
from typing import Literal, Optional


class VerifySlideRequest(SlideInput):
    pass


class VerifyDeckRequest(BaseModel):
    slides: list[SlideInput] = Field(min_length=1)
    generateQuestions: bool = False


class VerifyDeckResponse(BaseModel):
    slides: list[Slide]
    questions: Optional[list[str]] = None
    questionsError: Optional[str] = None


class RateLimitedResponse(BaseModel):
    ok: bool = False
    error: Literal["rate_limited"] = "rate_limited"
    message: str
    retryAfter: int
    slides: list[Slide] = Field(default_factory=list)


class GenerateQuestionsRequest(BaseModel):
    slides: list[Slide] = Field(min_length=1)


class GenerateQuestionsResponse(BaseModel):
    questions: list[str]


class ExtractSlidesResponse(BaseModel):
    slides: list[SlideInput]


ProgressPhase = Literal["slides", "questions"]


class ProgressPayload(BaseModel):
    phase: ProgressPhase
    processed: int
    total: int
    ts: int


class StreamEvent(BaseModel):
    type: Literal["slide", "progress", "error", "done"]
    payload: dict
