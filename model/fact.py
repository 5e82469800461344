# model/fact.py
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class Verdict(str, Enum):
    verified = "Verified"
    partially_verified = "Partially Verified"
    cannot_verify = "Cannot Verify"

    @classmethod
    def coerce(cls, raw: object) -> "Verdict":
        """
        Map loose model output ("verified", "partially_verified", "PartiallyVerified")
        onto the enum. Anything unrecognised is Cannot Verify.
        """
        if isinstance(raw, cls):
            return raw
        key = "".join(str(raw or "").replace("_", " ").replace("-", " ").split()).lower()
        for v in cls:
            if v.value.replace(" ", "").lower() == key:
                return v
        return cls.cannot_verify


class Source(BaseModel):
    title: str
    url: str


class Fact(BaseModel):
    claim: str
    verified: bool
    verdict: Verdict
    explanation: str
    sources: list[Source] = Field(default_factory=list)


class SlideInput(BaseModel):
    slideNumber: int = Field(ge=1)
    text: str = ""
    imageBase64: Optional[str] = None

    def has_content(self) -> bool:
        return bool(self.text.strip()) or bool((self.imageBase64 or "").strip())


class Slide(BaseModel):
    slideNumber: int = Field(ge=1)
    text: str = ""
    facts: list[Fact] = Field(default_factory=list)
    error: Optional[str] = None
