# model/llm.py
from typing import Any
from pydantic import BaseModel, Field, model_validator
from model.fact import Source, Verdict

DEFAULT_EXPLANATION = "Unable to verify this claim."


def _strings(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        return []
    return [s.strip() for s in raw if isinstance(s, str) and s.strip()]


class ClaimsPayload(BaseModel):
    """Extraction output. Models sometimes answer with `claim` instead of `claims`."""

    claims: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return {"claims": []}
        raw = data.get("claims") or data.get("claim") or []
        return {"claims": _strings(raw)}


class QuestionsPayload(BaseModel):
    questions: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return {"questions": []}
        raw = data.get("questions") or data.get("question") or []
        return {"questions": _strings(raw)}


class VerificationPayload(BaseModel):
    """
    Verification output from either backend. Missing or mistyped fields fall
    back to: verified=False, verdict=Cannot Verify, generic explanation, no sources.
    """

    verified: bool = False
    verdict: Verdict = Verdict.cannot_verify
    explanation: str = DEFAULT_EXPLANATION
    sources: list[Source] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return {}
        explanation = data.get("explanation")
        return {
            "verified": data.get("verified") is True,
            "verdict": Verdict.coerce(data.get("verdict")),
            "explanation": (
                explanation.strip()
                if isinstance(explanation, str) and explanation.strip()
                else DEFAULT_EXPLANATION
            ),
            "sources": _sources(data.get("sources")),
        }


def _sources(raw: Any) -> list[dict]:
    out: list[dict] = []
    if not isinstance(raw, list):
        return out
    for item in raw:
        if isinstance(item, str) and item.strip():
            url = item.strip()
            out.append({"title": url, "url": url})
        elif isinstance(item, dict):
            url = str(item.get("url") or "").strip()
            title = str(item.get("title") or "").strip()
            if not url and not title:
                continue
            out.append({"title": title or url, "url": url})
    return out


def verification_json_schema() -> dict:
    """Schema handed to the search backend's structured-output mode."""
    return {
        "type": "object",
        "properties": {
            "verified": {"type": "boolean"},
            "verdict": {
                "type": "string",
                "enum": [v.value for v in Verdict],
            },
            "explanation": {"type": "string"},
            "sources": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "title": {"type": "string"},
                        "url": {"type": "string"},
                    },
                    "required": ["title", "url"],
                },
            },
        },
        "required": ["verified", "verdict", "explanation", "sources"],
    }
