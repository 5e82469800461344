# core/response_parser.py
import json
import re
from dataclasses import dataclass
from typing import Any, Generic, Optional, Type, TypeVar
from pydantic import BaseModel, ValidationError
import logging

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)
T = TypeVar("T")

_OBJECT_SPAN = re.compile(r"\{[\s\S]*\}")
_ARRAY_SPAN = re.compile(r"\[[\s\S]*\]")
_FENCED = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """
    Outcome of decoding model text. `ok=False` still carries a usable
    default `value`; `reason` says why decoding failed.
    """

    value: T
    ok: bool
    strategy: Optional[str] = None
    reason: Optional[str] = None


def _loads(raw: str) -> Any:
    try:
        return json.loads(raw)
    except (ValueError, TypeError):
        return None


def _as_object(value: Any, default_key: str) -> Optional[dict]:
    if isinstance(value, dict):
        return value
    if isinstance(value, list):
        return {default_key: value}
    return None


def parse_model_json(
    text: Optional[str], *, default_key: str = "claims", default: Optional[dict] = None
) -> ParseResult[dict]:
    """
    Best-effort JSON object recovery from free-form model text, in order:
      1) outermost {...} span
      2) outermost [...] span, wrapped as {default_key: [...]}
      3) the whole trimmed text
      4) the first fenced ``` block
    Never raises; on total failure returns `default` (or {}) with ok=False.
    """
    fallback = dict(default) if default is not None else {}
    raw = (text or "").strip()
    if not raw:
        return ParseResult(value=fallback, ok=False, reason="empty response")

    m = _OBJECT_SPAN.search(raw)
    if m:
        obj = _as_object(_loads(m.group(0)), default_key)
        if obj is not None:
            return ParseResult(value=obj, ok=True, strategy="object")

    m = _ARRAY_SPAN.search(raw)
    if m:
        arr = _loads(m.group(0))
        if isinstance(arr, list):
            return ParseResult(value={default_key: arr}, ok=True, strategy="array")

    obj = _as_object(_loads(raw), default_key)
    if obj is not None:
        return ParseResult(value=obj, ok=True, strategy="whole")

    m = _FENCED.search(raw)
    if m:
        obj = _as_object(_loads(m.group(1)), default_key)
        if obj is not None:
            return ParseResult(value=obj, ok=True, strategy="fenced")

    logger.warning("parse.failed chars=%d", len(raw))
    return ParseResult(value=fallback, ok=False, reason="no JSON payload found")


def decode_payload(
    text: Optional[str], schema: Type[M], *, default_key: str
) -> ParseResult[M]:
    """
    Parse then validate into `schema`. Failures yield `schema()` (all defaults)
    so callers always get a typed value.
    """
    parsed = parse_model_json(text, default_key=default_key)
    if not parsed.ok:
        return ParseResult(value=schema(), ok=False, reason=parsed.reason)
    try:
        return ParseResult(
            value=schema.model_validate(parsed.value), ok=True, strategy=parsed.strategy
        )
    except ValidationError as e:
        logger.warning("parse.invalid schema=%s errors=%d", schema.__name__, e.error_count())
        return ParseResult(value=schema(), ok=False, reason="schema validation failed")
