# util/functions.py
import re
from datetime import datetime
from typing import Optional, Tuple

_DATA_URL = re.compile(r"^data:(image/[\w.+-]+);base64,", re.IGNORECASE)


def clip_chars(text: str, max_chars: int = 500) -> str:
    """
    - Keep the first `max_chars` characters of `text`.
    - No ellipsis: the prefix goes into a prompt, not a UI.
    """
    if max_chars <= 0:
        return ""
    return text[:max_chars]


def split_data_url(image: str, default_media_type: str = "image/png") -> Tuple[str, str]:
    """
    Return (media_type, base64_payload) for either a bare base64 string or a
    `data:image/...;base64,` URL as produced by canvas.toDataURL().
    """
    m = _DATA_URL.match(image)
    if not m:
        return default_media_type, image.strip()
    return m.group(1).lower(), image[m.end():].strip()


def date_context(now: datetime) -> dict[str, str]:
    """Prompt placeholders anchoring relative claims to invocation time."""
    return {
        "current_date": now.strftime("%A, %B %d, %Y"),
        "current_time": now.strftime("%I:%M %p %Z").strip(),
    }


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    # Only the delta-seconds form; HTTP-date hints are ignored.
    if not value:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def retry_after_seconds(hint: Optional[float], default: int) -> int:
    """Whole seconds for a Retry-After header; never below 1."""
    if hint is None:
        return int(default)
    return max(1, int(round(hint)))
