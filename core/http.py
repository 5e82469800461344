# core/http.py
from typing import Any, Dict, Optional
import httpx
import logging
from util.errors import RateLimitError, TransportError
from util.functions import parse_retry_after

logger = logging.getLogger(__name__)

RATE_LIMIT_ERROR_TYPE = "rate_limit_error"


def _error_type(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    err = body.get("error")
    if isinstance(err, dict):
        kind = err.get("type") or err.get("code")
        return str(kind) if kind is not None else None
    return None


async def post_json(
    url: str,
    headers: Dict[str, str],
    payload: Dict[str, Any],
    *,
    timeout: float = 60.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    backend: str = "llm",
) -> Dict[str, Any]:
    """
    JSON POST to `url`.
    - 429, or any body whose error.type is rate_limit_error -> RateLimitError
    - other non-2xx or network failure -> TransportError
    Returns the parsed JSON dict, or {} when a 2xx body is not JSON.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            r = await client.post(url, headers=headers, json=payload)
    except httpx.RequestError as e:
        logger.error("%s.request_error err=%s", backend, type(e).__name__)
        raise TransportError(f"{backend} request failed: {type(e).__name__}") from e

    try:
        body = r.json()
    except ValueError:
        body = {}

    if r.status_code == 429 or _error_type(body) == RATE_LIMIT_ERROR_TYPE:
        retry_after = parse_retry_after(r.headers.get("retry-after"))
        logger.warning("%s.rate_limited status=%d retry_after=%s", backend, r.status_code, retry_after)
        raise RateLimitError(f"{backend} rate limit exceeded", retry_after=retry_after)

    if r.status_code // 100 != 2:
        logger.error("%s.bad_status status=%d", backend, r.status_code)
        raise TransportError(
            f"{backend} returned HTTP {r.status_code}", status_code=r.status_code
        )

    return body if isinstance(body, dict) else {}
