# core/anthropic_client.py
from typing import Any, Dict, List, Optional
import httpx
from config.settings import settings
from core.http import post_json
from util.enums import ErrorMessage
from util.errors import ConfigurationError
from util.functions import split_data_url
import logging
from util.timing import timed

logger = logging.getLogger(__name__)


def _message_text(data: Dict[str, Any]) -> str:
    """Concatenate the text blocks of a Messages API response."""
    content = data.get("content") or []
    if not isinstance(content, list):
        return ""
    parts = [
        node.get("text") or ""
        for node in content
        if isinstance(node, dict) and node.get("type") == "text"
    ]
    return "".join(parts).strip()


class AnthropicClient:
    """
    Thin Messages API client. Constructed once per request from settings and
    injected into every pipeline stage; a missing key fails here, not mid-run.
    """

    def __init__(
        self,
        *,
        api_key: Optional[str],
        model: str,
        api_url: str,
        version: str,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError(ErrorMessage.NOT_CONFIGURED.value.message)
        self._api_key = api_key
        self._api_url = api_url
        self._version = version
        self._timeout = timeout
        self._transport = transport
        self.model = model

    @classmethod
    def from_settings(
        cls, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "AnthropicClient":
        return cls(
            api_key=settings.ANTHROPIC_API_KEY,
            model=settings.ANTHROPIC_MODEL,
            api_url=settings.ANTHROPIC_API_URL,
            version=settings.ANTHROPIC_VERSION,
            timeout=settings.LLM_TIMEOUT_SECONDS,
            transport=transport,
        )

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self._api_key,
            "anthropic-version": self._version,
            "content-type": "application/json",
        }

    async def complete(
        self,
        prompt: str,
        *,
        image_base64: Optional[str] = None,
        max_tokens: int = 1024,
        purpose: str = "complete",
    ) -> str:
        """
        Single-turn completion. When an image is given it is sent ahead of the
        prompt text. Returns the model's text ("" when the body has none).
        """
        content: List[Dict[str, Any]] = []
        if image_base64:
            media_type, data = split_data_url(image_base64)
            content.append(
                {
                    "type": "image",
                    "source": {"type": "base64", "media_type": media_type, "data": data},
                }
            )
        content.append({"type": "text", "text": prompt})

        payload = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": content}],
        }
        with timed(logger, f"ai.{purpose}", model=self.model, image=bool(image_base64)):
            data = await post_json(
                self._api_url,
                self._headers(),
                payload,
                timeout=self._timeout,
                transport=self._transport,
                backend="anthropic",
            )
        return _message_text(data)
