# core/perplexity_client.py
from typing import Any, Dict, List, Optional
import httpx
from config.settings import settings
from core.http import post_json
from util.errors import TransportError
import logging
from util.timing import timed

logger = logging.getLogger(__name__)


class PerplexityClient:
    """
    Search-augmented chat completions with structured (JSON schema) output.
    Optional: `from_settings` returns None when no key is configured.
    """

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        api_url: str,
        timeout: float = 30.0,
        temperature: float = 0.2,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._api_url = api_url
        self._timeout = timeout
        self._transport = transport
        self.model = model
        self.temperature = temperature

    @classmethod
    def from_settings(
        cls, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> Optional["PerplexityClient"]:
        if not settings.PERPLEXITY_API_KEY:
            return None
        return cls(
            api_key=settings.PERPLEXITY_API_KEY,
            model=settings.PERPLEXITY_MODEL,
            api_url=settings.PERPLEXITY_API_URL,
            timeout=settings.SEARCH_TIMEOUT_SECONDS,
            temperature=settings.SEARCH_TEMPERATURE,
            transport=transport,
        )

    async def chat(
        self, *, system: str, user: str, json_schema: Dict[str, Any]
    ) -> tuple[str, List[str]]:
        """
        Returns (message content, citation urls). Raises TransportError when
        the body carries no message content.
        """
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "temperature": self.temperature,
            "response_format": {
                "type": "json_schema",
                "json_schema": {"schema": json_schema},
            },
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        with timed(logger, "search.verify", model=self.model):
            data = await post_json(
                self._api_url,
                headers,
                payload,
                timeout=self._timeout,
                transport=self._transport,
                backend="perplexity",
            )

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        if not isinstance(content, str) or not content.strip():
            logger.warning("search.empty_content")
            raise TransportError("perplexity returned no message content")

        citations = data.get("citations") or []
        urls = [c for c in citations if isinstance(c, str) and c.strip()]
        return content, urls
