# controller/controller_dependencies.py
from core.anthropic_client import AnthropicClient
from core.claim_extractor import ClaimExtractor
from core.claim_verifier import ClaimVerifier
from core.perplexity_client import PerplexityClient
from core.pipeline import SlidePipeline
from core.question_synthesizer import QuestionSynthesizer
from service.deck_service import DeckService
from fastapi import File, HTTPException, Request, UploadFile
from fastapi_limiter.depends import RateLimiter
from config.settings import settings
from util.enums import ErrorMessage
from util.errors import AppError, ConfigurationError
import logging

logger = logging.getLogger(__name__)

# Inbound throttle shared by every /api/v1 router.
inbound_rate_limiter = RateLimiter(
    times=settings.RATE_LIMIT_TIMES, seconds=settings.RATE_LIMIT_SECONDS
)


def get_deck_service() -> DeckService:
    try:
        _llm = AnthropicClient.from_settings()
    except ConfigurationError:
        logger.error("deck.service.not_configured")
        raise AppError(
            ErrorMessage.NOT_CONFIGURED.value.message,
            ErrorMessage.NOT_CONFIGURED.value.http_status,
        )
    _search = PerplexityClient.from_settings()
    _synthesizer = QuestionSynthesizer(_llm)
    _pipeline = SlidePipeline(
        ClaimExtractor(_llm),
        ClaimVerifier(_llm, _search),
        synthesizer=_synthesizer,
        verify_delay=settings.VERIFY_DELAY_SECONDS,
    )
    _service = DeckService(_pipeline, _synthesizer, slide_delay=settings.SLIDE_DELAY_SECONDS)
    return _service


async def enforce_max_upload_size(
    request: Request, file: UploadFile = File(...)
) -> UploadFile:
    # Fast pre-check via Content-Length if present
    MAX_BYTES = settings.MAX_FILE_MB * 1024 * 1024
    cl = request.headers.get("content-length")
    if cl and int(cl) > MAX_BYTES:
        # JSON envelope for 413
        raise HTTPException(
            status_code=413,
            detail={
                "ok": False,
                "error": "file_too_large",
                "maxMb": settings.MAX_FILE_MB,
            },
        )

    # Hard cap while reading initial bytes (works even if no Content-Length)
    blob = await file.read(MAX_BYTES + 1)
    if len(blob) > MAX_BYTES:
        raise HTTPException(
            status_code=413,
            detail={
                "ok": False,
                "error": "file_too_large",
                "maxMb": settings.MAX_FILE_MB,
            },
        )

    # Reset so downstream can re-read file stream
    await file.seek(0)
    return file
