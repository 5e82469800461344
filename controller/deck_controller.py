# controller/deck_controller.py
from fastapi import APIRouter, File, UploadFile, status, Depends
from fastapi.responses import JSONResponse, StreamingResponse
from service.deck_service import DeckService
from model.api import (
    ExtractSlidesResponse,
    GenerateQuestionsRequest,
    GenerateQuestionsResponse,
    RateLimitedResponse,
    VerifyDeckRequest,
    VerifyDeckResponse,
    VerifySlideRequest,
)
from model.fact import Slide
from util.constants import InternalURIs
from util.enums import ErrorMessage
from controller.controller_dependencies import (
    get_deck_service,
    enforce_max_upload_size,
    inbound_rate_limiter,
)

deck_router = APIRouter(dependencies=[Depends(inbound_rate_limiter)])


@deck_router.post(
    InternalURIs.VERIFY_SLIDE,
    response_model=Slide,
    response_model_exclude_none=True,
)
async def verify_slide(
    payload: VerifySlideRequest,
    service: DeckService = Depends(get_deck_service),
):
    run = await service.verify_slide(payload)
    slide = (
        run.slides[0]
        if run.slides
        else Slide(slideNumber=payload.slideNumber, text=payload.text)
    )
    if run.aborted:
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content=slide.model_dump(mode="json", exclude_none=True),
            headers={"Retry-After": str(run.retry_after())},
        )
    return slide


@deck_router.post(
    InternalURIs.VERIFY_DECK,
    response_model=VerifyDeckResponse,
    response_model_exclude_none=True,
)
async def verify_deck(
    payload: VerifyDeckRequest,
    service: DeckService = Depends(get_deck_service),
):
    run = await service.verify_deck(payload)
    if run.aborted:
        retry = run.retry_after()
        body = RateLimitedResponse(
            message=ErrorMessage.DECK_RATE_LIMITED.value.message,
            retryAfter=retry,
            slides=run.slides,
        )
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content=body.model_dump(mode="json", exclude_none=True),
            headers={"Retry-After": str(retry)},
        )
    return VerifyDeckResponse(
        slides=run.slides,
        questions=run.questions,
        questionsError=(
            ErrorMessage.QUESTIONS_FAILED.value.message if run.questions_error else None
        ),
    )


@deck_router.post(InternalURIs.VERIFY_DECK_STREAM)
async def stream_deck(
    payload: VerifyDeckRequest,
    service: DeckService = Depends(get_deck_service),
):
    return StreamingResponse(
        service.stream_deck(payload), media_type="application/x-ndjson"
    )


@deck_router.post(
    InternalURIs.GENERATE_QUESTIONS,
    response_model=GenerateQuestionsResponse,
)
async def generate_questions(
    payload: GenerateQuestionsRequest,
    service: DeckService = Depends(get_deck_service),
) -> GenerateQuestionsResponse:
    questions = await service.generate_questions(payload.slides)
    return GenerateQuestionsResponse(questions=questions)


@deck_router.post(
    InternalURIs.EXTRACT_SLIDES,
    response_model=ExtractSlidesResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(enforce_max_upload_size)],
)
async def extract_slides(file: UploadFile = File(...)) -> ExtractSlidesResponse:
    data = await file.read()
    return ExtractSlidesResponse(slides=DeckService.extract_slides(data))
