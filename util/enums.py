# util/enums.py
from enum import Enum
from typing import NamedTuple
from fastapi import status


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    PROD = "prod"


class ErrorInfo(NamedTuple):
    message: str
    http_status: int


class ErrorMessage(Enum):
    NOT_CONFIGURED = ErrorInfo(
        "ANTHROPIC_API_KEY not configured. Please set it in your environment.",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    MISSING_SLIDE_CONTENT = ErrorInfo(
        "Either image or text is required", status.HTTP_400_BAD_REQUEST
    )
    SLIDE_RATE_LIMITED = ErrorInfo(
        "Rate limit exceeded. Please wait a moment and continue with the next slide.",
        status.HTTP_429_TOO_MANY_REQUESTS,
    )
    DECK_RATE_LIMITED = ErrorInfo(
        "Rate limit exceeded. Please wait a moment and try again, or process fewer slides at once.",
        status.HTTP_429_TOO_MANY_REQUESTS,
    )
    QUESTIONS_FAILED = ErrorInfo(
        "Failed to generate questions", status.HTTP_502_BAD_GATEWAY
    )
    PDF_UNREADABLE = ErrorInfo(
        "Could not read any pages from the uploaded PDF",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    INTERNAL_ERROR = ErrorInfo("Internal Error", status.HTTP_502_BAD_GATEWAY)
