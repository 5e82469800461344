# config/settings.py
import os
import sys
from typing import Optional
from dotenv import load_dotenv
from pydantic import ValidationError, Field
from pydantic_settings import BaseSettings
from util.constants import ExternalURIs
from util.enums import Environment
import logging


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()

_log = logging.getLogger("config.settings")


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(..., validation_alias="APP_ENV")
    REDIS_URL: str = Field(..., validation_alias="REDIS_URL")

    # CORS & Limits
    ALLOWED_ORIGIN: str = Field(..., validation_alias="ALLOWED_ORIGIN")
    RATE_LIMIT_TIMES: int = Field(..., validation_alias="RATE_LIMIT_TIMES")
    RATE_LIMIT_SECONDS: int = Field(..., validation_alias="RATE_LIMIT_SECONDS")
    MAX_FILE_MB: int = Field(..., validation_alias="MAX_FILE_MB")
    TRUST_PROXY: bool = Field(..., validation_alias="TRUST_PROXY")

    # Anthropic Settings (primary LLM; absence disables the pipeline)
    ANTHROPIC_API_KEY: Optional[str] = Field(
        default=None, validation_alias="ANTHROPIC_API_KEY"
    )
    ANTHROPIC_API_URL: str = Field(
        default=ExternalURIs.ANTHROPIC_MESSAGES, validation_alias="ANTHROPIC_API_URL"
    )
    ANTHROPIC_MODEL: str = Field(
        default="claude-haiku-4-5-20251001", validation_alias="ANTHROPIC_MODEL"
    )
    ANTHROPIC_VERSION: str = Field(
        default="2023-06-01", validation_alias="ANTHROPIC_VERSION"
    )
    LLM_TIMEOUT_SECONDS: float = 60.0

    # Perplexity Settings (search-augmented verification; optional)
    PERPLEXITY_API_KEY: Optional[str] = Field(
        default=None, validation_alias="PERPLEXITY_API_KEY"
    )
    PERPLEXITY_API_URL: str = Field(
        default=ExternalURIs.PERPLEXITY_CHAT, validation_alias="PERPLEXITY_API_URL"
    )
    PERPLEXITY_MODEL: str = Field(default="sonar", validation_alias="PERPLEXITY_MODEL")
    SEARCH_TIMEOUT_SECONDS: float = 30.0
    SEARCH_TEMPERATURE: float = 0.2

    # Pipeline pacing (free tier: 5 requests/min -> 13s between verifications)
    VERIFY_DELAY_SECONDS: float = Field(
        default=13.0, validation_alias="VERIFY_DELAY_SECONDS"
    )
    SLIDE_DELAY_SECONDS: float = Field(
        default=1.0, validation_alias="SLIDE_DELAY_SECONDS"
    )
    RATE_LIMIT_RETRY_AFTER_SECONDS: int = Field(
        default=60, validation_alias="RATE_LIMIT_RETRY_AFTER_SECONDS"
    )
    QUESTION_SLIDE_TEXT_CHARS: int = 500
    EXTRACT_MAX_TOKENS: int = 1024
    VERIFY_MAX_TOKENS: int = 1024
    QUESTIONS_MAX_TOKENS: int = 2048

    # Logging knobs
    LOGGER_NAME: str = "deck-check"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")

    # Prompts ({current_date}/{current_time} are filled per call)
    EXTRACT_PROMPT: str = (
        "Extract verifiable claims from this pitch deck slide. Focus on:\n"
        "- Numbers, statistics, market data\n"
        "- Financial figures\n"
        "- Market size claims\n"
        "- User/customer numbers\n"
        "- Growth percentages\n"
        "- Pricing information\n"
        "- Any factual claims that can be verified\n"
        "\n"
        "IMPORTANT - IGNORE THE FOLLOWING:\n"
        "- Contact information: addresses, phone numbers, email addresses, website URLs, company contact details\n"
        "- Author/presenter information: author names, presenter names, creator information\n"
        "- Presentation metadata: slide numbers, page numbers, presentation titles, deck metadata\n"
        "- Formatting elements: headers, footers, decorative text, navigation elements\n"
        "- Copyright notices, disclaimers, legal text\n"
        "- Company logos and branding text (unless it's part of a verifiable claim)\n"
        "- Business model information: revenue models, monetization strategies, business plans, "
        "how the company makes money, commission structures, pricing models, business processes, operational models\n"
        "- Only extract substantive factual claims about external facts that can be fact-checked "
        "(not internal business plans or models)\n"
        "\n"
        "CRITICAL: Always interpret all facts as if they are current/present-day claims. "
        "The current date and time is: {current_date} at {current_time}.\n"
        "- If a claim doesn't specify a time period, assume it refers to the present ({current_date})\n"
        "- Treat all statistics, numbers, and data points as if they are current as of {current_date}\n"
        '- Frame claims as present-day statements (e.g., "Market size is $4.2B" not "Market size was $4.2B")\n'
        "\n"
        "Return ONLY valid JSON, nothing else. No explanations, no markdown, just the JSON object.\n"
        "\n"
        'Return a JSON object with a "claims" array of claim strings. '
        'Example: {{"claims": ["Market size: $4.2B", "Medallions cost ~$500k"]}}'
    )

    EXTRACT_TEXT_HINT: str = (
        "\n\nExtracted text (may be garbled, but use the image above as primary source):\n{slide_text}"
    )
    EXTRACT_TEXT_ONLY: str = "\n\nSlide text:\n{slide_text}"

    SEARCH_SYSTEM_PROMPT: str = (
        "You are a fact-checking assistant. Verify claims and provide sources. "
        "Treat claims without a time period as present-day statements as of {current_date} "
        "and prefer current sources; if a claim is historical, say so in the explanation. "
        "Return a JSON object with: verified (boolean), verdict (Verified/Partially Verified/Cannot Verify), "
        "explanation (2-3 sentences), and sources (array of {{title, url}})."
    )
    SEARCH_USER_PROMPT: str = 'Verify this claim and provide sources: "{claim}"'

    VERIFY_PROMPT: str = (
        "You are a fact-checking assistant. Verify this claim and provide sources.\n"
        "\n"
        "CRITICAL: Always interpret the claim as a present-day statement. "
        "The current date and time is: {current_date} at {current_time}.\n"
        "- Treat the claim as if it refers to the present ({current_date}), even if no time period is specified\n"
        "- Verify the claim as if it's describing the current state of affairs\n"
        "- Use current data and recent sources to verify the claim\n"
        "- If the claim is about historical data, note that in your explanation but still verify it against current information\n"
        "\n"
        "IMPORTANT:\n"
        "- Return ONLY valid JSON, nothing else. No explanations, no markdown, just the JSON object.\n"
        "\n"
        "Return a JSON object with:\n"
        "- verified (boolean): true if the claim is verified, false otherwise\n"
        '- verdict (string): "Verified", "Partially Verified", or "Cannot Verify"\n'
        "- explanation (string): 2-3 sentences explaining your verification "
        "(mention if the claim refers to current vs historical data)\n"
        '- sources (array): Array of objects with "title" and "url" properties\n'
        "\n"
        'Claim to verify: "{claim}"'
    )

    QUESTIONS_PROMPT: str = (
        "You are a venture capitalist reviewing a pitch deck. Based on the pitch deck content and verified facts below, "
        "generate 8-12 critical questions that an investor should ask the founder.\n"
        "\n"
        "Focus on questions about:\n"
        "- Competition and competitive advantage\n"
        "- Monetization strategy and revenue model\n"
        "- Exit strategy and potential acquirers\n"
        "- Market validation and traction\n"
        "- Team and execution capability\n"
        "- Financial projections and unit economics\n"
        "- Go-to-market strategy\n"
        "- Risks and challenges\n"
        "- Product-market fit evidence\n"
        "- Scalability and growth plans\n"
        "\n"
        "Current date: {current_date} - consider this when asking about timelines, market conditions, etc.\n"
        "\n"
        "IMPORTANT: Return ONLY valid JSON, nothing else. No explanations, no markdown, just the JSON object.\n"
        "\n"
        'Return a JSON object with a "questions" array of question strings. '
        "Each question should be specific, actionable, and based on the pitch deck content.\n"
        "\n"
        'Example format: {{"questions": ["What is your competitive moat and how defensible is it?", '
        '"What is your customer acquisition cost (CAC) and lifetime value (LTV)?", '
        '"Who are your top 3 potential acquirers and why?"]}}\n'
        "\n"
        "Pitch Deck Content:\n"
        "{deck_summary}"
    )


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)

if not settings.ANTHROPIC_API_KEY:
    _log.warning("settings.anthropic.missing pipeline routes will answer 500")
if not settings.PERPLEXITY_API_KEY:
    _log.info("settings.perplexity.missing verification falls back to LLM-only")
