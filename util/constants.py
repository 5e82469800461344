class InternalURIs:
    API = "/api"
    V1 = API + "/v1"
    VERIFY_SLIDE = V1 + "/verify-slide"
    VERIFY_DECK = V1 + "/verify"
    VERIFY_DECK_STREAM = VERIFY_DECK + "/stream"
    GENERATE_QUESTIONS = V1 + "/generate-questions"
    EXTRACT_SLIDES = V1 + "/extract-slides"


class ExternalURIs:
    ANTHROPIC_MESSAGES = "https://api.anthropic.com/v1/messages"
    PERPLEXITY_CHAT = "https://api.perplexity.ai/chat/completions"
