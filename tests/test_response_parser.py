# tests/test_response_parser.py
from core.response_parser import decode_payload, parse_model_json
from model.fact import Verdict
from model.llm import ClaimsPayload, QuestionsPayload, VerificationPayload


def test_fenced_json_block_is_recovered():
    text = '```json\n{"claims":["a"]}\n```'
    result = parse_model_json(text)
    assert result.ok
    assert result.value == {"claims": ["a"]}


def test_parsing_is_idempotent():
    text = 'Sure! Here you go: {"claims": ["Market size is $4.2B"]} Hope it helps.'
    assert parse_model_json(text) == parse_model_json(text)


def test_object_wrapped_in_prose():
    result = parse_model_json('Here is the JSON:\n{"questions": ["Why now?"]}\nThanks')
    assert result.strategy == "object"
    assert result.value == {"questions": ["Why now?"]}


def test_bare_array_is_wrapped_under_default_key():
    result = parse_model_json('Claims: ["a", "b"]', default_key="questions")
    assert result.ok
    assert result.strategy == "array"
    assert result.value == {"questions": ["a", "b"]}


def test_broken_object_falls_back_to_array_span():
    # The outer {...} span is not valid JSON, the [...] inside it is.
    result = parse_model_json('{oops ["x", "y"] }')
    assert result.value == {"claims": ["x", "y"]}


def test_unparseable_text_returns_default_without_raising():
    result = parse_model_json("I could not find any claims.", default={"claims": []})
    assert not result.ok
    assert result.value == {"claims": []}
    assert result.reason


def test_empty_and_none_inputs():
    assert parse_model_json("").value == {}
    assert not parse_model_json(None).ok


def test_decode_claims_accepts_singular_key_and_drops_non_strings():
    result = decode_payload('{"claim": ["one", 2, " ", "two"]}', ClaimsPayload, default_key="claims")
    assert result.ok
    assert result.value.claims == ["one", "two"]


def test_decode_questions_failure_yields_empty_list():
    result = decode_payload("no json here at all", QuestionsPayload, default_key="questions")
    assert not result.ok
    assert result.value.questions == []


def test_decode_verification_fills_defaults():
    result = decode_payload('{"verdict": "partially_verified"}', VerificationPayload, default_key="sources")
    payload = result.value
    assert payload.verdict is Verdict.partially_verified
    assert payload.verified is False
    assert payload.explanation == "Unable to verify this claim."
    assert payload.sources == []


def test_decode_verification_normalizes_sources():
    raw = '{"verdict": "Verified", "sources": ["https://a.example", {"url": "https://b.example"}, {"foo": 1}]}'
    payload = decode_payload(raw, VerificationPayload, default_key="sources").value
    assert [(s.title, s.url) for s in payload.sources] == [
        ("https://a.example", "https://a.example"),
        ("https://b.example", "https://b.example"),
    ]


def test_unknown_verdict_is_cannot_verify():
    assert Verdict.coerce("Mostly true") is Verdict.cannot_verify
    assert Verdict.coerce("VERIFIED") is Verdict.verified
    assert Verdict.coerce(None) is Verdict.cannot_verify


def test_compact_verdict_spellings_are_recognised():
    assert Verdict.coerce("PartiallyVerified") is Verdict.partially_verified
    assert Verdict.coerce("CannotVerify") is Verdict.cannot_verify
    payload = VerificationPayload.model_validate({"verdict": "PartiallyVerified"})
    assert payload.verdict is Verdict.partially_verified
