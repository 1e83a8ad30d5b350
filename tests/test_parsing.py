import pytest

from buildsmith.artifacts import ArtifactSet
from buildsmith.utils.parsing import (
    Failed,
    Ok,
    Recovered,
    clean_code_response,
    parse_artifact_payload,
    parse_json_object,
    recover_json,
    strip_code_fences,
)


def test_strict_json_is_ok() -> None:
    outcome = parse_json_object('{"components": ["PricingTable"]}')

    assert isinstance(outcome, Ok)
    assert outcome.value == {"components": ["PricingTable"]}


def test_fenced_json_with_trailing_comma_is_recovered() -> None:
    text = 'Here is the plan:\n```json\n{"components": ["Faq", "Team",],}\n```\nLet me know!'

    outcome = parse_json_object(text)

    assert isinstance(outcome, Recovered)
    assert outcome.value == {"components": ["Faq", "Team"]}
    assert "removed markdown code fences" in outcome.warnings
    assert "removed trailing commas" in outcome.warnings


def test_smart_quotes_are_replaced() -> None:
    outcome = recover_json("{“name”: “Demo”}")

    assert isinstance(outcome, Recovered)
    assert outcome.value == {"name": "Demo"}
    assert "replaced typographic quotes" in outcome.warnings


@pytest.mark.parametrize("text", ["", "   ", "no json here at all", '{"open": '])
def test_non_json_fails(text: str) -> None:
    outcome = parse_json_object(text)

    assert isinstance(outcome, Failed)
    assert not outcome.ok
    assert outcome.reason


def test_json_array_is_not_an_object() -> None:
    outcome = parse_json_object("[1, 2, 3]")

    assert isinstance(outcome, Failed)
    assert "expected a JSON object" in outcome.reason


def test_braces_inside_strings_do_not_confuse_span_detection() -> None:
    outcome = recover_json('prefix {"code": "function f() { return 1; }"} suffix')

    assert isinstance(outcome, Recovered)
    assert outcome.value == {"code": "function f() { return 1; }"}


@pytest.mark.parametrize(
    "payload",
    [
        '{"files": [{"path": "src/App.tsx", "content": "x"}]}',
        '{"files": {"src/App.tsx": "x"}}',
        '{"src/App.tsx": "x"}',
    ],
)
def test_artifact_payload_shapes(payload: str) -> None:
    outcome = parse_artifact_payload(payload)

    assert isinstance(outcome, Ok)
    assert outcome.value == ArtifactSet({"src/App.tsx": "x"})


def test_artifact_payload_rejects_non_string_content() -> None:
    outcome = parse_artifact_payload('{"files": {"src/App.tsx": 3}}')

    assert isinstance(outcome, Failed)


def test_strip_code_fences_returns_largest_block() -> None:
    text = "```css\na{}\n```\nand\n```tsx\nexport default function App() { return null; }\n```"

    assert strip_code_fences(text).startswith("export default function App()")


def test_clean_code_response_drops_chatter() -> None:
    text = "Here's the updated component:\n\nexport const x = 1;\n\nThis file exports x."

    assert clean_code_response(text) == "export const x = 1;\n"


def test_clean_code_response_of_plain_code_is_unchanged() -> None:
    assert clean_code_response("const a = 1;\n") == "const a = 1;\n"
    assert clean_code_response("") == ""
