from __future__ import annotations

import json

import pytest

from impactdeck.analysis.llm import (
    analyze_manual,
    analyze_screenshot,
    build_manual_prompt,
    extract_json_object,
)
from impactdeck.errors import AnalysisParseError
from impactdeck.io.models import ExtractedMetric, ManualInput, SemanticAnalysis


class FakeModel:
    def __init__(self, reply: str) -> None:
        self.reply = reply
        self.requests: list = []

    def complete(self, content):
        self.requests.append(content)
        return self.reply


def test_extract_json_object_strips_fences_and_prose():
    text = 'Sure! Here it is:\n```json\n{"orgName": "Acme", "colors": {"primary": "#123456"}}\n```\nThanks'
    assert extract_json_object(text) == {"orgName": "Acme", "colors": {"primary": "#123456"}}


def test_extract_json_object_ignores_braces_inside_strings():
    text = 'prefix {"tagline": "Hope {always} wins", "quote": "say \\"hi\\" }"} trailing }'
    assert extract_json_object(text) == {"tagline": "Hope {always} wins", "quote": 'say "hi" }'}


def test_extract_json_object_skips_invalid_candidates():
    assert extract_json_object("{not json} then {\"a\": 1}") == {"a": 1}


def test_extract_json_object_skips_unclosed_prose_brace():
    text = 'Colors use the {primary/accent scheme. Result:\n{"orgName": "Acme"}'
    assert extract_json_object(text) == {"orgName": "Acme"}


@pytest.mark.parametrize("text", ["", "no braces here", "{\"unterminated\": 1"])
def test_extract_json_object_failures(text):
    with pytest.raises(AnalysisParseError):
        extract_json_object(text)


def test_analysis_payload_ignores_mistyped_fields():
    analysis = SemanticAnalysis.from_payload(
        {
            "orgName": " Acme Food Bank ",
            "yearFounded": "1987",
            "coreValues": ["Hope", 3, None],
            "colors": ["#fff"],
            "metrics": [{"value": 500, "label": "Volunteers"}, "junk"],
        }
    )
    assert analysis.org_name == "Acme Food Bank"
    assert analysis.year_founded == 1987
    assert analysis.core_values == ["Hope", "3"]
    assert analysis.colors == {}
    assert analysis.metrics == [{"value": "500", "label": "Volunteers"}]


def test_analyze_screenshot_sends_image_and_metrics():
    model = FakeModel(json.dumps({"orgName": "Acme", "sector": "food-bank"}))
    analysis = analyze_screenshot(
        model,
        b"\x89PNG fake",
        "https://acme.org",
        "",
        None,
        [ExtractedMetric("1,200,000", "Meals")],
    )
    assert analysis.org_name == "Acme"
    content = model.requests[0]
    assert content[0]["type"] == "image"
    assert content[0]["source"]["media_type"] == "image/png"
    assert "1,200,000 Meals" in content[1]["text"]
    assert "LOGO URL: none" in content[1]["text"]


def _manual(**kwargs) -> ManualInput:
    base = dict(org_name="Acme", description="Feeds people", beneficiaries="Families", sector="food-bank")
    base.update(kwargs)
    return ManualInput(**base)


def test_manual_prompt_forbids_invented_metrics():
    prompt = build_manual_prompt(_manual())
    assert "Return an empty metrics array" in prompt
    assert "Location: Not specified" in prompt

    prompt = build_manual_prompt(_manual(metrics=[ExtractedMetric("40", "Pantries")], primary_color="#ff0000"))
    assert "40 Pantries" in prompt
    assert "primary=#ff0000" in prompt


def test_analyze_manual_discards_model_metrics_when_none_supplied():
    reply = json.dumps({"orgName": "Acme", "metrics": [{"value": "1M", "label": "Meals"}]})
    analysis = analyze_manual(FakeModel(reply), _manual())
    assert analysis.metrics == []


def test_analyze_manual_keeps_metrics_when_operator_gave_some():
    reply = json.dumps({"orgName": "Acme", "metrics": [{"value": "40", "label": "Pantries"}]})
    analysis = analyze_manual(FakeModel(reply), _manual(metrics=[ExtractedMetric("40", "Pantries")]))
    assert analysis.metrics == [{"value": "40", "label": "Pantries"}]


def test_manual_input_from_mapping():
    manual = ManualInput.from_mapping(
        {
            "orgName": "Acme",
            "description": "Feeds people",
            "beneficiaries": "Families",
            "yearFounded": 1990,
            "metrics": [{"value": "40", "label": "Pantries"}],
        }
    )
    assert manual.sector == "community"
    assert manual.year_founded == 1990
    assert manual.metrics == [ExtractedMetric("40", "Pantries")]
