"""
Tests for loading element configurations from JSON and YAML.
"""

import json

import pydantic
import pytest

from pagecraft.interactive.config_loader import (
    load_element_config,
    load_element_configs,
    parse_element_config,
    parse_element_configs,
)
from pagecraft.interactive.models import CalculatorConfig, QuizConfig, SurveyConfig

CALCULATOR_YAML = """
id: roi-calc
type: calculator
websiteId: site-1
title: ROI Calculator
calculatorType: roi
inputs:
  - id: spend
    name: monthly_spend
    label: Monthly spend
    type: currency
    defaultValue: 1000
outputs:
  - id: savings
    label: Annual savings
    formula: monthly_spend * 12 * 0.15
    format: currency
    decimals: 0
    highlight: true
"""

SURVEY_JSON = json.dumps(
    {
        "id": "nps-1",
        "type": "survey",
        "websiteId": "site-1",
        "title": "How are we doing?",
        "surveyType": "nps",
        "questions": [{"id": "q1", "type": "nps", "question": "Recommend us?"}],
    }
)


class TestParseElementConfig:
    """Tests for parsing a single configuration document."""

    def test_parses_yaml(self):
        config = parse_element_config(CALCULATOR_YAML)
        assert isinstance(config, CalculatorConfig)
        assert config.calculator_type == "roi"
        assert config.inputs[0].name == "monthly_spend"
        assert config.inputs[0].default_value == 1000
        assert config.outputs[0].decimals == 0

    def test_parses_json(self):
        config = parse_element_config(SURVEY_JSON)
        assert isinstance(config, SurveyConfig)
        assert config.survey_type == "nps"

    def test_explicit_format(self):
        config = parse_element_config('{"type": "quiz", "id": "q"}', format="yaml")
        assert isinstance(config, QuizConfig)

    @pytest.mark.parametrize("content", ["", "- 1\n- 2\n", "42", "{}"])
    def test_rejects_non_objects(self, content):
        with pytest.raises(ValueError, match="must be an object"):
            parse_element_config(content)

    def test_rejects_invalid_json(self):
        with pytest.raises(ValueError):
            parse_element_config("{not json")

    def test_rejects_unknown_type(self):
        with pytest.raises(pydantic.ValidationError):
            parse_element_config("type: comparison\nid: x\n")


class TestParseElementConfigs:
    """Tests for parsing documents with several configurations."""

    def test_parses_list(self):
        content = json.dumps([{"type": "quiz", "id": "a"}, {"type": "survey", "id": "b"}])
        configs = parse_element_configs(content)
        assert [type(c) for c in configs] == [QuizConfig, SurveyConfig]

    def test_single_object_becomes_list(self):
        configs = parse_element_configs(CALCULATOR_YAML)
        assert len(configs) == 1

    def test_empty_document(self):
        assert parse_element_configs("") == []

    def test_rejects_scalar(self):
        with pytest.raises(ValueError):
            parse_element_configs("just text")


class TestLoadFromFile:
    """Tests for loading configurations from files."""

    def test_loads_yaml_file(self, tmp_path):
        path = tmp_path / "calculator.yml"
        path.write_text(CALCULATOR_YAML, encoding="utf-8")
        config = load_element_config(path)
        assert isinstance(config, CalculatorConfig)
        assert config.id == "roi-calc"

    def test_loads_json_file_by_string_path(self, tmp_path):
        path = tmp_path / "survey.json"
        path.write_text(SURVEY_JSON, encoding="utf-8")
        config = load_element_config(str(path))
        assert isinstance(config, SurveyConfig)

    def test_json_extension_wins_over_sniffing(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("type: quiz\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_element_config(path)

    def test_loads_many(self, tmp_path):
        path = tmp_path / "elements.yaml"
        path.write_text(
            "- type: quiz\n  id: a\n- type: calculator\n  id: b\n", encoding="utf-8"
        )
        configs = load_element_configs(path)
        assert [c.id for c in configs] == ["a", "b"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_element_config(tmp_path / "missing.yaml")
