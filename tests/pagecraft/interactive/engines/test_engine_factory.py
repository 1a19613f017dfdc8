"""
Tests for engine selection and flattened config validation.
"""

import random

import pytest

from pagecraft.interactive.engines import (
    CalculatorEngine,
    QuizEngine,
    SurveyEngine,
    create_interactive_engine,
    validate_interactive_config,
)
from pagecraft.interactive.models import ElementConfig, QuizConfig


class TestCreateInteractiveEngine:
    """Tests for dispatching on the element type."""

    @pytest.mark.parametrize(
        "element_type, engine_class",
        [
            ("quiz", QuizEngine),
            ("calculator", CalculatorEngine),
            ("survey", SurveyEngine),
        ],
    )
    def test_dispatches_mappings(self, element_type, engine_class):
        engine = create_interactive_engine({"type": element_type, "id": "el-1"})
        assert isinstance(engine, engine_class)
        assert engine.id == "el-1"

    def test_accepts_models(self):
        config = QuizConfig(id="quiz-1", title="Quiz")
        engine = create_interactive_engine(config)
        assert isinstance(engine, QuizEngine)
        assert engine.config is config

    def test_passes_rng(self):
        config = QuizConfig.model_validate(
            {
                "questions": [
                    {"id": f"q{i}", "type": "text", "question": "?", "order": i}
                    for i in range(6)
                ],
                "settings": {"randomizeQuestions": True},
            }
        )
        first = create_interactive_engine(config, rng=random.Random(11))
        second = create_interactive_engine(config, rng=random.Random(11))
        assert [q.id for q in first.get_ordered_questions()] == [
            q.id for q in second.get_ordered_questions()
        ]

    def test_rejects_unsupported_model(self):
        with pytest.raises(ValueError, match="Unsupported interactive element type: quiz"):
            create_interactive_engine(ElementConfig(type="quiz"))

    def test_rejects_unknown_type_tag(self):
        with pytest.raises(ValueError):
            create_interactive_engine({"type": "form", "id": "x"})


class TestValidateInteractiveConfig:
    """Tests for flattened validation messages."""

    def test_flattens_messages(self):
        summary = validate_interactive_config({"type": "quiz", "id": "quiz-1", "websiteId": "s"})
        assert summary.is_valid is False
        assert summary.errors == [
            "title: Element title is required",
            "questions: Quiz must have at least one question",
        ]
        assert summary.warnings == []

    def test_valid_config(self):
        summary = validate_interactive_config(
            {
                "type": "survey",
                "id": "survey-1",
                "websiteId": "site-1",
                "title": "Feedback",
                "questions": [{"id": "q1", "type": "open-text", "question": "Thoughts?"}],
                "settings": {"thankYouMessage": "Thanks!"},
            }
        )
        assert summary.is_valid is True
        assert summary.errors == []
