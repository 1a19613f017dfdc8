"""
Engine selection for the closed set of element configurations.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

from pagecraft.interactive.models import (
    ELEMENT_CONFIG_ADAPTER,
    AnyElementConfig,
    CalculatorConfig,
    QuizConfig,
    SurveyConfig,
)

from .base import Clock
from .calculator_engine import CalculatorEngine
from .quiz_engine import QuizEngine
from .survey_engine import SurveyEngine

logger = logging.getLogger("pagecraft.interactive.engines.engine_factory")

AnyEngine = Union[QuizEngine, CalculatorEngine, SurveyEngine]


@dataclass
class ConfigValidationSummary:
    """Validation outcome flattened to ``"field: message"`` strings."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def create_interactive_engine(
    config: Union[AnyElementConfig, Mapping[str, Any]],
    rng: Optional[random.Random] = None,
    clock: Optional[Clock] = None,
) -> AnyEngine:
    """
    Builds the engine matching a configuration's element type.

    Args:
        config: A config model, or a mapping (camelCase or snake_case keys)
            that is validated into one by its ``type`` tag
        rng: Optional random source for question/option shuffling
        clock: Optional clock for timestamps

    Raises:
        ValueError: If the element type is not supported. A mapping that
            fails model validation raises ``pydantic.ValidationError``,
            which is also a ``ValueError``.
    """
    if isinstance(config, Mapping):
        config = ELEMENT_CONFIG_ADAPTER.validate_python(config)

    if isinstance(config, QuizConfig):
        engine: AnyEngine = QuizEngine(config, rng, clock)
    elif isinstance(config, CalculatorConfig):
        engine = CalculatorEngine(config, rng, clock)
    elif isinstance(config, SurveyConfig):
        engine = SurveyEngine(config, rng, clock)
    else:
        element_type = getattr(config, "type", type(config).__name__)
        raise ValueError(f"Unsupported interactive element type: {element_type}")

    logger.debug("Created %s for element %s", type(engine).__name__, config.id)
    return engine


def validate_interactive_config(
    config: Union[AnyElementConfig, Mapping[str, Any]],
) -> ConfigValidationSummary:
    """Validates a configuration with its engine and flattens the messages."""
    result = create_interactive_engine(config).validate_config()
    return ConfigValidationSummary(
        is_valid=result.is_valid,
        errors=[f"{e.field}: {e.message}" for e in result.errors],
        warnings=[f"{w.field}: {w.message}" for w in result.warnings],
    )
