"""
Configuration and response models for interactive elements.
"""

from typing import Annotated, Union

from pydantic import Field, TypeAdapter

from .calculator import (
    BreakdownFormat,
    CalculatorBreakdownItem,
    CalculatorConfig,
    CalculatorInput,
    CalculatorInputOption,
    CalculatorInputType,
    CalculatorOutput,
    CalculatorSettings,
    CalculatorType,
    OutputFormat,
)
from .element import (
    ElementConfig,
    ElementModel,
    ElementPadding,
    ElementStatus,
    ElementType,
    FollowUpAction,
    FollowUpActionType,
    InteractiveAnimationConfig,
    InteractiveStyling,
    LeadCaptureConfig,
    LeadCaptureField,
    LeadCaptureFieldType,
    LeadCapturePosition,
    PersonaVariant,
    TrackingConfig,
    TrackingEventType,
)
from .quiz import (
    QuizConfig,
    QuizOption,
    QuizQuestion,
    QuizQuestionType,
    QuizResult,
    QuizSettings,
    ScoringConfig,
    ScoringType,
)
from .responses import (
    CalculatorResponse,
    DeviceType,
    InteractiveResponse,
    QuizResponse,
    SurveyResponse,
)
from .survey import (
    ConditionalCondition,
    ConditionalLogic,
    ConditionOperator,
    LogicAction,
    RatingLabels,
    SurveyConfig,
    SurveyOption,
    SurveyQuestion,
    SurveyQuestionType,
    SurveySettings,
    SurveyType,
)

# Closed set of element configurations, selected by the ``type`` tag.
AnyElementConfig = Annotated[
    Union[QuizConfig, CalculatorConfig, SurveyConfig],
    Field(discriminator="type"),
]

ELEMENT_CONFIG_ADAPTER = TypeAdapter(AnyElementConfig)

__all__ = [
    # Base
    "ElementModel",
    "ElementConfig",
    "ElementType",
    "ElementStatus",
    "ElementPadding",
    "InteractiveAnimationConfig",
    "InteractiveStyling",
    "TrackingConfig",
    "TrackingEventType",
    "FollowUpAction",
    "FollowUpActionType",
    "LeadCaptureConfig",
    "LeadCaptureField",
    "LeadCaptureFieldType",
    "LeadCapturePosition",
    "PersonaVariant",
    "AnyElementConfig",
    "ELEMENT_CONFIG_ADAPTER",
    # Quiz
    "QuizConfig",
    "QuizOption",
    "QuizQuestion",
    "QuizQuestionType",
    "QuizResult",
    "QuizSettings",
    "ScoringConfig",
    "ScoringType",
    # Calculator
    "CalculatorConfig",
    "CalculatorInput",
    "CalculatorInputOption",
    "CalculatorInputType",
    "CalculatorOutput",
    "CalculatorBreakdownItem",
    "CalculatorSettings",
    "CalculatorType",
    "OutputFormat",
    "BreakdownFormat",
    # Survey
    "SurveyConfig",
    "SurveyOption",
    "SurveyQuestion",
    "SurveyQuestionType",
    "SurveySettings",
    "SurveyType",
    "ConditionalLogic",
    "ConditionalCondition",
    "ConditionOperator",
    "LogicAction",
    "RatingLabels",
    # Responses
    "InteractiveResponse",
    "QuizResponse",
    "CalculatorResponse",
    "SurveyResponse",
    "DeviceType",
]
