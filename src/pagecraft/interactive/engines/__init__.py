"""
Engines for interactive elements: quizzes, calculators and surveys.

All engines share the contract defined in ``base``: ``validate_config()``,
``process_response()`` and ``get_initial_state()``.
"""

from .base import (
    InteractiveEngine,
    ProcessResult,
    TrackingEvent,
    ValidationIssue,
    ValidationResult,
    ValidationWarning,
    calculate_completion_percentage,
    get_device_type,
    merge_validation_results,
)
from .calculator_engine import (
    CalculatorEngine,
    CalculatorProcessResult,
    CalculatorState,
    FormattedOutput,
    breakdown_item_id,
    evaluate_formula,
    format_currency,
    format_number,
    format_percentage,
    format_value,
    parse_number,
)
from .engine_factory import (
    AnyEngine,
    ConfigValidationSummary,
    create_interactive_engine,
    validate_interactive_config,
)
from .quiz_engine import (
    AnswerBreakdown,
    QuizEngine,
    QuizProcessResult,
    QuizState,
)
from .survey_engine import (
    NPSResult,
    QuestionResult,
    SurveyEngine,
    SurveyProcessResult,
    SurveyState,
    SurveySummary,
    ThankYouConfig,
    classify_nps,
    evaluate_condition,
    evaluate_conditions,
)

__all__ = [
    # Contract
    "InteractiveEngine",
    "ProcessResult",
    "TrackingEvent",
    "ValidationIssue",
    "ValidationResult",
    "ValidationWarning",
    "calculate_completion_percentage",
    "get_device_type",
    "merge_validation_results",
    # Factory
    "AnyEngine",
    "ConfigValidationSummary",
    "create_interactive_engine",
    "validate_interactive_config",
    # Quiz
    "QuizEngine",
    "QuizProcessResult",
    "QuizState",
    "AnswerBreakdown",
    # Calculator
    "CalculatorEngine",
    "CalculatorProcessResult",
    "CalculatorState",
    "FormattedOutput",
    "breakdown_item_id",
    "evaluate_formula",
    "format_currency",
    "format_number",
    "format_percentage",
    "format_value",
    "parse_number",
    # Survey
    "SurveyEngine",
    "SurveyProcessResult",
    "SurveyState",
    "SurveySummary",
    "NPSResult",
    "QuestionResult",
    "ThankYouConfig",
    "classify_nps",
    "evaluate_condition",
    "evaluate_conditions",
]
