"""
Survey configuration models, including conditional logic.
"""

from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import Field

from .element import ElementConfig, ElementModel

SurveyQuestionType = Literal[
    "rating",
    "nps",
    "multiple-choice",
    "single-choice",
    "open-text",
    "ranking",
    "matrix",
    "date",
    "file-upload",
]

SurveyType = Literal["feedback", "nps", "satisfaction", "research", "custom"]

LogicAction = Literal["show", "hide", "skip-to"]

ConditionOperator = Literal[
    "equals", "not-equals", "contains", "greater-than", "less-than"
]


class SurveyOption(ElementModel):
    id: str
    text: str = ""
    value: Optional[Union[str, float]] = None
    image_url: Optional[str] = None


class ConditionalCondition(ElementModel):
    question_id: str
    operator: ConditionOperator = "equals"
    value: Any = None


class ConditionalLogic(ElementModel):
    action: LogicAction
    conditions: list[ConditionalCondition] = Field(default_factory=list)
    # Combinator applied across conditions
    operator: Literal["and", "or"] = "and"
    target_question_id: Optional[str] = None


class RatingLabels(ElementModel):
    low: str = ""
    high: str = ""


class SurveyQuestion(ElementModel):
    id: str
    type: SurveyQuestionType
    question: str = ""
    description: Optional[str] = None
    options: Optional[list[SurveyOption]] = None
    required: bool = False
    placeholder: Optional[str] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    min_rating: Optional[int] = None
    max_rating: Optional[int] = None
    rating_labels: Optional[RatingLabels] = None
    conditional_logic: Optional[ConditionalLogic] = None
    order: int = 0


class SurveySettings(ElementModel):
    allow_anonymous: bool = True
    randomize_questions: bool = False
    show_progress: bool = True
    questions_per_page: int = 1
    allow_skip: bool = False
    thank_you_message: str = ""
    thank_you_title: Optional[str] = None


class SurveyConfig(ElementConfig):
    type: Literal["survey"] = "survey"
    survey_type: SurveyType = "custom"
    questions: list[SurveyQuestion] = Field(default_factory=list)
    settings: SurveySettings = Field(default_factory=SurveySettings)
