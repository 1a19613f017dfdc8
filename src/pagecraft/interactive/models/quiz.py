"""
Quiz configuration models.
"""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import Field

from .element import ElementConfig, ElementModel, FollowUpAction

QuizQuestionType = Literal[
    "multiple-choice",
    "single-choice",
    "true-false",
    "text",
    "rating",
    "image-choice",
]

ScoringType = Literal["points", "percentage", "weighted", "custom"]


class QuizOption(ElementModel):
    id: str
    text: str = ""
    image_url: Optional[str] = None
    score: Optional[float] = None
    is_correct: Optional[bool] = None
    # Branch target when this option is selected
    next_question_id: Optional[str] = None


class QuizQuestion(ElementModel):
    id: str
    type: QuizQuestionType
    question: str = ""
    description: Optional[str] = None
    image_url: Optional[str] = None
    options: Optional[list[QuizOption]] = None
    correct_answer: Optional[Union[str, list[str]]] = None
    hint: Optional[str] = None
    explanation: Optional[str] = None
    required: bool = False
    weight: Optional[float] = None
    # Advisory, in seconds
    time_limit: Optional[int] = None
    order: int = 0


class ScoringConfig(ElementModel):
    type: ScoringType = "points"
    max_score: Optional[float] = None
    passing_score: Optional[float] = None
    show_score_after_each: bool = False
    show_final_score: bool = True


class QuizResult(ElementModel):
    """A result band matched against the final score (inclusive range)."""

    id: str
    min_score: float
    max_score: float
    title: str = ""
    message: str = ""
    image_url: Optional[str] = None
    recommendation: Optional[str] = None
    persona_match: Optional[str] = None
    follow_up_action: Optional[FollowUpAction] = None
    cta_text: Optional[str] = None
    cta_url: Optional[str] = None


class QuizSettings(ElementModel):
    allow_retake: bool = True
    randomize_questions: bool = False
    randomize_options: bool = False
    show_progress: bool = True
    show_correct_answers: bool = False
    # Advisory, in seconds
    time_limit: Optional[int] = None
    questions_per_page: int = 1
    # Return the first result when no score range matches
    fallback_to_first_result: bool = False


class QuizConfig(ElementConfig):
    type: Literal["quiz"] = "quiz"
    questions: list[QuizQuestion] = Field(default_factory=list)
    results: list[QuizResult] = Field(default_factory=list)
    scoring: Optional[ScoringConfig] = None
    settings: QuizSettings = Field(default_factory=QuizSettings)
