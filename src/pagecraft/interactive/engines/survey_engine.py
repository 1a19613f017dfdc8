"""
Survey engine.

Resolves show/hide/skip-to conditional logic over the question graph,
classifies Net Promoter Score answers and aggregates satisfaction ratings.
Visibility is always recomputed from the full answer map, so the result does
not depend on the order in which answers arrived.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Literal, Mapping, Optional, Sequence, Union

from pagecraft.interactive.models import (
    ConditionalCondition,
    ConditionalLogic,
    SurveyConfig,
    SurveyQuestion,
    SurveyQuestionType,
    SurveyResponse,
)

from .base import (
    InteractiveEngine,
    ProcessResult,
    ValidationIssue,
    ValidationResult,
    ValidationWarning,
    is_answered,
    merge_validation_results,
    round_percentage,
)

logger = logging.getLogger("pagecraft.interactive.engines.survey_engine")

NPSCategory = Literal["promoter", "passive", "detractor"]

CHOICE_TYPES = ("multiple-choice", "single-choice", "ranking")
RATING_TYPES = ("rating", "nps")

NPS_MIN = 0
NPS_MAX = 10
PROMOTER_MIN = 9
PASSIVE_MIN = 7

DEFAULT_RATING_MAX = 5
DEFAULT_DISPLAY_MAX = 10
SATISFACTION_SCALE = 5

SKIPPED = "Skipped"


@dataclass
class SurveySummary:
    total_questions: int
    answered_questions: int
    skipped_questions: int
    completion_percentage: int
    average_rating: Optional[float] = None


@dataclass
class NPSResult:
    score: float
    category: NPSCategory
    feedback: Optional[str] = None


@dataclass
class QuestionResult:
    question_id: str
    question: str
    type: SurveyQuestionType
    answer: Any
    formatted_answer: str
    is_skipped: bool


@dataclass
class SurveyProcessResult:
    summary: SurveySummary
    question_results: list[QuestionResult]
    nps_score: Optional[NPSResult] = None
    satisfaction_score: Optional[float] = None


@dataclass
class SurveyState:
    """Caller-owned survey progress."""

    current_question_index: int = 0
    answers: dict[str, Any] = field(default_factory=dict)
    skipped_questions: list[str] = field(default_factory=list)
    visible_questions: list[str] = field(default_factory=list)
    started_at: str = ""
    is_complete: bool = False


@dataclass
class ThankYouConfig:
    message: str
    title: Optional[str] = None


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def classify_nps(score: float) -> NPSCategory:
    """0-10 score -> ``promoter`` (9+), ``passive`` (7-8) or ``detractor``."""
    if score >= PROMOTER_MIN:
        return "promoter"
    if score >= PASSIVE_MIN:
        return "passive"
    return "detractor"


def evaluate_condition(condition: ConditionalCondition, answers: Mapping[str, Any]) -> bool:
    """
    Compares the referenced question's answer with the condition value.

    List answers match ``equals`` when they include the value and
    ``contains`` when they share an element with it. Ordering comparisons
    only hold between numbers.
    """
    answer = answers.get(condition.question_id)
    value = condition.value
    operator = condition.operator

    if operator == "equals":
        if isinstance(answer, list):
            return value in answer
        return answer == value

    if operator == "not-equals":
        if isinstance(answer, list):
            return value not in answer
        return answer != value

    if operator == "contains":
        if isinstance(answer, str):
            return str(value) in answer
        if isinstance(answer, list):
            if isinstance(value, list):
                return any(v in answer for v in value)
            return value in answer
        return False

    if operator == "greater-than":
        return _is_number(answer) and _is_number(value) and answer > value

    if operator == "less-than":
        return _is_number(answer) and _is_number(value) and answer < value

    logger.warning("Unknown condition operator: %s", operator)
    return False


def evaluate_conditions(logic: ConditionalLogic, answers: Mapping[str, Any]) -> bool:
    """Combines a logic block's conditions with its ``and``/``or`` combinator."""
    results = [evaluate_condition(c, answers) for c in logic.conditions]
    if logic.operator == "and":
        return all(results)
    return any(results)


class SurveyEngine(
    InteractiveEngine[SurveyConfig, SurveyResponse, SurveyProcessResult, SurveyState]
):
    response_model = SurveyResponse

    def validate_config(self) -> ValidationResult:
        return merge_validation_results(
            self.validate_base_config(), self._validate_survey_config()
        )

    def _validate_survey_config(self) -> ValidationResult:
        config = self._config
        errors: list[ValidationIssue] = []
        warnings: list[ValidationWarning] = []

        if not config.questions:
            errors.append(
                ValidationIssue(
                    "questions", "Survey must have at least one question", "NO_QUESTIONS"
                )
            )
            return ValidationResult.from_issues(errors, warnings)

        for index, question in enumerate(config.questions):
            errors.extend(self._validate_question(question, index))

        if config.survey_type == "nps" and not any(
            q.type == "nps" for q in config.questions
        ):
            warnings.append(
                ValidationWarning(
                    "questions", "NPS survey type should have at least one NPS question"
                )
            )

        if not config.settings.thank_you_message:
            warnings.append(
                ValidationWarning(
                    "settings.thankYouMessage", "No thank you message configured"
                )
            )

        return ValidationResult.from_issues(errors, warnings)

    def _validate_question(self, question: SurveyQuestion, index: int) -> list[ValidationIssue]:
        errors: list[ValidationIssue] = []
        prefix = f"questions[{index}]"
        number = index + 1

        if not question.question.strip():
            errors.append(
                ValidationIssue(
                    f"{prefix}.question",
                    f"Question {number} text is required",
                    "EMPTY_QUESTION",
                )
            )

        if question.type in CHOICE_TYPES:
            if not question.options or len(question.options) < 2:
                errors.append(
                    ValidationIssue(
                        f"{prefix}.options",
                        f"Question {number} must have at least 2 options",
                        "INSUFFICIENT_OPTIONS",
                    )
                )

        if (
            question.type == "rating"
            and question.min_rating is not None
            and question.max_rating is not None
            and question.min_rating >= question.max_rating
        ):
            errors.append(
                ValidationIssue(
                    f"{prefix}.minRating",
                    f"Question {number} min rating must be less than max rating",
                    "INVALID_RATING_RANGE",
                )
            )

        if question.conditional_logic is not None:
            errors.extend(
                self._validate_conditional_logic(question.conditional_logic, prefix)
            )

        return errors

    def _validate_conditional_logic(
        self, logic: ConditionalLogic, prefix: str
    ) -> list[ValidationIssue]:
        errors: list[ValidationIssue] = []
        question_ids = {q.id for q in self._config.questions}

        if not logic.conditions:
            errors.append(
                ValidationIssue(
                    f"{prefix}.conditionalLogic",
                    "Conditional logic must have at least one condition",
                    "NO_CONDITIONS",
                )
            )

        for condition in logic.conditions:
            if condition.question_id not in question_ids:
                errors.append(
                    ValidationIssue(
                        f"{prefix}.conditionalLogic",
                        "Conditional logic references unknown question: "
                        f"{condition.question_id}",
                        "INVALID_QUESTION_REFERENCE",
                    )
                )

        target = logic.target_question_id
        if logic.action == "skip-to" and target and target not in question_ids:
            errors.append(
                ValidationIssue(
                    f"{prefix}.conditionalLogic.targetQuestionId",
                    f"Skip-to target question not found: {target}",
                    "INVALID_TARGET_QUESTION",
                )
            )

        return errors

    def process_response(
        self, response: Union[SurveyResponse, Mapping[str, Any], None] = None
    ) -> ProcessResult[SurveyProcessResult]:
        parsed, error = self._parse_response(response)
        if parsed is None:
            return ProcessResult.fail(error or "Invalid response")

        try:
            answers = parsed.answers
            question_results = self._build_question_results(answers)
            data = SurveyProcessResult(
                summary=self._calculate_summary(question_results),
                question_results=question_results,
                nps_score=self.calculate_nps(answers),
                satisfaction_score=self.calculate_satisfaction(answers),
            )
        except Exception as e:
            logger.exception("Failed to process survey response for %s", self._config.id)
            return ProcessResult.fail(str(e) or "Failed to process survey")

        return ProcessResult.ok(
            data,
            metadata={
                "completedAt": self.now_iso(),
                "surveyType": self._config.survey_type,
            },
        )

    def _build_question_results(self, answers: Mapping[str, Any]) -> list[QuestionResult]:
        results = []
        for question in self._config.questions:
            answer = answers.get(question.id)
            results.append(
                QuestionResult(
                    question_id=question.id,
                    question=question.question,
                    type=question.type,
                    answer=answer,
                    formatted_answer=self.format_answer(question, answer),
                    is_skipped=not is_answered(answer),
                )
            )
        return results

    @staticmethod
    def _option_text(question: SurveyQuestion, value: Any) -> str:
        option = next((o for o in question.options or [] if o.id == value), None)
        if option is not None and option.text:
            return option.text
        return str(value)

    def format_answer(self, question: SurveyQuestion, answer: Any) -> str:
        """Human-readable rendering of one answer."""
        if not is_answered(answer):
            return SKIPPED

        if question.type in ("single-choice", "multiple-choice"):
            values = answer if isinstance(answer, list) else [answer]
            return ", ".join(self._option_text(question, v) for v in values)

        if question.type in RATING_TYPES:
            maximum = question.max_rating or DEFAULT_DISPLAY_MAX
            return f"{answer}/{maximum}"

        if question.type == "ranking" and isinstance(answer, list):
            return ", ".join(
                f"{position}. {self._option_text(question, v)}"
                for position, v in enumerate(answer, start=1)
            )

        return str(answer)

    @staticmethod
    def _calculate_summary(results: Sequence[QuestionResult]) -> SurveySummary:
        total = len(results)
        answered = sum(1 for r in results if not r.is_skipped)

        ratings = [
            r.answer
            for r in results
            if not r.is_skipped and r.type in RATING_TYPES and _is_number(r.answer)
        ]
        average = sum(ratings) / len(ratings) if ratings else None

        return SurveySummary(
            total_questions=total,
            answered_questions=answered,
            skipped_questions=total - answered,
            completion_percentage=round_percentage(answered, total) if total else 0,
            average_rating=average,
        )

    def calculate_nps(self, answers: Mapping[str, Any]) -> Optional[NPSResult]:
        """
        Classifies the answer to the survey's NPS question.

        Returns ``None`` without an NPS question or a 0-10 numeric answer.
        The follow-up is the first open-text question whose logic refers to
        the NPS question; its answer becomes the feedback.
        """
        nps_question = next((q for q in self._config.questions if q.type == "nps"), None)
        if nps_question is None:
            return None

        score = answers.get(nps_question.id)
        if not _is_number(score) or not NPS_MIN <= score <= NPS_MAX:
            return None

        follow_up = next(
            (
                q
                for q in self._config.questions
                if q.type == "open-text"
                and q.conditional_logic is not None
                and any(
                    c.question_id == nps_question.id
                    for c in q.conditional_logic.conditions
                )
            ),
            None,
        )
        feedback = answers.get(follow_up.id) if follow_up is not None else None

        return NPSResult(
            score=score,
            category=classify_nps(score),
            feedback=str(feedback) if is_answered(feedback) else None,
        )

    def calculate_satisfaction(self, answers: Mapping[str, Any]) -> Optional[float]:
        """Mean rating on a 5-point scale, or ``None`` without rating answers."""
        normalized = [
            answers[q.id] / (q.max_rating or DEFAULT_RATING_MAX)
            for q in self._config.questions
            if q.type == "rating" and _is_number(answers.get(q.id))
        ]
        if not normalized:
            return None
        return sum(normalized) / len(normalized) * SATISFACTION_SCALE

    def get_initial_state(self) -> SurveyState:
        return SurveyState(
            visible_questions=self.get_initially_visible_questions(),
            started_at=self.now_iso(),
        )

    def get_initially_visible_questions(self) -> list[str]:
        """Questions visible before any answer: all but ``show`` targets."""
        return [
            q.id
            for q in self._config.questions
            if q.conditional_logic is None or q.conditional_logic.action != "show"
        ]

    def evaluate_conditional_logic(self, answers: Mapping[str, Any]) -> list[str]:
        """
        Returns the ids of the questions visible for ``answers``.

        ``show`` questions appear once their conditions hold, ``hide``
        questions disappear once theirs hold. Questions carrying ``skip-to``
        logic stay visible; that logic only affects navigation.
        """
        visible: list[str] = []
        for question in self._config.questions:
            logic = question.conditional_logic
            if logic is None or logic.action == "skip-to":
                visible.append(question.id)
                continue

            conditions_met = evaluate_conditions(logic, answers)
            if logic.action == "show" and conditions_met:
                visible.append(question.id)
            elif logic.action == "hide" and not conditions_met:
                visible.append(question.id)

        return visible

    def _sorted_questions(self) -> list[SurveyQuestion]:
        return sorted(self._config.questions, key=lambda q: q.order)

    def get_question(self, question_id: str) -> Optional[SurveyQuestion]:
        return next((q for q in self._config.questions if q.id == question_id), None)

    def get_next_question(
        self,
        current: SurveyQuestion,
        answer: Any,
        visible_questions: Sequence[str],
        answers: Optional[Mapping[str, Any]] = None,
    ) -> Optional[SurveyQuestion]:
        """
        Returns the question after ``current`` once ``answer`` is submitted.

        A ``skip-to`` block whose conditions hold, checked against ``answers``
        plus the submitted answer, jumps to its target. Otherwise the next
        visible question by ``order`` follows. ``None`` ends the survey.
        """
        logic = current.conditional_logic
        if logic is not None and logic.action == "skip-to" and logic.target_question_id:
            combined = {**(answers or {}), current.id: answer}
            if evaluate_conditions(logic, combined):
                target = self.get_question(logic.target_question_id)
                if target is not None:
                    logger.debug("Skipping from %s to %s", current.id, target.id)
                    return target

        questions = self._sorted_questions()
        ids = [q.id for q in questions]
        if current.id not in ids:
            return None

        for question in questions[ids.index(current.id) + 1 :]:
            if question.id in visible_questions:
                return question
        return None

    def answer_question(
        self, state: SurveyState, question_id: str, answer: Any
    ) -> SurveyState:
        """
        Records ``answer`` (an empty answer marks the question skipped),
        recomputes visibility and moves to the next question.

        Returns a new state; ``state`` is left untouched.
        """
        question = self.get_question(question_id)
        if question is None:
            raise ValueError(f"Unknown question: {question_id}")

        answers = {k: v for k, v in state.answers.items() if k != question_id}
        skipped = [q for q in state.skipped_questions if q != question_id]
        if is_answered(answer):
            answers[question_id] = answer
        else:
            skipped.append(question_id)

        visible = self.evaluate_conditional_logic(answers)
        next_question = self.get_next_question(question, answer, visible, answers)
        questions = self._sorted_questions()

        if next_question is None:
            return replace(
                state,
                answers=answers,
                skipped_questions=skipped,
                visible_questions=visible,
                current_question_index=len(questions),
                is_complete=self.is_survey_complete(answers, visible),
            )

        return replace(
            state,
            answers=answers,
            skipped_questions=skipped,
            visible_questions=visible,
            current_question_index=questions.index(next_question),
        )

    def get_ordered_questions(self) -> list[SurveyQuestion]:
        questions = self._sorted_questions()
        if self._config.settings.randomize_questions:
            self._rng.shuffle(questions)
        return questions

    @staticmethod
    def get_progress(answered_count: int, total_visible: int) -> int:
        if total_visible == 0:
            return 0
        return round_percentage(answered_count, total_visible)

    def can_skip_question(self, question: SurveyQuestion) -> bool:
        return self._config.settings.allow_skip or not question.required

    def is_survey_complete(
        self,
        answers: Mapping[str, Any],
        visible_questions: Optional[Sequence[str]] = None,
    ) -> bool:
        """
        True when every required, visible question has an answer.

        Visibility is derived from ``answers`` when not given.
        """
        if visible_questions is None:
            visible_questions = self.evaluate_conditional_logic(answers)

        return all(
            is_answered(answers.get(q.id))
            for q in self._config.questions
            if q.required and q.id in visible_questions
        )

    @property
    def survey_type(self) -> str:
        return self._config.survey_type

    def get_total_questions(self) -> int:
        return len(self._config.questions)

    def get_thank_you_config(self) -> ThankYouConfig:
        settings = self._config.settings
        return ThankYouConfig(
            message=settings.thank_you_message, title=settings.thank_you_title
        )

    def allows_anonymous(self) -> bool:
        return self._config.settings.allow_anonymous
