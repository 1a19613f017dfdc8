"""
Quiz engine.

Scores answers per question type, applies question weights, and matches the
final score (or percentage) against the configured result ranges. Questions
may branch: a selected option's ``next_question_id`` overrides the default
order.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional, Sequence, Union

from pagecraft.interactive.models import (
    QuizConfig,
    QuizOption,
    QuizQuestion,
    QuizResponse,
    QuizResult,
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

logger = logging.getLogger("pagecraft.interactive.engines.quiz_engine")

Answer = Union[str, list[str]]

CHOICE_TYPES = ("multiple-choice", "single-choice", "image-choice")
SINGLE_SELECT_TYPES = ("single-choice", "true-false", "image-choice")

DEFAULT_MAX_RATING = 5
MIN_TIME_LIMIT_SECONDS = 10

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass
class AnswerBreakdown:
    question_id: str
    question: str
    user_answer: Any
    correct_answer: Optional[Answer]
    is_correct: bool
    points_earned: float
    max_points: float
    explanation: Optional[str] = None


@dataclass
class QuizProcessResult:
    score: float
    max_score: float
    percentage: int
    correct_answers: int
    total_questions: int
    result: QuizResult
    answer_breakdown: list[AnswerBreakdown]
    persona_match: Optional[str] = None


@dataclass
class QuizState:
    """Caller-owned quiz progress."""

    current_question_index: int = 0
    answers: dict[str, Any] = field(default_factory=dict)
    score: float = 0
    started_at: str = ""
    is_complete: bool = False
    # Advisory, in seconds
    time_remaining: Optional[int] = None
    # Question ids in the order shown; empty means sorted by ``order``
    question_order: list[str] = field(default_factory=list)


@dataclass
class _QuestionScore:
    points_earned: float
    is_correct: bool


def _first_answer(answer: Any) -> str:
    if isinstance(answer, list):
        return str(answer[0]) if answer else ""
    return str(answer)


class QuizEngine(InteractiveEngine[QuizConfig, QuizResponse, QuizProcessResult, QuizState]):
    response_model = QuizResponse

    def validate_config(self) -> ValidationResult:
        return merge_validation_results(
            self.validate_base_config(), self._validate_quiz_config()
        )

    def _validate_quiz_config(self) -> ValidationResult:
        config = self._config
        errors: list[ValidationIssue] = []
        warnings: list[ValidationWarning] = []

        if not config.questions:
            errors.append(
                ValidationIssue(
                    "questions", "Quiz must have at least one question", "NO_QUESTIONS"
                )
            )
            return ValidationResult.from_issues(errors, warnings)

        for index, question in enumerate(config.questions):
            result = self._validate_question(question, index)
            errors.extend(result.errors)
            warnings.extend(result.warnings)

        if not config.results:
            errors.append(
                ValidationIssue(
                    "results", "Quiz must have at least one result", "NO_RESULTS"
                )
            )
        elif self._has_score_range_gaps():
            warnings.append(
                ValidationWarning(
                    "results", "Some score ranges may not be covered by results"
                )
            )

        if config.scoring is None:
            errors.append(
                ValidationIssue(
                    "scoring", "Scoring configuration is required", "NO_SCORING_CONFIG"
                )
            )

        time_limit = config.settings.time_limit
        if time_limit and time_limit < MIN_TIME_LIMIT_SECONDS:
            warnings.append(
                ValidationWarning(
                    "settings.timeLimit",
                    "Time limit is very short (less than 10 seconds)",
                )
            )

        return ValidationResult.from_issues(errors, warnings)

    def _validate_question(self, question: QuizQuestion, index: int) -> ValidationResult:
        errors: list[ValidationIssue] = []
        warnings: list[ValidationWarning] = []
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

            scoring = self._config.scoring
            if scoring is not None and scoring.type == "points":
                has_correct_answer = bool(question.correct_answer) or any(
                    o.is_correct or (o.score or 0) > 0 for o in question.options or []
                )
                if not has_correct_answer:
                    warnings.append(
                        ValidationWarning(
                            f"{prefix}.correctAnswer",
                            f"Question {number} has no correct answer defined",
                        )
                    )

        if question.type == "true-false":
            if question.options is not None and len(question.options) != 2:
                errors.append(
                    ValidationIssue(
                        f"{prefix}.options",
                        f"True/False question {number} must have exactly 2 options",
                        "INVALID_TRUE_FALSE",
                    )
                )

        return ValidationResult.from_issues(errors, warnings)

    def _has_score_range_gaps(self) -> bool:
        ranges = sorted(
            ((r.min_score, r.max_score) for r in self._config.results),
            key=lambda r: r[0],
        )
        if not ranges:
            return True
        for (_, current_max), (next_min, _) in zip(ranges, ranges[1:]):
            if current_max < next_min - 1:
                return True
        return False

    def process_response(
        self, response: Union[QuizResponse, Mapping[str, Any], None] = None
    ) -> ProcessResult[QuizProcessResult]:
        parsed, error = self._parse_response(response)
        if parsed is None:
            return ProcessResult.fail(error or "Invalid response")

        try:
            score, max_score, correct_answers, breakdown = self._calculate_score(
                parsed.answers
            )
            percentage = round_percentage(score, max_score) if max_score > 0 else 0

            result = self._determine_result(score, percentage)
            if result is None:
                compare_value = self._comparison_value(score, percentage)
                return ProcessResult.fail(
                    f"No matching result found for score {compare_value:g}"
                )

            logger.debug(
                "Quiz %s scored %s/%s (%s%%), result %s",
                self._config.id,
                score,
                max_score,
                percentage,
                result.id,
            )
            data = QuizProcessResult(
                score=score,
                max_score=max_score,
                percentage=percentage,
                correct_answers=correct_answers,
                total_questions=len(self._config.questions),
                result=result,
                answer_breakdown=breakdown,
                persona_match=result.persona_match,
            )
            return ProcessResult.ok(
                data,
                metadata={"completedAt": self.now_iso(), "resultId": result.id},
            )
        except Exception as e:
            logger.exception("Failed to process quiz response for %s", self._config.id)
            return ProcessResult.fail(str(e) or "Failed to process quiz response")

    def _calculate_score(
        self, answers: Mapping[str, Any]
    ) -> tuple[float, float, int, list[AnswerBreakdown]]:
        score = 0.0
        max_score = 0.0
        correct_answers = 0
        breakdown: list[AnswerBreakdown] = []

        for question in self._config.questions:
            user_answer = answers.get(question.id)
            weight = question.weight or 1
            question_max = self.get_question_max_score(question)
            scored = self.score_answer(question, user_answer)

            max_score += question_max * weight
            score += scored.points_earned * weight
            if scored.is_correct:
                correct_answers += 1

            breakdown.append(
                AnswerBreakdown(
                    question_id=question.id,
                    question=question.question,
                    user_answer=user_answer if is_answered(user_answer) else "",
                    correct_answer=question.correct_answer,
                    is_correct=scored.is_correct,
                    points_earned=scored.points_earned * weight,
                    max_points=question_max * weight,
                    explanation=question.explanation,
                )
            )

        return score, max_score, correct_answers, breakdown

    @staticmethod
    def get_question_max_score(question: QuizQuestion) -> float:
        """Highest option score (correct unscored options count 1), at least 1."""
        if not question.options:
            return 1
        best = max(o.score or (1 if o.is_correct else 0) for o in question.options)
        return best if best > 0 else 1

    def score_answer(self, question: QuizQuestion, answer: Any) -> _QuestionScore:
        """Unweighted points and correctness for one answer."""
        if not is_answered(answer):
            return _QuestionScore(0, False)

        if question.type in SINGLE_SELECT_TYPES:
            return self._score_single_choice(question, _first_answer(answer))
        if question.type == "multiple-choice":
            return self._score_multiple_choice(question, answer)
        if question.type == "text":
            return self._score_text(question, _first_answer(answer))
        if question.type == "rating":
            return self._score_rating(question, _first_answer(answer))
        return _QuestionScore(0, False)

    def _score_single_choice(self, question: QuizQuestion, answer: str) -> _QuestionScore:
        option = self._find_option(question, answer)
        if option is None:
            return _QuestionScore(0, False)

        if question.correct_answer:
            is_correct = question.correct_answer == answer
            return _QuestionScore((option.score or 1) if is_correct else 0, is_correct)

        if option.is_correct is not None:
            return _QuestionScore(
                (option.score or 1) if option.is_correct else 0, option.is_correct
            )

        points = option.score or 0
        return _QuestionScore(points, points > 0)

    def _score_multiple_choice(self, question: QuizQuestion, answer: Any) -> _QuestionScore:
        selected = [str(a) for a in answer] if isinstance(answer, list) else [str(answer)]

        if isinstance(question.correct_answer, list):
            correct = list(question.correct_answer)
        elif question.correct_answer:
            correct = [question.correct_answer]
        else:
            correct = [o.id for o in question.options or [] if o.is_correct]

        if not correct:
            total = 0.0
            for option_id in selected:
                option = self._find_option(question, option_id)
                total += (option.score or 0) if option is not None else 0
            return _QuestionScore(total, total > 0)

        if len(selected) == len(correct) and all(a in correct for a in selected):
            return _QuestionScore(1, True)

        correct_selected = sum(1 for a in selected if a in correct)
        incorrect_selected = len(selected) - correct_selected
        partial = max(0.0, (correct_selected - incorrect_selected) / len(correct))
        return _QuestionScore(partial, False)

    @staticmethod
    def _score_text(question: QuizQuestion, answer: str) -> _QuestionScore:
        if not question.correct_answer:
            return _QuestionScore(1, True)

        accepted = (
            question.correct_answer
            if isinstance(question.correct_answer, list)
            else [question.correct_answer]
        )
        normalized = answer.strip().lower()
        is_correct = any(a.strip().lower() == normalized for a in accepted)
        return _QuestionScore(1 if is_correct else 0, is_correct)

    @staticmethod
    def _score_rating(question: QuizQuestion, answer: str) -> _QuestionScore:
        match = _LEADING_INT.match(answer)
        if match is None:
            return _QuestionScore(0, False)
        rating = int(match.group(1))
        max_rating = len(question.options) if question.options else DEFAULT_MAX_RATING
        return _QuestionScore(rating / max_rating, True)

    def _comparison_value(self, score: float, percentage: int) -> float:
        scoring = self._config.scoring
        if scoring is not None and scoring.type == "percentage":
            return percentage
        return score

    def _determine_result(self, score: float, percentage: int) -> Optional[QuizResult]:
        compare_value = self._comparison_value(score, percentage)
        for result in self._config.results:
            if result.min_score <= compare_value <= result.max_score:
                return result

        if self._config.settings.fallback_to_first_result and self._config.results:
            logger.warning(
                "No result range of quiz %s contains %s, using first result",
                self._config.id,
                compare_value,
            )
            return self._config.results[0]
        return None

    def get_initial_state(self) -> QuizState:
        """Fresh progress; the question order is fixed here, shuffled once if randomized."""
        return QuizState(
            question_order=[q.id for q in self.get_ordered_questions()],
            started_at=self.now_iso(),
            time_remaining=self._config.settings.time_limit,
        )

    def _sorted_questions(self) -> list[QuizQuestion]:
        return sorted(self._config.questions, key=lambda q: q.order)

    def get_question(self, question_id: str) -> Optional[QuizQuestion]:
        return next((q for q in self._config.questions if q.id == question_id), None)

    @staticmethod
    def _find_option(question: QuizQuestion, option_id: str) -> Optional[QuizOption]:
        return next((o for o in question.options or [] if o.id == option_id), None)

    def get_ordered_questions(self) -> list[QuizQuestion]:
        """Questions by ``order``, shuffled when the quiz randomizes them."""
        questions = self._sorted_questions()
        if self._config.settings.randomize_questions:
            self._rng.shuffle(questions)
        return questions

    def get_ordered_options(self, question: QuizQuestion) -> list[QuizOption]:
        options = list(question.options or [])
        if self._config.settings.randomize_options:
            self._rng.shuffle(options)
        return options

    def get_next_question(
        self,
        current: QuizQuestion,
        answer: Any,
        question_order: Optional[Sequence[str]] = None,
    ) -> Optional[QuizQuestion]:
        """
        Returns the question that follows ``current`` after ``answer``.

        A selected option with ``next_question_id`` wins; otherwise the next
        question in ``question_order`` (question ids, by default sorted by
        ``order``). ``None`` means the quiz is finished.
        """
        if isinstance(answer, str):
            option = self._find_option(current, answer)
            if option is not None and option.next_question_id:
                return self.get_question(option.next_question_id)

        ids = list(question_order or self._question_ids())
        if current.id not in ids:
            return None
        index = ids.index(current.id)
        if index < len(ids) - 1:
            return self.get_question(ids[index + 1])
        return None

    def _question_ids(self) -> list[str]:
        return [q.id for q in self._sorted_questions()]

    def answer_question(self, state: QuizState, question_id: str, answer: Any) -> QuizState:
        """
        Records ``answer`` and moves to the next question.

        Navigation follows ``state.question_order``, so a shuffled quiz is
        walked in the order the visitor sees it. ``current_question_index``
        indexes into that order. Returns a new state; ``state`` is left
        untouched. The quiz completes when there is no next question.
        """
        question = self.get_question(question_id)
        if question is None:
            raise ValueError(f"Unknown question: {question_id}")

        question_order = list(state.question_order) or self._question_ids()
        answers = {**state.answers, question_id: answer}
        next_question = self.get_next_question(question, answer, question_order)

        if next_question is None or next_question.id not in question_order:
            return replace(
                state,
                answers=answers,
                question_order=question_order,
                current_question_index=len(question_order),
                is_complete=True,
            )

        return replace(
            state,
            answers=answers,
            question_order=question_order,
            current_question_index=question_order.index(next_question.id),
        )

    def get_current_question(self, state: QuizState) -> Optional[QuizQuestion]:
        """The question at ``state.current_question_index``, or ``None`` past the end."""
        question_order = state.question_order or self._question_ids()
        if 0 <= state.current_question_index < len(question_order):
            return self.get_question(question_order[state.current_question_index])
        return None

    def get_progress(self, answered_count: int) -> int:
        if not self._config.questions:
            return 0
        return round_percentage(answered_count, len(self._config.questions))

    def is_quiz_complete(self, answers: Mapping[str, Any]) -> bool:
        """True when every required question has an answer."""
        return all(
            is_answered(answers.get(q.id)) for q in self._config.questions if q.required
        )

    def get_total_questions(self) -> int:
        return len(self._config.questions)

    def get_all_results(self) -> list[QuizResult]:
        return list(self._config.results)

    def has_time_limit(self) -> bool:
        time_limit = self._config.settings.time_limit
        return time_limit is not None and time_limit > 0

    def get_time_limit(self) -> int:
        return self._config.settings.time_limit or 0
