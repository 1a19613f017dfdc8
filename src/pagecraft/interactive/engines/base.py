"""
Engine contract shared by every interactive element engine.

An engine wraps one element configuration and exposes three operations:
``validate_config()`` (authoring time), ``process_response()`` (once per
submission) and ``get_initial_state()`` (seeds caller-owned UI state).
Validation and processing report problems as values; they do not raise.
"""

from __future__ import annotations

import logging
import random
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import (
    Any,
    Callable,
    ClassVar,
    Generic,
    Mapping,
    Optional,
    TypeVar,
    Union,
)

from pydantic import ValidationError

from pagecraft.interactive.formula import round_half_up
from pagecraft.interactive.models import (
    DeviceType,
    ElementConfig,
    FollowUpAction,
    InteractiveResponse,
    LeadCaptureConfig,
    LeadCapturePosition,
    TrackingEventType,
)

logger = logging.getLogger("pagecraft.interactive.engines.base")


ConfigT = TypeVar("ConfigT", bound=ElementConfig)
ResponseT = TypeVar("ResponseT", bound=InteractiveResponse)
ResultT = TypeVar("ResultT")
StateT = TypeVar("StateT")

Clock = Callable[[], datetime]

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^[\d\s\-+()]{7,20}$")

_MOBILE_PATTERN = re.compile(r"mobile|android|iphone|ipod|blackberry|windows phone")
_TABLET_PATTERN = re.compile(r"ipad|tablet|playbook|silk")


@dataclass
class ValidationIssue:
    """A blocking configuration or input defect."""

    field: str
    message: str
    code: str


@dataclass
class ValidationWarning:
    """A non-blocking authoring hint."""

    field: str
    message: str


@dataclass
class ValidationResult:
    """Accumulated errors and warnings. ``is_valid`` iff there are no errors."""

    is_valid: bool = True
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationWarning] = field(default_factory=list)

    @classmethod
    def from_issues(
        cls,
        errors: list[ValidationIssue],
        warnings: Optional[list[ValidationWarning]] = None,
    ) -> ValidationResult:
        return cls(is_valid=not errors, errors=errors, warnings=warnings or [])


@dataclass
class ProcessResult(Generic[ResultT]):
    """Outcome of processing a submission."""

    success: bool
    data: Optional[ResultT] = None
    error: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None

    @classmethod
    def ok(
        cls, data: ResultT, metadata: Optional[dict[str, Any]] = None
    ) -> ProcessResult[ResultT]:
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def fail(
        cls, error: str, metadata: Optional[dict[str, Any]] = None
    ) -> ProcessResult[ResultT]:
        return cls(success=False, error=error, metadata=metadata)


@dataclass
class TrackingEvent:
    """Analytics event built by an engine. Engines never transmit events."""

    event_type: TrackingEventType
    element_id: str
    visitor_id: str
    session_id: str
    timestamp: str
    data: Optional[dict[str, Any]] = None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def merge_validation_results(*results: ValidationResult) -> ValidationResult:
    """Concatenates errors and warnings of several validation results."""
    errors: list[ValidationIssue] = []
    warnings: list[ValidationWarning] = []
    for result in results:
        errors.extend(result.errors)
        warnings.extend(result.warnings)
    return ValidationResult.from_issues(errors, warnings)


def get_device_type(user_agent: Optional[str]) -> DeviceType:
    """
    Classifies a user-agent string.

    Mobile keywords are checked before tablet keywords; anything else,
    including a missing user agent, is a desktop.
    """
    if not user_agent:
        return "desktop"

    ua = user_agent.lower()
    if _MOBILE_PATTERN.search(ua):
        return "mobile"
    if _TABLET_PATTERN.search(ua):
        return "tablet"
    return "desktop"


def calculate_completion_percentage(
    responses: Mapping[str, Any], total_fields: int
) -> int:
    """Percentage of ``total_fields`` that hold a non-empty value."""
    if total_fields == 0:
        return 0
    completed = sum(1 for value in responses.values() if is_answered(value))
    return round_percentage(completed, total_fields)


def round_percentage(part: float, whole: float) -> int:
    """``part / whole`` as a whole percentage, halves rounded up."""
    return int(round_half_up(part / whole * 100))


def is_answered(value: Any) -> bool:
    """An answer counts unless it is missing, ``None``, an empty string or list."""
    return value is not None and value != "" and value != []


def _apply_updates(config: ElementConfig, updates: Mapping[str, Any]) -> dict[str, Any]:
    """Dumps ``config`` by field name with ``updates`` applied, aliases resolved."""
    names = {
        info.alias: name
        for name, info in type(config).model_fields.items()
        if info.alias
    }
    merged = config.model_dump()
    for key, value in updates.items():
        merged[names.get(key, key)] = value
    return merged


class InteractiveEngine(ABC, Generic[ConfigT, ResponseT, ResultT, StateT]):
    """
    Base class for element engines.

    Subclasses set ``response_model`` and implement the three contract
    operations. Randomness and the clock are injectable so tests can
    assert exact orderings and timestamps.
    """

    response_model: ClassVar[type[InteractiveResponse]] = InteractiveResponse

    def __init__(
        self,
        config: ConfigT,
        rng: Optional[random.Random] = None,
        clock: Optional[Clock] = None,
    ):
        self._config = config
        self._rng = rng or random.Random()
        self._clock = clock or utc_now

    @abstractmethod
    def validate_config(self) -> ValidationResult:
        """Validates the element configuration. Never raises."""

    @abstractmethod
    def process_response(
        self, response: Union[ResponseT, Mapping[str, Any], None] = None
    ) -> ProcessResult[ResultT]:
        """Processes a (partial) visitor response into a result."""

    @abstractmethod
    def get_initial_state(self) -> StateT:
        """Returns the default UI state for the element."""

    @property
    def config(self) -> ConfigT:
        return self._config

    @property
    def id(self) -> str:
        return self._config.id

    @property
    def type(self) -> str:
        return self._config.type

    @property
    def title(self) -> str:
        return self._config.title

    def is_published(self) -> bool:
        return self._config.status == "published"

    def update_config(self, updates: Mapping[str, Any]) -> ConfigT:
        """
        Replaces the configuration with ``updates`` applied on top of it.

        Keys may be snake_case field names or camelCase aliases. The new
        configuration is re-validated and stamped with a fresh ``updated_at``.
        """
        merged = _apply_updates(self._config, updates)
        merged["updated_at"] = self._clock()
        self._config = type(self._config).model_validate(merged)
        logger.debug("Updated config for element %s", self._config.id)
        return self._config

    def now_iso(self) -> str:
        return self._clock().isoformat()

    def validate_base_config(self) -> ValidationResult:
        """Checks identity fields, lead capture and follow-up action."""
        errors: list[ValidationIssue] = []
        warnings: list[ValidationWarning] = []
        config = self._config

        if not config.id:
            errors.append(ValidationIssue("id", "Element ID is required", "MISSING_ID"))

        if not config.title:
            errors.append(
                ValidationIssue("title", "Element title is required", "MISSING_TITLE")
            )

        if not config.website_id:
            errors.append(
                ValidationIssue(
                    "websiteId", "Website ID is required", "MISSING_WEBSITE_ID"
                )
            )

        results = [ValidationResult.from_issues(errors, warnings)]
        if config.lead_capture is not None and config.lead_capture.enabled:
            results.append(self._validate_lead_capture(config.lead_capture))
        if config.follow_up is not None:
            results.append(self._validate_follow_up_action(config.follow_up))

        return merge_validation_results(*results)

    def _validate_lead_capture(self, lead_capture: LeadCaptureConfig) -> ValidationResult:
        errors: list[ValidationIssue] = []
        warnings: list[ValidationWarning] = []

        if not lead_capture.fields:
            errors.append(
                ValidationIssue(
                    "leadCapture.fields",
                    "Lead capture is enabled but no fields are defined",
                    "LEAD_CAPTURE_NO_FIELDS",
                )
            )

        if not any(f.type in ("email", "phone") for f in lead_capture.fields):
            warnings.append(
                ValidationWarning(
                    "leadCapture.fields", "Lead capture has no email or phone field"
                )
            )

        return ValidationResult.from_issues(errors, warnings)

    def _validate_follow_up_action(self, action: FollowUpAction) -> ValidationResult:
        errors: list[ValidationIssue] = []

        if action.type == "redirect" and not action.destination:
            errors.append(
                ValidationIssue(
                    "followUp.destination",
                    "Redirect URL is required for redirect action",
                    "MISSING_REDIRECT_URL",
                )
            )

        if action.type == "download" and not action.destination:
            errors.append(
                ValidationIssue(
                    "followUp.destination",
                    "Download URL is required for download action",
                    "MISSING_DOWNLOAD_URL",
                )
            )

        return ValidationResult.from_issues(errors)

    def is_tracking_enabled(self, event_type: TrackingEventType) -> bool:
        tracking = self._config.tracking
        if tracking is None or not tracking.enabled:
            return False

        if event_type == "view":
            return tracking.track_views
        if event_type == "start":
            return tracking.track_starts
        if event_type == "progress":
            return tracking.track_progress
        if event_type == "complete":
            return tracking.track_completions
        if event_type == "abandon":
            return tracking.track_abandonment
        if event_type == "custom":
            return True

        logger.warning("Unknown tracking event type: %s", event_type)
        return False

    def create_tracking_event(
        self,
        event_type: TrackingEventType,
        visitor_id: str,
        session_id: str,
        data: Optional[dict[str, Any]] = None,
    ) -> Optional[TrackingEvent]:
        """Builds a timestamped event, or ``None`` when tracking is gated off."""
        if not self.is_tracking_enabled(event_type):
            return None

        return TrackingEvent(
            event_type=event_type,
            element_id=self._config.id,
            visitor_id=visitor_id,
            session_id=session_id,
            timestamp=self.now_iso(),
            data=data,
        )

    @staticmethod
    def calculate_completion_percentage(
        responses: Mapping[str, Any], total_fields: int
    ) -> int:
        return calculate_completion_percentage(responses, total_fields)

    @staticmethod
    def get_device_type(user_agent: Optional[str] = None) -> DeviceType:
        return get_device_type(user_agent)

    def _coerce_response(
        self, response: Union[ResponseT, Mapping[str, Any], None]
    ) -> ResponseT:
        if response is None:
            return self.response_model()  # type: ignore[return-value]
        if isinstance(response, self.response_model):
            return response  # type: ignore[return-value]
        return self.response_model.model_validate(response)  # type: ignore[return-value]

    def _parse_response(
        self, response: Union[ResponseT, Mapping[str, Any], None]
    ) -> tuple[Optional[ResponseT], Optional[str]]:
        try:
            return self._coerce_response(response), None
        except ValidationError as e:
            logger.debug("Rejected malformed response for %s: %s", self._config.id, e)
            return None, f"Invalid response: {e.error_count()} validation error(s)"

    def should_show_lead_capture(
        self,
        position: LeadCapturePosition,
        completed: bool = False,
        has_result: bool = False,
    ) -> bool:
        lead_capture = self._config.lead_capture
        if lead_capture is None or not lead_capture.enabled:
            return False

        if lead_capture.position == "before":
            return position == "before"
        if lead_capture.position == "after":
            return position == "after" and completed
        if lead_capture.position == "on-result":
            return position == "on-result" and has_result
        return False

    def validate_lead_capture_data(self, data: Mapping[str, Any]) -> ValidationResult:
        """
        Validates visitor-entered lead capture values.

        Checks required presence, email and phone formats, and each field's
        optional custom pattern. An invalid custom pattern is skipped.
        Non-string values such as numeric phone numbers are checked as text.
        """
        lead_capture = self._config.lead_capture
        if lead_capture is None or not lead_capture.enabled:
            return ValidationResult()

        errors: list[ValidationIssue] = []
        for lc_field in lead_capture.fields:
            raw_value = data.get(lc_field.id)
            value = "" if raw_value is None else str(raw_value)

            if lc_field.required and not value.strip():
                errors.append(
                    ValidationIssue(
                        lc_field.id, f"{lc_field.label} is required", "REQUIRED_FIELD"
                    )
                )
                continue

            if not value:
                continue

            if lc_field.type == "email" and not EMAIL_PATTERN.match(value):
                errors.append(
                    ValidationIssue(
                        lc_field.id,
                        "Please enter a valid email address",
                        "INVALID_EMAIL",
                    )
                )

            if lc_field.type == "phone" and not PHONE_PATTERN.match(value):
                errors.append(
                    ValidationIssue(
                        lc_field.id,
                        "Please enter a valid phone number",
                        "INVALID_PHONE",
                    )
                )

            if lc_field.validation:
                try:
                    pattern = re.compile(lc_field.validation)
                except re.error as e:
                    logger.warning(
                        "Ignoring invalid validation pattern for lead field %s: %s",
                        lc_field.id,
                        e,
                    )
                    continue
                if not pattern.search(value):
                    errors.append(
                        ValidationIssue(
                            lc_field.id,
                            f"{lc_field.label} format is invalid",
                            "INVALID_FORMAT",
                        )
                    )

        return ValidationResult.from_issues(errors)

    def get_follow_up_action(self) -> Optional[FollowUpAction]:
        return self._config.follow_up

    def get_persona_config(self, persona_id: Optional[str] = None) -> ConfigT:
        """
        Returns the configuration as seen by a persona.

        The matching variant's title, description and tone replace the base
        values when set, then its content overrides are merged on top.
        Without a match the base configuration is returned unchanged.
        """
        config = self._config
        if not persona_id or not config.persona_variants:
            return config

        variant = next(
            (v for v in config.persona_variants if v.persona_id == persona_id), None
        )
        if variant is None:
            return config

        overlay: dict[str, Any] = {
            "title": variant.title or config.title,
            "description": variant.description or config.description,
            "emotional_tone": variant.emotional_tone or config.emotional_tone,
        }
        overlay.update(variant.content_overrides or {})
        return type(config).model_validate(_apply_updates(config, overlay))
