"""
Base configuration models shared by every interactive element.

Documents authored by the website builder use camelCase keys
(``websiteId``, ``leadCapture``); Python callers may use the snake_case
field names. Required identity fields default to empty values so that
``validate_config()`` reports them instead of model construction failing.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ElementType = Literal["quiz", "calculator", "survey"]

ElementStatus = Literal["draft", "published", "archived"]

TrackingEventType = Literal["view", "start", "progress", "complete", "abandon", "custom"]

FollowUpActionType = Literal[
    "redirect", "modal", "lead-capture", "download", "email", "none"
]

LeadCaptureFieldType = Literal["email", "name", "phone", "company", "role", "custom"]

LeadCapturePosition = Literal["before", "after", "on-result"]


class ElementModel(BaseModel):
    """Base model for element configuration documents."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class InteractiveAnimationConfig(ElementModel):
    entry: Optional[Literal["fadeIn", "slideUp", "slideDown", "scaleIn", "none"]] = None
    transition: Optional[Literal["smooth", "spring", "instant"]] = None
    stagger: Optional[float] = Field(default=None, ge=0)
    duration: Optional[float] = Field(default=None, ge=0)


class ElementPadding(ElementModel):
    top: Optional[str] = None
    right: Optional[str] = None
    bottom: Optional[str] = None
    left: Optional[str] = None


class InteractiveStyling(ElementModel):
    background_color: Optional[str] = None
    text_color: Optional[str] = None
    accent_color: Optional[str] = None
    border_radius: Optional[str] = None
    padding: Optional[ElementPadding] = None
    shadow: Optional[Literal["none", "sm", "md", "lg"]] = None


class TrackingConfig(ElementModel):
    """Which analytics events an element emits."""

    enabled: bool = False
    track_views: bool = False
    track_starts: bool = False
    track_progress: bool = True
    track_completions: bool = False
    track_abandonment: bool = False
    track_time_spent: bool = False
    custom_events: Optional[list[str]] = None


class FollowUpAction(ElementModel):
    """Action performed after the visitor finishes the element."""

    type: FollowUpActionType = "none"
    destination: Optional[str] = None
    message: Optional[str] = None
    delay: Optional[float] = Field(default=None, ge=0)


class LeadCaptureField(ElementModel):
    id: str
    type: LeadCaptureFieldType = "custom"
    label: str = ""
    placeholder: Optional[str] = None
    required: bool = False
    # Optional regular expression the value must match
    validation: Optional[str] = None


class LeadCaptureConfig(ElementModel):
    enabled: bool = False
    required: bool = False
    position: LeadCapturePosition = "after"
    fields: list[LeadCaptureField] = Field(default_factory=list)
    privacy_text: Optional[str] = None
    submit_button_text: Optional[str] = None


class PersonaVariant(ElementModel):
    """Overrides applied when a specific audience persona is detected."""

    persona_id: str
    title: Optional[str] = None
    description: Optional[str] = None
    emotional_tone: Optional[str] = None
    # Keys are config field names (snake_case or camelCase)
    content_overrides: Optional[dict[str, Any]] = None


class ElementConfig(ElementModel):
    """Configuration common to all interactive elements."""

    id: str = ""
    type: ElementType
    component_id: Optional[str] = None
    website_id: str = ""
    page_id: Optional[str] = None

    title: str = ""
    description: Optional[str] = None
    narrative_role: Optional[str] = None
    emotional_tone: Optional[str] = None

    styling: Optional[InteractiveStyling] = None
    animations: Optional[InteractiveAnimationConfig] = None
    lead_capture: Optional[LeadCaptureConfig] = None
    tracking: Optional[TrackingConfig] = None
    follow_up: Optional[FollowUpAction] = None
    persona_variants: Optional[list[PersonaVariant]] = None

    status: ElementStatus = "draft"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
