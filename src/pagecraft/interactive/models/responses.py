"""
Visitor response models.

Responses are caller-owned values; engines read them and never keep them.
Every field is optional so that partially filled submissions validate.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import Field

from .element import ElementModel

DeviceType = Literal["desktop", "tablet", "mobile"]


class InteractiveResponse(ElementModel):
    id: Optional[str] = None
    element_id: Optional[str] = None
    website_id: Optional[str] = None
    visitor_id: Optional[str] = None
    session_id: Optional[str] = None
    page_url: Optional[str] = None

    responses: dict[str, Any] = Field(default_factory=dict)
    completed: bool = False
    completion_percentage: float = 0
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    time_spent_seconds: Optional[float] = None

    device_type: Optional[DeviceType] = None
    user_agent: Optional[str] = None
    referrer: Optional[str] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None

    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    custom_fields: Optional[dict[str, Any]] = None

    detected_persona_id: Optional[str] = None
    persona_confidence: Optional[float] = None


class QuizResponse(InteractiveResponse):
    # question id -> option id, list of option ids, text or rating
    answers: dict[str, Any] = Field(default_factory=dict)
    score: Optional[float] = None
    max_score: Optional[float] = None
    result_id: Optional[str] = None


class CalculatorResponse(InteractiveResponse):
    # input name -> raw value
    input_values: dict[str, Any] = Field(default_factory=dict)
    calculated_outputs: Optional[dict[str, float]] = None


class SurveyResponse(InteractiveResponse):
    # question id -> option id(s), rating, text or ranked option ids
    answers: dict[str, Any] = Field(default_factory=dict)
