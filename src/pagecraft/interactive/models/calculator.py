"""
Calculator configuration models.
"""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import Field

from .element import ElementConfig, ElementModel

CalculatorInputType = Literal[
    "number",
    "currency",
    "percentage",
    "slider",
    "select",
    "radio",
    "toggle",
]

OutputFormat = Literal["number", "currency", "percentage", "custom"]

BreakdownFormat = Literal["number", "currency", "percentage"]

CalculatorType = Literal["roi", "savings", "pricing", "sizing", "custom"]


class CalculatorInputOption(ElementModel):
    value: Union[float, str]
    label: str = ""


class CalculatorInput(ElementModel):
    id: str = ""
    # Variable name referenced by formulas
    name: str = ""
    label: str = ""
    type: CalculatorInputType = "number"
    default_value: Optional[Union[float, str]] = None
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    unit: Optional[str] = None
    prefix: Optional[str] = None
    suffix: Optional[str] = None
    description: Optional[str] = None
    help_text: Optional[str] = None
    options: Optional[list[CalculatorInputOption]] = None
    required: bool = False
    order: int = 0


class CalculatorOutput(ElementModel):
    id: str
    label: str = ""
    formula: str = ""
    format: OutputFormat = "number"
    decimals: Optional[int] = Field(default=None, ge=0)
    prefix: Optional[str] = None
    suffix: Optional[str] = None
    description: Optional[str] = None
    highlight: bool = False
    color: Optional[str] = None
    order: int = 0


class CalculatorBreakdownItem(ElementModel):
    label: str = ""
    formula: str = ""
    format: BreakdownFormat = "number"
    description: Optional[str] = None


class CalculatorSettings(ElementModel):
    show_breakdown: bool = False
    real_time_calculation: bool = False
    show_input_descriptions: bool = True
    layout: Literal["vertical", "horizontal", "two-column"] = "vertical"
    submit_button_text: Optional[str] = None
    result_title: Optional[str] = None


class CalculatorConfig(ElementConfig):
    type: Literal["calculator"] = "calculator"
    calculator_type: CalculatorType = "custom"
    inputs: list[CalculatorInput] = Field(default_factory=list)
    outputs: list[CalculatorOutput] = Field(default_factory=list)
    breakdown: Optional[list[CalculatorBreakdownItem]] = None
    settings: CalculatorSettings = Field(default_factory=CalculatorSettings)
