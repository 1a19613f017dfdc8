"""
Calculator engine.

Validates and normalizes the visitor's inputs, evaluates each output formula
with the formula evaluator and formats the numbers for display.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any, Mapping, Optional, Union

from pagecraft.interactive.formula import (
    EvaluationError,
    FormulaEvaluator,
    LimitExceededError,
    ParseError,
    TokenizerError,
    UnknownIdentifierError,
)
from pagecraft.interactive.models import (
    CalculatorBreakdownItem,
    CalculatorConfig,
    CalculatorInput,
    CalculatorOutput,
    CalculatorResponse,
)

from .base import (
    InteractiveEngine,
    ProcessResult,
    ValidationIssue,
    ValidationResult,
    ValidationWarning,
    is_answered,
    merge_validation_results,
)

logger = logging.getLogger("pagecraft.interactive.engines.calculator_engine")

DEFAULT_DECIMALS = 2
BREAKDOWN_DECIMALS = 2

# Value bound to every declared input when formulas are checked at authoring time
DUMMY_INPUT_VALUE = 1.0

OPTION_INPUT_TYPES = ("select", "radio")

_LEADING_FLOAT = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_WHITESPACE = re.compile(r"\s+")

STRUCTURAL_FORMULA_ERRORS = (
    TokenizerError,
    ParseError,
    LimitExceededError,
    UnknownIdentifierError,
)


@dataclass
class FormattedOutput:
    raw_value: float
    formatted_value: str
    label: str
    description: Optional[str] = None
    highlight: bool = False


@dataclass
class CalculatorProcessResult:
    outputs: dict[str, FormattedOutput]
    summary: str
    breakdown: Optional[dict[str, FormattedOutput]] = None
    total_value: Optional[float] = None


@dataclass
class CalculatorState:
    """Caller-owned calculator form state."""

    input_values: dict[str, Any] = field(default_factory=dict)
    outputs: dict[str, float] = field(default_factory=dict)
    is_calculated: bool = False
    errors: dict[str, str] = field(default_factory=dict)


def parse_number(value: Any) -> Optional[float]:
    """
    Reads a number from an input value.

    Strings are read up to the first character that cannot continue a
    decimal literal (``"12.5kg"`` is 12.5). Returns ``None`` when no finite
    number can be read.
    """
    if isinstance(value, bool):
        # toggle inputs
        return float(value)
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        match = _LEADING_FLOAT.match(value)
        if match is None:
            return None
        number = float(match.group(1))
    else:
        return None
    return number if math.isfinite(number) else None


def _quantize(value: float, decimals: int) -> Decimal:
    number = Decimal(str(value))
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, number.adjusted() + decimals + 2)
        return number.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)


def format_number(value: float, decimals: int = DEFAULT_DECIMALS) -> str:
    """Grouped decimal, e.g. ``1,234.50``."""
    return f"{_quantize(value, decimals):,.{decimals}f}"


def format_currency(value: float, decimals: int = DEFAULT_DECIMALS) -> str:
    """US dollar amount, e.g. ``$3,600`` or ``-$12.50``."""
    quantized = _quantize(value, decimals)
    sign = "-" if quantized < 0 else ""
    return f"{sign}${abs(quantized):,.{decimals}f}"


def format_percentage(value: float, decimals: int = DEFAULT_DECIMALS) -> str:
    """A ratio as a percentage, e.g. ``0.125`` -> ``12.50%``."""
    return f"{_quantize(value * 100, decimals):.{decimals}f}%"


def format_value(
    value: float,
    format: str = "number",
    decimals: Optional[int] = None,
    prefix: Optional[str] = None,
    suffix: Optional[str] = None,
) -> str:
    """Formats ``value`` per an output format, then applies prefix and suffix."""
    places = DEFAULT_DECIMALS if decimals is None else decimals

    if format == "currency":
        formatted = format_currency(value, places)
    elif format == "percentage":
        formatted = format_percentage(value, places)
    else:
        formatted = format_number(value, places)

    if prefix:
        formatted = f"{prefix}{formatted}"
    if suffix:
        formatted = f"{formatted}{suffix}"
    return formatted


def breakdown_item_id(label: str) -> str:
    """``"Annual Savings"`` -> ``"annual_savings"``"""
    return _WHITESPACE.sub("_", label.lower())


def evaluate_formula(formula: str, variables: Mapping[str, float]) -> float:
    """Evaluates a calculator formula against numeric variables."""
    return FormulaEvaluator(variables).evaluate(formula)


class CalculatorEngine(
    InteractiveEngine[
        CalculatorConfig, CalculatorResponse, CalculatorProcessResult, CalculatorState
    ]
):
    response_model = CalculatorResponse

    def validate_config(self) -> ValidationResult:
        return merge_validation_results(
            self.validate_base_config(), self._validate_calculator_config()
        )

    def _validate_calculator_config(self) -> ValidationResult:
        config = self._config
        errors: list[ValidationIssue] = []
        warnings: list[ValidationWarning] = []

        if not config.inputs:
            errors.append(
                ValidationIssue(
                    "inputs", "Calculator must have at least one input", "NO_INPUTS"
                )
            )
        for index, calc_input in enumerate(config.inputs):
            errors.extend(self._validate_input(calc_input, index))

        if not config.outputs:
            errors.append(
                ValidationIssue(
                    "outputs", "Calculator must have at least one output", "NO_OUTPUTS"
                )
            )
        for index, output in enumerate(config.outputs):
            errors.extend(self._validate_output(output, index))

        for index, item in enumerate(config.breakdown or []):
            errors.extend(self._validate_breakdown_item(item, index))

        return ValidationResult.from_issues(errors, warnings)

    def _validate_input(self, calc_input: CalculatorInput, index: int) -> list[ValidationIssue]:
        errors: list[ValidationIssue] = []
        prefix = f"inputs[{index}]"
        number = index + 1

        if not calc_input.name.strip():
            errors.append(
                ValidationIssue(
                    f"{prefix}.name", f"Input {number} name is required", "EMPTY_INPUT_NAME"
                )
            )

        if not calc_input.label.strip():
            errors.append(
                ValidationIssue(
                    f"{prefix}.label",
                    f"Input {number} label is required",
                    "EMPTY_INPUT_LABEL",
                )
            )

        if (
            calc_input.min is not None
            and calc_input.max is not None
            and calc_input.min > calc_input.max
        ):
            errors.append(
                ValidationIssue(
                    f"{prefix}.min",
                    f"Input {number} min value cannot be greater than max",
                    "INVALID_MIN_MAX",
                )
            )

        if calc_input.type in OPTION_INPUT_TYPES and not calc_input.options:
            errors.append(
                ValidationIssue(
                    f"{prefix}.options",
                    f"Input {number} requires options for type {calc_input.type}",
                    "NO_OPTIONS",
                )
            )

        return errors

    def _validate_output(self, output: CalculatorOutput, index: int) -> list[ValidationIssue]:
        errors: list[ValidationIssue] = []
        prefix = f"outputs[{index}]"
        number = index + 1

        if not output.label.strip():
            errors.append(
                ValidationIssue(
                    f"{prefix}.label",
                    f"Output {number} label is required",
                    "EMPTY_OUTPUT_LABEL",
                )
            )

        if not output.formula.strip():
            errors.append(
                ValidationIssue(
                    f"{prefix}.formula",
                    f"Output {number} formula is required",
                    "EMPTY_OUTPUT_FORMULA",
                )
            )
        else:
            formula_error = self.check_formula(output.formula)
            if formula_error:
                errors.append(
                    ValidationIssue(f"{prefix}.formula", formula_error, "INVALID_FORMULA")
                )

        return errors

    def _validate_breakdown_item(
        self, item: CalculatorBreakdownItem, index: int
    ) -> list[ValidationIssue]:
        prefix = f"breakdown[{index}]"

        if not item.formula.strip():
            return [
                ValidationIssue(
                    f"{prefix}.formula",
                    f"Breakdown item {index + 1} formula is required",
                    "EMPTY_BREAKDOWN_FORMULA",
                )
            ]

        formula_error = self.check_formula(item.formula)
        if formula_error:
            return [
                ValidationIssue(
                    f"{prefix}.formula", formula_error, "INVALID_BREAKDOWN_FORMULA"
                )
            ]
        return []

    def check_formula(self, formula: str) -> Optional[str]:
        """
        Evaluates ``formula`` with every declared input bound to a dummy value.

        Returns the error message when the formula cannot be read or names
        an unknown variable or function, otherwise ``None``. Failures that
        depend on the dummy values (division by zero, arguments outside a
        function's domain) are not reported; real inputs may avoid them.
        """
        dummy_values = {
            calc_input.name: DUMMY_INPUT_VALUE
            for calc_input in self._config.inputs
            if calc_input.name
        }
        try:
            evaluate_formula(formula, dummy_values)
        except STRUCTURAL_FORMULA_ERRORS as e:
            return e.message
        except EvaluationError as e:
            logger.debug("Formula %r fails only for sample values: %s", formula, e.message)
        return None

    def process_response(
        self, response: Union[CalculatorResponse, Mapping[str, Any], None] = None
    ) -> ProcessResult[CalculatorProcessResult]:
        parsed, error = self._parse_response(response)
        if parsed is None:
            return ProcessResult.fail(error or "Invalid response")

        input_values = parsed.input_values
        validation = self.validate_input_values(input_values)
        if not validation.is_valid:
            return ProcessResult.fail(
                ", ".join(e.message for e in validation.errors),
                metadata={"errors": validation.errors},
            )

        try:
            numeric_values = self.normalize_input_values(input_values)
            outputs = self._calculate_outputs(numeric_values)

            breakdown = None
            if self.has_breakdown():
                breakdown = self._calculate_breakdown(numeric_values)

            primary = self._primary_output_id()
            data = CalculatorProcessResult(
                outputs=outputs,
                summary=self._generate_summary(outputs),
                breakdown=breakdown,
                total_value=outputs[primary].raw_value if primary else None,
            )
        except EvaluationError as e:
            logger.debug("Formula evaluation failed for %s: %s", self._config.id, e.message)
            return ProcessResult.fail(e.message)
        except Exception as e:
            logger.exception("Failed to calculate %s", self._config.id)
            return ProcessResult.fail(str(e) or "Failed to calculate")

        return ProcessResult.ok(
            data,
            metadata={"calculatedAt": self.now_iso(), "inputCount": len(input_values)},
        )

    def validate_input_values(self, values: Mapping[str, Any]) -> ValidationResult:
        """
        Checks presence, numeric form and bounds of every declared input.

        All violations are collected; nothing stops at the first one.
        """
        errors: list[ValidationIssue] = []

        for calc_input in self._config.inputs:
            value = values.get(calc_input.name)

            if not is_answered(value):
                if calc_input.required:
                    errors.append(
                        ValidationIssue(
                            calc_input.name,
                            f"{calc_input.label} is required",
                            "REQUIRED_INPUT",
                        )
                    )
                continue

            number = parse_number(value)
            if number is None:
                errors.append(
                    ValidationIssue(
                        calc_input.name,
                        f"{calc_input.label} must be a valid number",
                        "INVALID_NUMBER",
                    )
                )
                continue

            if calc_input.min is not None and number < calc_input.min:
                errors.append(
                    ValidationIssue(
                        calc_input.name,
                        f"{calc_input.label} must be at least {calc_input.min:g}",
                        "BELOW_MIN",
                    )
                )

            if calc_input.max is not None and number > calc_input.max:
                errors.append(
                    ValidationIssue(
                        calc_input.name,
                        f"{calc_input.label} must be at most {calc_input.max:g}",
                        "ABOVE_MAX",
                    )
                )

        return ValidationResult.from_issues(errors)

    def normalize_input_values(self, values: Mapping[str, Any]) -> dict[str, float]:
        """
        Maps every declared input name to a number.

        Missing values fall back to the input's default, then to 0.
        """
        normalized: dict[str, float] = {}

        for calc_input in self._config.inputs:
            value = values.get(calc_input.name)
            if not is_answered(value):
                value = calc_input.default_value
            if value is None:
                normalized[calc_input.name] = 0.0
                continue

            number = parse_number(value)
            if number is None:
                raise ValueError(f"{calc_input.label} must be a valid number")
            normalized[calc_input.name] = number

        return normalized

    def _calculate_outputs(
        self, numeric_values: Mapping[str, float]
    ) -> dict[str, FormattedOutput]:
        evaluator = FormulaEvaluator(numeric_values)
        outputs: dict[str, FormattedOutput] = {}

        for output in self._config.outputs:
            raw_value = evaluator.evaluate(output.formula)
            outputs[output.id] = FormattedOutput(
                raw_value=raw_value,
                formatted_value=format_value(
                    raw_value, output.format, output.decimals, output.prefix, output.suffix
                ),
                label=output.label,
                description=output.description,
                highlight=output.highlight,
            )

        return outputs

    def _calculate_breakdown(
        self, numeric_values: Mapping[str, float]
    ) -> dict[str, FormattedOutput]:
        evaluator = FormulaEvaluator(numeric_values)
        breakdown: dict[str, FormattedOutput] = {}

        for item in self._config.breakdown or []:
            raw_value = evaluator.evaluate(item.formula)
            breakdown[breakdown_item_id(item.label)] = FormattedOutput(
                raw_value=raw_value,
                formatted_value=format_value(raw_value, item.format, BREAKDOWN_DECIMALS),
                label=item.label,
                description=item.description,
            )

        return breakdown

    def _primary_output_id(self) -> Optional[str]:
        outputs = self._config.outputs
        highlighted = next((o for o in outputs if o.highlight), None)
        if highlighted is not None:
            return highlighted.id
        return outputs[0].id if outputs else None

    def _generate_summary(self, outputs: Mapping[str, FormattedOutput]) -> str:
        primary = self._primary_output_id()
        if primary is None:
            return "Calculation complete"
        output = outputs[primary]
        return f"{output.label}: {output.formatted_value}"

    def calculate_real_time(
        self, input_values: Mapping[str, Any]
    ) -> Optional[dict[str, FormattedOutput]]:
        """
        Recomputes outputs while the visitor is typing.

        Returns ``None`` when real-time calculation is disabled or the current
        values cannot be evaluated; partial input is never an error here.
        """
        if not self._config.settings.real_time_calculation:
            return None

        try:
            return self._calculate_outputs(self.normalize_input_values(input_values))
        except (EvaluationError, ValueError) as e:
            logger.warning("Real-time calculation skipped for %s: %s", self._config.id, e)
            return None

    def get_initial_state(self) -> CalculatorState:
        return CalculatorState(
            input_values={
                calc_input.name: (
                    calc_input.default_value if calc_input.default_value is not None else 0
                )
                for calc_input in self._config.inputs
            }
        )

    def get_ordered_inputs(self) -> list[CalculatorInput]:
        return sorted(self._config.inputs, key=lambda i: i.order)

    def get_ordered_outputs(self) -> list[CalculatorOutput]:
        return sorted(self._config.outputs, key=lambda o: o.order)

    @property
    def calculator_type(self) -> str:
        return self._config.calculator_type

    def has_breakdown(self) -> bool:
        return self._config.settings.show_breakdown and bool(self._config.breakdown)
