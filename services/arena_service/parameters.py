"""
Bounded generation parameters and their two control surfaces.

There is exactly one stored value per field (a frozen ModelParameters).
The slider and the numeric entry are adapters over that value: both read
from it and both write through ``set_parameter``, which clamps instead of
rejecting. Out-of-range numbers only arrive from programmatic callers or
malformed typing, so they are pulled back to the nearest bound.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from shared.llm_adapter.models import ModelParameters


@dataclass(frozen=True)
class ParameterBound:
    field: str
    alias: str
    label: str
    minimum: float
    maximum: float
    step: float
    integer: bool
    # what an unparseable numeric entry turns into before clamping
    fallback: float
    description: str


PARAMETER_BOUNDS: dict[str, ParameterBound] = {
    "temperature": ParameterBound(
        field="temperature",
        alias="temperature",
        label="Temperature",
        minimum=0.0,
        maximum=2.0,
        step=0.1,
        integer=False,
        fallback=0.0,
        description="Controls randomness. Lower values for focused, higher for creative responses.",
    ),
    "max_tokens": ParameterBound(
        field="max_tokens",
        alias="maxTokens",
        label="Max Tokens",
        minimum=1,
        maximum=8192,
        step=1,
        integer=True,
        fallback=1,
        description="Maximum length of the generated response.",
    ),
    "top_p": ParameterBound(
        field="top_p",
        alias="topP",
        label="Top P",
        minimum=0.0,
        maximum=1.0,
        step=0.1,
        integer=False,
        fallback=0.0,
        description="Controls diversity via nucleus sampling. Alternative to temperature.",
    ),
    "frequency_penalty": ParameterBound(
        field="frequency_penalty",
        alias="frequencyPenalty",
        label="Frequency Penalty",
        minimum=-2.0,
        maximum=2.0,
        step=0.1,
        integer=False,
        fallback=0.0,
        description="Reduces repetition of frequent tokens. Positive values discourage repetition.",
    ),
    "presence_penalty": ParameterBound(
        field="presence_penalty",
        alias="presencePenalty",
        label="Presence Penalty",
        minimum=-2.0,
        maximum=2.0,
        step=0.1,
        integer=False,
        fallback=0.0,
        description="Encourages talking about new topics. Positive values increase likelihood of new topics.",
    ),
}

_ALIASES = {bound.alias: name for name, bound in PARAMETER_BOUNDS.items()}

DEFAULT_PARAMETERS = ModelParameters()


def resolve_field(name: str) -> str:
    """Map either spelling (``max_tokens`` or ``maxTokens``) to the attribute name."""
    if name in PARAMETER_BOUNDS:
        return name
    try:
        return _ALIASES[name]
    except KeyError:
        raise KeyError(f"Unknown parameter {name!r}") from None


def clamp(field: str, value: float) -> float | int:
    bound = PARAMETER_BOUNDS[resolve_field(field)]
    number = float(value)
    if math.isnan(number):
        number = bound.fallback
    number = min(max(number, bound.minimum), bound.maximum)
    if bound.integer:
        return int(round(number))
    return number


def set_parameter(params: ModelParameters, field: str, value: float) -> ModelParameters:
    """Return a copy of ``params`` with ``field`` set to ``value`` clamped into range."""
    name = resolve_field(field)
    return params.model_copy(update={name: clamp(name, value)})


def is_modified(
    current: ModelParameters, defaults: ModelParameters = DEFAULT_PARAMETERS
) -> bool:
    return current != defaults


def reset() -> ModelParameters:
    return DEFAULT_PARAMETERS


# ---------------------------------------------------------------------------
# Control adapters
# ---------------------------------------------------------------------------


def slider_value(params: ModelParameters, field: str) -> float | int:
    return getattr(params, resolve_field(field))


def entry_text(params: ModelParameters, field: str) -> str:
    value = getattr(params, resolve_field(field))
    if isinstance(value, int):
        return str(value)
    return f"{value:.10g}"


def from_slider(params: ModelParameters, field: str, position: float) -> ModelParameters:
    """Write a slider position, snapped to the control's step."""
    bound = PARAMETER_BOUNDS[resolve_field(field)]
    position = float(position)
    if math.isfinite(position):
        steps = round((position - bound.minimum) / bound.step)
        position = round(bound.minimum + steps * bound.step, 10)
    return set_parameter(params, bound.field, position)


def from_entry(params: ModelParameters, field: str, text: str) -> ModelParameters:
    """Write whatever was typed into the numeric entry."""
    bound = PARAMETER_BOUNDS[resolve_field(field)]
    try:
        value = float(str(text).strip())
    except ValueError:
        value = bound.fallback
    return set_parameter(params, bound.field, value)


def describe_controls(params: ModelParameters) -> list[dict[str, Any]]:
    """Render-ready description of both controls for every field."""
    return [
        {
            "field": bound.alias,
            "label": bound.label,
            "min": bound.minimum,
            "max": bound.maximum,
            "step": bound.step,
            "value": slider_value(params, name),
            "entry": entry_text(params, name),
            "description": bound.description,
        }
        for name, bound in PARAMETER_BOUNDS.items()
    ]
