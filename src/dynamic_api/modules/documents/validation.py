"""Per-request record validation.

Callers send rows of self-describing field descriptors::

    [{"age": {"type": "number", "value": 15, "min": 18}}]

Each descriptor is checked against its own declared type and optional
constraints (``required``, ``min``, ``max``, ``pattern``). Errors are
collected for the whole batch; only a clean batch is projected down to
plain ``{key: value}`` records.
"""

import json
import math
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from dynamic_api.core.constants import (
    MAX_PATTERN_LENGTH,
    MAX_PATTERN_SUBJECT_LENGTH,
    OPERATOR_PREFIX,
)
from dynamic_api.core.errors import RecordValidationError


class FieldType(str, Enum):
    """Kinds a field descriptor may declare."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


ALLOWED_TYPES = frozenset(t.value for t in FieldType)


@dataclass(frozen=True)
class FieldDescriptor:
    """A typed field as declared by the caller."""

    key: str
    type: FieldType
    value: Any = None
    required: bool = False
    min: Any = None
    max: Any = None
    pattern: Any = None


def render(value: Any) -> str:
    """Render a value the way it appears in error messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, list | dict):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def as_number(value: Any) -> int | float | None:
    """Interpret ``value`` as a number, or return None.

    Numeric strings such as ``"42"`` or ``"1e3"`` count as numbers.
    Booleans, None and NaN do not.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return None if math.isnan(value) else value
    if isinstance(value, str):
        text = value.strip()
        if not text or "_" in text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
        return None if math.isnan(number) else number
    return None


# ============================================================
# Constraint checks shared by variants
# ============================================================


def _bound(field: FieldDescriptor, name: str) -> tuple[int | float | None, str | None]:
    """Read the ``min``/``max`` constraint as a number."""
    raw = getattr(field, name)
    if raw is None:
        return None, None
    number = as_number(raw)
    if number is None:
        label = "Minimum" if name == "min" else "Maximum"
        return None, f"{label} {render(raw)} is not a number for {field.key}"
    return number, None


def _check_pattern(field: FieldDescriptor, text: str) -> list[str]:
    if field.pattern is None:
        return []
    if not isinstance(field.pattern, str):
        return [f"Pattern {render(field.pattern)} is not a valid regular expression for {field.key}"]
    # re has no timeout, so both sides of a search are bounded
    if len(field.pattern) > MAX_PATTERN_LENGTH:
        return [f"Pattern for {field.key} is longer than {MAX_PATTERN_LENGTH} characters"]
    if len(text) > MAX_PATTERN_SUBJECT_LENGTH:
        return [
            f"Value for {field.key} is longer than {MAX_PATTERN_SUBJECT_LENGTH} characters"
            " and cannot be matched against a pattern"
        ]
    try:
        compiled = re.compile(field.pattern)
    except re.error:
        return [f"Pattern {field.pattern} is not a valid regular expression for {field.key}"]
    if compiled.search(text) is None:
        return [f"Value {text} does not match pattern {field.pattern} for {field.key}"]
    return []


# ============================================================
# Variant checkers
# ============================================================


def check_number(field: FieldDescriptor) -> list[str]:
    """Value must be numeric; bounds compare the value itself (inclusive)."""
    errors: list[str] = []
    shown = render(field.value)
    number = as_number(field.value)

    if number is None:
        errors.append(f"Value {shown} is not a number for {field.key}")

    minimum, problem = _bound(field, "min")
    if problem:
        errors.append(problem)
    elif number is not None and minimum is not None and number < minimum:
        errors.append(
            f"Value {shown} is less than minimum value {render(field.min)} for {field.key}"
        )

    maximum, problem = _bound(field, "max")
    if problem:
        errors.append(problem)
    elif number is not None and maximum is not None and number > maximum:
        errors.append(
            f"Value {shown} is greater than maximum value {render(field.max)} for {field.key}"
        )

    errors.extend(_check_pattern(field, shown))
    return errors


def check_string(field: FieldDescriptor) -> list[str]:
    """Value must be a string; bounds compare its length (inclusive)."""
    errors: list[str] = []
    value = field.value

    if field.required and not value:
        errors.append(f"Value is required for {field.key}")

    if value is None:
        return errors

    if not isinstance(value, str):
        errors.append(f"Value {render(value)} is not a string for {field.key}")
        return errors

    minimum, problem = _bound(field, "min")
    if problem:
        errors.append(problem)
    elif minimum is not None and len(value) < minimum:
        errors.append(
            f"Value {value} is less than minimum length {render(field.min)} for {field.key}"
        )

    maximum, problem = _bound(field, "max")
    if problem:
        errors.append(problem)
    elif maximum is not None and len(value) > maximum:
        errors.append(
            f"Value {value} is greater than maximum length {render(field.max)} for {field.key}"
        )

    errors.extend(_check_pattern(field, value))
    return errors


def _shape_checker(expected: type, noun: str) -> Callable[[FieldDescriptor], list[str]]:
    def check(field: FieldDescriptor) -> list[str]:
        if isinstance(field.value, expected):
            return []
        return [f"Value {render(field.value)} is not {noun} for {field.key}"]

    check.__doc__ = f"Value must be {noun}; no other constraints apply."
    return check


CHECKERS: dict[FieldType, Callable[[FieldDescriptor], list[str]]] = {
    FieldType.NUMBER: check_number,
    FieldType.STRING: check_string,
    FieldType.BOOLEAN: _shape_checker(bool, "a boolean"),
    FieldType.ARRAY: _shape_checker(list, "an array"),
    FieldType.OBJECT: _shape_checker(dict, "an object"),
}


# ============================================================
# Batch operations
# ============================================================


def validate_field(key: str, raw: Any) -> str:
    """Validate one raw descriptor.

    Returns:
        All messages for the field joined with newlines, or ``""``
    """
    if key.startswith(OPERATOR_PREFIX):
        return f"Field name {key} is not allowed"

    declared = raw.get("type") if isinstance(raw, Mapping) else None
    if not declared:
        return f"Type is required for {key}"
    if not isinstance(declared, str) or declared not in ALLOWED_TYPES:
        return f"Type {render(declared)} is not allowed for {key}"

    field = FieldDescriptor(
        key=key,
        type=FieldType(declared),
        value=raw.get("value"),
        required=bool(raw.get("required")),
        min=raw.get("min"),
        max=raw.get("max"),
        pattern=raw.get("pattern"),
    )
    return "\n".join(CHECKERS[field.type](field))


def validate(batch: Sequence[Any]) -> list[str]:
    """Validate every descriptor of every row.

    Returns:
        One entry per failing field, in row-then-key order
    """
    errors: list[str] = []
    for index, row in enumerate(batch):
        if not isinstance(row, Mapping):
            errors.append(f"Row {index} is not an object")
            continue
        for key, raw in row.items():
            message = validate_field(str(key), raw)
            if message:
                errors.append(message)
    return errors


def project(batch: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Strip type and constraint metadata, keeping row and key order."""
    return [{key: descriptor.get("value") for key, descriptor in row.items()} for row in batch]


def validate_and_project(batch: Sequence[Any]) -> list[dict[str, Any]]:
    """Validate a batch and project it to plain records.

    Raises:
        RecordValidationError: If any field of any row fails; nothing
            is projected in that case
    """
    errors = validate(batch)
    if errors:
        raise RecordValidationError(errors=errors)
    return project(batch)
