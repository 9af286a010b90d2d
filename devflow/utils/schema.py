"""Shape validation for oracle output.

A shape is a JSON-Schema-like dict. Supported keys:

- ``type``: one of ``object``, ``array``, ``string``, ``number``, ``integer``, ``boolean``
- ``properties`` / ``required`` for objects (properties are checked in declaration order)
- ``items`` for arrays
- ``enum`` for closed sets of strings
- ``minimum`` / ``maximum`` for ranged numbers

Validation is exact and never coerces: extra object fields are ignored, missing
required fields, kind mismatches, unknown enum values and out-of-range numbers
are reported. The same dict is embedded verbatim in the oracle instruction.
"""

from typing import Any

from devflow.errors import ValidationError


def kind_of(value: Any) -> str:
    """Return the JSON kind name of a decoded value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _matches_kind(value: Any, expected: str) -> bool:
    actual = kind_of(value)
    if expected == "number":
        return actual in ("integer", "number")
    if expected == "integer":
        return actual == "integer" or (actual == "number" and value.is_integer())
    return actual == expected


def _describe_range(shape: dict) -> str:
    low = shape.get("minimum")
    high = shape.get("maximum")
    if low is not None and high is not None:
        return f"{shape['type']} in [{low}, {high}]"
    if low is not None:
        return f"{shape['type']} >= {low}"
    return f"{shape['type']} <= {high}"


def _collect(value: Any, shape: dict, path: str, errors: list, stop_at_first: bool) -> None:
    expected = shape["type"]

    if not _matches_kind(value, expected):
        errors.append(ValidationError(path, expected, kind_of(value)))
        return

    if "enum" in shape and value not in shape["enum"]:
        allowed = " | ".join(str(v) for v in shape["enum"])
        errors.append(ValidationError(path, f"one of {allowed}", repr(value)))
        return

    if expected in ("number", "integer"):
        low = shape.get("minimum")
        high = shape.get("maximum")
        if (low is not None and value < low) or (high is not None and value > high):
            errors.append(ValidationError(path, _describe_range(shape), repr(value)))
        return

    if expected == "array":
        item_shape = shape.get("items")
        if item_shape is None:
            return
        for i, item in enumerate(value):
            _collect(item, item_shape, f"{path}[{i}]", errors, stop_at_first)
            if errors and stop_at_first:
                return
        return

    if expected == "object":
        required = set(shape.get("required", []))
        for name, field_shape in shape.get("properties", {}).items():
            field_path = f"{path}.{name}"
            if name not in value:
                if name in required:
                    errors.append(ValidationError(field_path, field_shape["type"], "missing"))
            else:
                _collect(value[name], field_shape, field_path, errors, stop_at_first)
            if errors and stop_at_first:
                return


def validate(value: Any, shape: dict, path: str = "$") -> Any:
    """Check ``value`` against ``shape`` and return it unchanged.

    Raises ValidationError for the first offending field encountered.
    """
    errors: list[ValidationError] = []
    _collect(value, shape, path, errors, stop_at_first=True)
    if errors:
        raise errors[0]
    return value


def validate_all(value: Any, shape: dict, path: str = "$") -> list[ValidationError]:
    """Return every shape violation in ``value`` (empty list = conforms)."""
    errors: list[ValidationError] = []
    _collect(value, shape, path, errors, stop_at_first=False)
    return errors


def string_list() -> dict:
    """Shape of an array of strings."""
    return {"type": "array", "items": {"type": "string"}}


def score(description: str = "1-10 score") -> dict:
    """Shape of an integer score between 1 and 10."""
    return {"type": "integer", "minimum": 1, "maximum": 10, "description": description}
