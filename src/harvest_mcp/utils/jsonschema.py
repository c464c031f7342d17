"""JSON Schema validation wrapper."""

from __future__ import annotations

from jsonschema import Draft202012Validator


def validate_payload(schema: dict[str, object], payload: dict[str, object]) -> list[str]:
    """Validate payload against schema and return error messages.

    Messages for nested fields are prefixed with their dotted path, e.g.
    ``"hours: 25 is greater than the maximum of 24"``.
    """
    validator = Draft202012Validator(schema)
    errors: list[str] = []
    ordered = sorted(
        validator.iter_errors(payload),
        key=lambda e: [str(p) for p in e.absolute_path],
    )
    for error in ordered:
        path = ".".join(str(p) for p in error.absolute_path)
        errors.append(f"{path}: {error.message}" if path else error.message)
    return errors
