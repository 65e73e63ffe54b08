"""Quiz response validation.

Wraps pydantic validation so callers only ever see the domain
ValidationError, whose ``field`` is the dotted camelCase path as submitted
(``contextualFactors.alertPreferences.alertFrequencyLimit``).
"""

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from src.personalization.errors import FieldProblem, ValidationError
from src.personalization.schemas import QUIZ_SECTIONS, RawPersonalizationResponse


def _field_path(loc: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc)


def _describe(error: dict[str, Any]) -> FieldProblem:
    """Turn one pydantic error dict into a FieldProblem."""
    path = _field_path(error["loc"])
    kind = error["type"]

    if kind == "missing":
        return FieldProblem(path, None, f"Missing required field: {path}")
    if kind == "extra_forbidden":
        return FieldProblem(path, error.get("input"), f"Unexpected field: {path}")

    value = error.get("input")
    return FieldProblem(path, value, f"Invalid value {value!r} for {path}: {error['msg']}")


def parse_response(raw: Mapping[str, Any] | RawPersonalizationResponse) -> RawPersonalizationResponse:
    """Validate a raw quiz response.

    Args:
        raw: camelCase mapping as submitted by the quiz, or an already
            validated response (returned unchanged).

    Returns:
        The typed RawPersonalizationResponse.

    Raises:
        ValidationError: If a required field is missing or any value is
            outside its declared domain.
    """
    if isinstance(raw, RawPersonalizationResponse):
        return raw
    if not isinstance(raw, Mapping):
        raise ValidationError(
            f"Quiz response must be an object, got {type(raw).__name__}",
            field="",
            value=raw,
        )

    try:
        return RawPersonalizationResponse.model_validate(dict(raw))
    except PydanticValidationError as exc:
        problems = [_describe(err) for err in exc.errors()]
        first = problems[0]
        raise ValidationError(
            "; ".join(p.message for p in problems),
            field=first.field,
            value=first.value,
            errors=problems,
        ) from exc


def merge_section(
    response: RawPersonalizationResponse,
    section: str,
    data: Mapping[str, Any],
) -> RawPersonalizationResponse:
    """Apply a partial section update and re-validate the whole response.

    The section is shallow-merged (top-level keys of ``data`` replace the
    stored ones) before the complete response is validated again.

    Raises:
        ValidationError: Unknown section, or the merged response is invalid.
    """
    if section not in QUIZ_SECTIONS:
        raise ValidationError(
            f"Invalid value {section!r} for section: must be one of {list(QUIZ_SECTIONS)}",
            field="section",
            value=section,
        )
    if not isinstance(data, Mapping):
        raise ValidationError(
            f"Section data for {section} must be an object",
            field=section,
            value=data,
        )

    merged = response.to_json_dict()
    merged[section] = {**merged[section], **dict(data)}
    return parse_response(merged)
