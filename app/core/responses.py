"""
Uniform success/error envelopes returned by every endpoint.

Success:    {"success": true,  "message": ..., "data": ...}
Error:      {"success": false, "message": ..., "error": {"name": ...}}
Validation: {"success": false, "message": "Validation failed",
             "error": {"name": "ValidationError", "errors": {<field>: FieldError}}}
"""
import re
from typing import Any, Dict, Iterable, Optional

from fastapi.encoders import jsonable_encoder

VALIDATION_FAILED = "Validation failed"

# FastAPI prefixes request validation locations with where the value came from
_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}

_TOO_SMALL_TYPES = {"string_too_short", "too_short", "greater_than_equal", "greater_than"}
_TOO_BIG_TYPES = {"string_too_long", "too_long", "less_than_equal", "less_than"}
_ENUM_TYPES = {"enum", "literal_error"}

_QUOTED = re.compile(r"'([^']*)'")


def api_response(message: str, data: Any) -> Dict[str, Any]:
    return {"success": True, "message": message, "data": data}


def create_generic_error(message: str, name: str = "Error") -> Dict[str, Any]:
    return {"success": False, "message": message, "error": {"name": name}}


def create_validation_error(
    message: str = VALIDATION_FAILED, errors: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    return {
        "success": False,
        "message": message,
        "error": {"name": "ValidationError", "errors": errors or {}},
    }


def create_field_error(
    field: str,
    message: str,
    kind: str,
    value: Any,
    properties: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Build a single ``{field: FieldError}`` mapping."""
    return {
        field: {
            "message": message,
            "name": "ValidatorError",
            "properties": {"message": message, "type": kind, **(properties or {})},
            "kind": kind,
            "path": field,
            "value": value,
        }
    }


def _error_path(loc: Iterable[Any]) -> str:
    parts = [str(part) for part in loc]
    if len(parts) > 1 and parts[0] in _LOCATION_PREFIXES:
        parts = parts[1:]
    return ".".join(parts)


def _error_kind(error_type: str) -> str:
    if error_type in _TOO_SMALL_TYPES:
        return "too_small"
    if error_type in _TOO_BIG_TYPES:
        return "too_big"
    if error_type in _ENUM_TYPES:
        return "invalid_enum_value"
    return error_type


def _is_textual(error_type: str) -> bool:
    return error_type.startswith("string_")


def _error_properties(error: Dict[str, Any], kind: str) -> Dict[str, Any]:
    error_type = error["type"]
    ctx = error.get("ctx") or {}
    properties: Dict[str, Any] = {"message": error["msg"], "type": kind}

    if kind == "too_small":
        bound = next((ctx[k] for k in ("min_length", "ge", "gt") if k in ctx), None)
        if bound is not None:
            properties["minLength" if _is_textual(error_type) else "min"] = bound
    elif kind == "too_big":
        bound = next((ctx[k] for k in ("max_length", "le", "lt") if k in ctx), None)
        if bound is not None:
            properties["maxLength" if _is_textual(error_type) else "max"] = bound
    elif kind == "invalid_enum_value":
        properties["enum"] = _QUOTED.findall(str(ctx.get("expected", "")))

    return properties


def convert_validation_errors(errors: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """Translate pydantic's structured error list into the validation envelope.

    Each issue becomes one FieldError keyed by its dotted path. When several
    issues share a path the last one wins.
    """
    field_errors: Dict[str, Any] = {}

    for error in errors:
        path = _error_path(error.get("loc", ()))
        kind = _error_kind(error["type"])
        value = None if error["type"] == "missing" else error.get("input")

        field_errors[path] = {
            "message": error["msg"],
            "name": "ValidatorError",
            "properties": _error_properties(error, kind),
            "kind": kind,
            "path": path,
            "value": jsonable_encoder(value),
        }

    return create_validation_error(VALIDATION_FAILED, field_errors)
