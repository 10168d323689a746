"""Fail-soft parsing and repair of model output against a JSON schema.

:func:`validate` never raises: text that does not parse, or a payload that
cannot be repaired into the schema, degrades to the schema defaults.
"""

from __future__ import annotations

import copy
from typing import Any

import jsonschema

from utils.errors import ProjectionValidationError
from utils.json_safety import parse_json_loose
from utils.logging import logger

# Mapping of descriptive terms to normalized numeric scores.
CONFIDENCE_MAP = {
    "high": 0.9,
    "moderate": 0.6,
    "medium": 0.6,
    "low": 0.3,
}

_INVALID = object()


def normalize_confidence(value: Any) -> float | None:
    """Return a confidence in ``[0, 1]`` or ``None`` when *value* is unusable.

    Descriptive strings are mapped through :data:`CONFIDENCE_MAP` (unknown
    words score 0.5), strings ending in ``%`` are scaled down, and every
    number is clamped.
    """
    if value is None or isinstance(value, bool):
        return None
    percent = False
    if isinstance(value, str):
        key = value.strip().lower()
        percent = key.endswith("%")
        try:
            value = float(key.rstrip("%"))
        except ValueError:
            for phrase, score in CONFIDENCE_MAP.items():
                if phrase in key:
                    return score
            return 0.5 if key else None
    if not isinstance(value, (int, float)):
        return None
    value = float(value)
    if value != value:  # NaN
        return None
    if percent:
        value = value / 100.0
    return min(1.0, max(0.0, value))


def _empty(schema: dict[str, Any]) -> Any:
    t = schema.get("type")
    if isinstance(t, list):
        t = t[0] if t else None
    if t == "object":
        return make_default(schema)
    if t == "array":
        return []
    if t in ("number", "integer"):
        return 0
    if t == "boolean":
        return False
    return ""


def make_default(schema: dict[str, Any]) -> Any:
    """Return the all-defaults payload for *schema*."""
    if not isinstance(schema, dict):
        return {}
    if "default" in schema:
        return copy.deepcopy(schema["default"])
    if schema.get("type") not in (None, "object"):
        return _empty(schema)
    props = schema.get("properties") or {}
    required = set(schema.get("required") or [])
    out: dict[str, Any] = {}
    for key, prop in props.items():
        if "default" in prop:
            out[key] = copy.deepcopy(prop["default"])
        elif key in required:
            out[key] = _empty(prop)
    return out


def _parse(raw: Any) -> Any:
    if isinstance(raw, (dict, list)):
        return copy.deepcopy(raw)
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if not isinstance(raw, str) or not raw.strip():
        raise ProjectionValidationError("empty or non-text model output")
    try:
        return parse_json_loose(raw)
    except ValueError as e:
        raise ProjectionValidationError(str(e)) from e


def _wrap_list(data: Any, schema: dict[str, Any]) -> Any:
    if schema.get("type") != "object" or not isinstance(data, list):
        return data
    for key, prop in (schema.get("properties") or {}).items():
        if prop.get("type") == "array":
            return {key: data}
    raise ProjectionValidationError("list output for an object schema")


def _repair_scalar(value: Any, schema: dict[str, Any]) -> Any:
    t = schema.get("type")
    if t == "string":
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return _INVALID
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, list) and value and all(isinstance(x, str) for x in value):
            return "; ".join(value)
        return _INVALID
    if t in ("number", "integer"):
        if isinstance(value, bool):
            return _INVALID
        if isinstance(value, str):
            try:
                value = float(value.strip())
            except ValueError:
                return _INVALID
        if not isinstance(value, (int, float)):
            return _INVALID
        if t == "integer":
            if float(value) != int(value):
                return _INVALID
            value = int(value)
        if "minimum" in schema:
            value = max(schema["minimum"], value)
        if "maximum" in schema:
            value = min(schema["maximum"], value)
        return value
    if t == "boolean":
        return value if isinstance(value, bool) else _INVALID
    return value


def _repair_array(value: Any, schema: dict[str, Any]) -> Any:
    items = schema.get("items") or {}
    if isinstance(value, str) and items.get("type") == "string":
        value = [value] if value.strip() else []
    if isinstance(value, dict) and items.get("type") == "object":
        value = [value]
    if not isinstance(value, list):
        return _INVALID
    out = []
    for item in value:
        fixed = repair(item, items, strict=True)
        if fixed is not _INVALID:
            out.append(fixed)
    if len(out) < schema.get("minItems", 0):
        return _INVALID
    return out


def _repair_object(value: Any, schema: dict[str, Any], strict: bool) -> Any:
    if not isinstance(value, dict):
        return _INVALID
    props = schema.get("properties") or {}
    required = set(schema.get("required") or [])
    out = dict(value)
    for key, prop in props.items():
        if key == "confidence" and key in out:
            conf = normalize_confidence(out[key])
            if conf is None:
                del out[key]
            else:
                out[key] = conf
            continue
        fixed = repair(out[key], prop, strict=True) if key in out else _INVALID
        if fixed is not _INVALID:
            out[key] = fixed
        elif "default" in prop:
            out[key] = copy.deepcopy(prop["default"])
        elif key in required:
            if strict:
                return _INVALID
            out[key] = _empty(prop)
        else:
            out.pop(key, None)
    extra = schema.get("additionalProperties")
    if isinstance(extra, dict):
        for key in [k for k in out if k not in props]:
            fixed = repair(out[key], extra, strict=True)
            if fixed is _INVALID:
                del out[key]
            else:
                out[key] = fixed
    return out


def repair(value: Any, schema: dict[str, Any], *, strict: bool = False) -> Any:
    """Coerce *value* towards *schema*.

    Returns a sentinel for values that cannot be repaired when *strict* is
    set (used for nested values, which the caller then drops or defaults).
    """
    if not isinstance(schema, dict) or not schema:
        return value
    t = schema.get("type")
    if t == "object":
        return _repair_object(value, schema, strict)
    if t == "array":
        return _repair_array(value, schema)
    return _repair_scalar(value, schema)


def _ensure_summary(data: Any, schema: dict[str, Any]) -> Any:
    prop = (schema.get("properties") or {}).get("summary")
    if not isinstance(data, dict) or not prop or "default" not in prop:
        return data
    summary = data.get("summary")
    if not isinstance(summary, str) or not summary.strip():
        data["summary"] = prop["default"]
    return data


def validate(schema: dict[str, Any], raw: Any) -> Any:
    """Parse untrusted *raw* model output into a value matching *schema*.

    Missing or invalid fields take the schema defaults; unknown keys are kept.
    Never raises.
    """
    try:
        data = _wrap_list(_parse(raw), schema)
        fixed = repair(data, schema, strict=False)
        if fixed is _INVALID:
            raise ProjectionValidationError("payload does not match the schema root")
        fixed = _ensure_summary(fixed, schema)
        error = next(jsonschema.Draft202012Validator(schema).iter_errors(fixed), None)
        if error is not None:
            raise ProjectionValidationError(error.message)
        return fixed
    except ProjectionValidationError as e:
        logger.debug("schema_validation_failed: %s", e)
    except Exception as e:  # pragma: no cover - unexpected shapes
        logger.warning("schema_validation_crashed: %s", e)
    return _ensure_summary(make_default(schema), schema)


__all__ = ["CONFIDENCE_MAP", "normalize_confidence", "make_default", "repair", "validate"]
