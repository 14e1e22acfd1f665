from __future__ import annotations
from typing import Any

class ArgumentError(ValueError):
    pass


def object_schema(properties: dict[str, Any], required: list[str] | None = None) -> dict[str, Any]:
    return {"type": "object", "properties": properties, "required": list(required or [])}


def string_prop(description: str) -> dict[str, Any]:
    return {"type": "string", "description": description}


def int_prop(description: str) -> dict[str, Any]:
    return {"type": "integer", "description": description}


def bool_prop(description: str) -> dict[str, Any]:
    return {"type": "boolean", "description": description}


def enum_prop(description: str, values: list[str]) -> dict[str, Any]:
    return {"type": "string", "description": description, "enum": list(values)}


def _coerce(name: str, prop: dict[str, Any], value: Any) -> Any:
    kind = prop.get("type")
    if kind == "string":
        if not isinstance(value, str):
            raise ArgumentError(f"parameter '{name}' must be a string")
        allowed = prop.get("enum")
        if allowed and value not in allowed:
            raise ArgumentError(f"parameter '{name}' must be one of: {', '.join(allowed)}")
        return value
    if kind == "integer":
        # bool is an int subclass; JSON true/false is not a number here
        if isinstance(value, bool):
            raise ArgumentError(f"parameter '{name}' must be an integer")
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        raise ArgumentError(f"parameter '{name}' must be an integer")
    if kind == "boolean":
        if not isinstance(value, bool):
            raise ArgumentError(f"parameter '{name}' must be a boolean")
        return value
    return value


def validate_arguments(schema: dict[str, Any], args: Any) -> dict[str, Any]:
    """Check call arguments against a tool's parameter schema.

    Returns a cleaned copy: JSON nulls dropped, integral floats turned into ints.
    Parameters the schema does not declare are passed through untouched.
    Raises ArgumentError on the first violation.
    """
    if args is None:
        args = {}
    if not isinstance(args, dict):
        raise ArgumentError("arguments must be an object")
    props: dict[str, Any] = schema.get("properties", {}) or {}
    out: dict[str, Any] = {}
    for k, v in args.items():
        if v is None:
            continue
        prop = props.get(k)
        out[k] = _coerce(k, prop, v) if isinstance(prop, dict) else v
    for r in schema.get("required", []) or []:
        if r not in out:
            raise ArgumentError(f"missing required parameter '{r}'")
    return out
