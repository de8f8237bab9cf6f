"""
OpenAPI component schemas for the console's wire types.

Record schemas are derived from the dataclasses in tradedesk.models so the
document cannot drift from what to_dict() emits; only the request/response
envelopes below are spelled out by hand.
"""
from __future__ import annotations

import dataclasses
import typing
from datetime import datetime
from typing import Any, Literal, get_args, get_origin

from tradedesk import models

_SCALARS: dict[Any, dict[str, str]] = {
    str: {"type": "string"},
    bool: {"type": "boolean"},
    int: {"type": "integer"},
    float: {"type": "number"},
    datetime: {"type": "string", "format": "date-time"},
}


def _type_to_schema(hint: Any, refs: dict[type, str]) -> dict[str, Any]:
    if hint in _SCALARS:
        return dict(_SCALARS[hint])
    if dataclasses.is_dataclass(hint) and hint in refs:
        return {"$ref": f"#/components/schemas/{refs[hint]}"}

    origin, args = get_origin(hint), get_args(hint)
    if origin is Literal:
        return {"type": "string", "enum": [a for a in args if isinstance(a, str)]}
    if origin is list:
        return {"type": "array", "items": _type_to_schema(args[0] if args else Any, refs)}
    if origin is dict:
        return {"type": "object", "additionalProperties": True}
    if type(None) in args:
        # int | None and friends
        present = [a for a in args if a is not type(None)]
        schema = _type_to_schema(present[0], refs)
        schema["nullable"] = True
        return schema
    return {"type": "object"}


def _has_default(f: dataclasses.Field) -> bool:
    return f.default is not dataclasses.MISSING or f.default_factory is not dataclasses.MISSING


def _dataclass_to_schema(cls: type, refs: dict[type, str],
                         skip: tuple[str, ...] = ()) -> dict[str, Any]:
    hints = typing.get_type_hints(cls)
    fields = [f for f in dataclasses.fields(cls) if f.name not in skip]
    schema: dict[str, Any] = {
        "type": "object",
        "properties": {f.name: _type_to_schema(hints[f.name], refs) for f in fields},
    }
    required = [f.name for f in fields if not _has_default(f)]
    if required:
        schema["required"] = required
    summary = (cls.__doc__ or "").strip().splitlines()
    # dataclasses synthesize "Name(field, ...)" when no docstring is written
    if summary and not summary[0].startswith(f"{cls.__name__}("):
        schema["description"] = summary[0]
    return schema


# Component name per model; the API calls ConsoleSettings just "Settings".
MODEL_ORDER: list[tuple[type, str]] = [
    (models.Toast, "Toast"),
    (models.ConsoleSettings, "Settings"),
    (models.Customer, "Customer"),
    (models.Product, "Product"),
    (models.Order, "Order"),
]
REF_MAP = dict(MODEL_ORDER)


def notification_schema() -> dict[str, Any]:
    """Notification as serialized by Notification.to_dict() plus the dropdown's time_ago."""
    s = _dataclass_to_schema(models.Notification, REF_MAP, skip=("action",))
    s["properties"]["has_action"] = {"type": "boolean"}
    s["properties"]["action"] = {
        "type": "object",
        "nullable": True,
        "properties": {"label": {"type": "string"}},
    }
    s["properties"]["time_ago"] = {"type": "string", "example": "2 hours ago"}
    return s


def notification_create_schema() -> dict[str, Any]:
    """POST /notifications request body."""
    return {
        "type": "object",
        "required": ["title", "message", "kind"],
        "properties": {
            "title": {"type": "string"},
            "message": {"type": "string"},
            "kind": {"type": "string", "enum": list(models.KINDS)},
            "auto_close": {"type": "boolean", "default": True},
            "duration": {"type": "integer", "minimum": 1,
                         "description": f"Toast lifetime in ms (default {models.DEFAULT_TOAST_MS})"},
        },
    }


def notification_list_schema() -> dict[str, Any]:
    """GET /notifications response."""
    return {
        "type": "object",
        "properties": {
            "notifications": {"type": "array",
                              "items": {"$ref": "#/components/schemas/Notification"}},
            "unread_count": {"type": "integer"},
            "more": {"type": "integer", "description": "Entries left out by ?limit="},
        },
    }


def schemas_from_models() -> dict[str, dict[str, Any]]:
    """components/schemas for the whole API, keyed by component name."""
    out: dict[str, dict[str, Any]] = {
        name: _dataclass_to_schema(cls, REF_MAP) for cls, name in MODEL_ORDER
    }
    out["Notification"] = notification_schema()
    out["NotificationCreate"] = notification_create_schema()
    out["NotificationList"] = notification_list_schema()
    return out
