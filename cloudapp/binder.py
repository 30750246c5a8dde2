"""Binding of untyped request data onto request shapes."""

from __future__ import annotations

import enum
import json
import types
from collections.abc import Iterable, Mapping
from datetime import date, datetime, time
from decimal import Decimal
from typing import Annotated, Any, Literal, TypeVar, Union, get_args, get_origin

from pydantic import BaseModel, ValidationError
from pydantic.fields import FieldInfo

from cloudapp.exceptions import BindingError

ShapeT = TypeVar("ShapeT", bound=BaseModel)

_MISSING = object()


def normalize_key(key: str) -> str:
    """Case- and separator-insensitive form: ``customer_name`` == ``CustomerName``."""
    return key.replace("_", "").replace("-", "").lower()


def collect_values(
    route_values: Mapping[str, Any] | None,
    query_values: Mapping[str, Any] | Iterable[tuple[str, Any]] | None,
) -> dict[str, str]:
    """Merge route captures and query parameters into one case-insensitive map.

    Keys are normalized with :func:`normalize_key`. Route values win on
    collision; a repeated query key keeps its first value.
    """
    values: dict[str, str] = {}
    for key, value in (route_values or {}).items():
        if value is not None:
            values[normalize_key(key)] = str(value)
    pairs = query_values.items() if isinstance(query_values, Mapping) else (query_values or ())
    for key, value in pairs:
        if value is None:
            continue
        values.setdefault(normalize_key(key), str(value))
    return values


def bind_values(shape: type[ShapeT], values: Mapping[str, Any]) -> ShapeT:
    """Bind a flat string map (route + query) onto ``shape``.

    Matched values are coerced by pydantic; unmatched fields keep their
    default, and required fields without a value get the zero value of their
    type.
    """
    lookup = {normalize_key(key): value for key, value in values.items()}
    data: dict[str, Any] = {}
    for name, info in shape.model_fields.items():
        raw = _find(lookup, name, info)
        if raw is not _MISSING:
            data[_input_key(name, info)] = raw
        elif info.is_required():
            data[_input_key(name, info)] = zero_value(info.annotation)
    return _validate(shape, data)


def bind_body(shape: type[ShapeT], body: bytes | str | None) -> ShapeT:
    """Deserialize a JSON body onto ``shape``; an empty body binds defaults."""
    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise BindingError(f"Request body is not valid UTF-8: {exc}") from exc
    if body is None or not body.strip():
        return bind_values(shape, {})
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as exc:
        raise BindingError(f"Invalid JSON body: {exc}") from exc
    if not isinstance(payload, dict):
        raise BindingError(f"Request body must be a JSON object, got {type(payload).__name__}.")

    lookup = {normalize_key(str(key)): value for key, value in payload.items()}
    data: dict[str, Any] = {}
    for name, info in shape.model_fields.items():
        raw = _find(lookup, name, info)
        if raw is not _MISSING:
            data[_input_key(name, info)] = raw
        elif info.is_required():
            data[_input_key(name, info)] = zero_value(info.annotation)
    return _validate(shape, data)


def _find(lookup: Mapping[str, Any], name: str, info: FieldInfo) -> Any:
    for candidate in (name, info.alias):
        if candidate:
            value = lookup.get(normalize_key(candidate), _MISSING)
            if value is not _MISSING:
                return value
    return _MISSING


def _input_key(name: str, info: FieldInfo) -> str:
    return info.alias or name


def _validate(shape: type[ShapeT], data: dict[str, Any]) -> ShapeT:
    try:
        return shape.model_validate(data)
    except ValidationError as exc:
        raise BindingError(format_validation_error(exc)) from exc


def format_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "body"
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts) or str(exc)


def zero_value(annotation: Any) -> Any:
    """The zero value of a field type, used when a required field is not supplied."""
    origin = get_origin(annotation)
    if origin is Annotated:
        return zero_value(get_args(annotation)[0])
    if origin is Union or origin is types.UnionType:
        args = get_args(annotation)
        if type(None) in args:
            return None
        return zero_value(args[0])
    if origin is Literal:
        return get_args(annotation)[0]
    if origin in (list, set, frozenset, tuple, dict):
        return origin()
    if origin is not None:
        return None
    if annotation is bool:
        return False
    if annotation is int:
        return 0
    if annotation is float:
        return 0.0
    if annotation is Decimal:
        return Decimal(0)
    if annotation is str:
        return ""
    if annotation in (list, set, frozenset, tuple, dict):
        return annotation()
    if annotation is datetime:
        return datetime.min
    if annotation is date:
        return date.min
    if annotation is time:
        return time.min
    if isinstance(annotation, type) and issubclass(annotation, enum.Enum):
        return next(iter(annotation))
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return bind_values(annotation, {})
    return None
