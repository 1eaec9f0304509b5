"""Structural schemas for JSON request and response bodies.

A ``SchemaDef`` pairs an id with a shape written in a small subset of
JSON Schema::

    SchemaDef("userSchema", {
        "type": "object",
        "required": ["name"],
        "properties": {
            "name": {"type": "string"},
            "age": {"type": "number"},
            "test": {"type": "boolean", "nullable": True},
        },
    })

Supported keywords: ``type`` (``string``, ``number``, ``integer``,
``boolean``, ``object``, ``array``, ``null`` or a list of them),
``properties``, ``required``, ``nullable``, ``items``,
``additionalProperties`` (boolean) and ``enum``. ``$id``, ``$schema``,
``title``, ``description`` and ``default`` are accepted as annotations.
Any other keyword is rejected when the schema is built, so a typo never
silently disables a constraint.

Nullability:

- a ``nullable`` field may be absent or ``null``
- a field that is neither ``required`` nor ``nullable`` may be absent,
  but when present it must match its type
- a ``required`` field must be present and, unless ``nullable``, non-null

Validation never coerces: ``validate()`` returns the value it was given.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from warble.errors import SchemaError, ValidationError
from warble.validation.result import Violation

_ANNOTATIONS = frozenset({"$id", "$schema", "title", "description", "default"})
_KEYWORDS = frozenset(
    {"type", "properties", "required", "nullable", "items", "additionalProperties", "enum"}
)


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _is_integer(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, int) or (isinstance(value, float) and value.is_integer())


_TYPE_CHECKS: dict[str, Callable[[Any], bool]] = {
    "string": lambda v: isinstance(v, str),
    "number": _is_number,
    "integer": _is_integer,
    "boolean": lambda v: isinstance(v, bool),
    "object": lambda v: isinstance(v, dict),
    "array": lambda v: isinstance(v, list),
    "null": lambda v: v is None,
}


# ---------------------------------------------------------------------------
# Shape checking (registration time)
# ---------------------------------------------------------------------------


def check_shape(shape: Any, where: str) -> None:
    """Raise ``SchemaError`` if *shape* is not a well-formed schema.

    *where* names the location for error messages, e.g.
    ``"userSchema/properties/age"``.
    """
    if not isinstance(shape, Mapping):
        msg = f"{where}: schema must be a mapping, got {type(shape).__name__}"
        raise SchemaError(msg)

    unknown = set(shape) - _KEYWORDS - _ANNOTATIONS
    if unknown:
        msg = f"{where}: unsupported schema keyword(s): {', '.join(sorted(unknown))}"
        raise SchemaError(msg)

    if "type" in shape:
        declared = shape["type"]
        names = [declared] if isinstance(declared, str) else declared
        if not isinstance(names, Sequence) or isinstance(names, str) or not names:
            msg = f"{where}: 'type' must be a type name or a non-empty list of names"
            raise SchemaError(msg)
        for name in names:
            if name not in _TYPE_CHECKS:
                msg = f"{where}: unknown type {name!r}"
                raise SchemaError(msg)

    for flag in ("nullable", "additionalProperties"):
        if flag in shape and not isinstance(shape[flag], bool):
            msg = f"{where}: {flag!r} must be a boolean"
            raise SchemaError(msg)

    if "required" in shape:
        required = shape["required"]
        if isinstance(required, str) or not isinstance(required, Sequence):
            msg = f"{where}: 'required' must be a list of field names"
            raise SchemaError(msg)
        if not all(isinstance(name, str) for name in required):
            msg = f"{where}: 'required' entries must be strings"
            raise SchemaError(msg)

    if "enum" in shape:
        enum = shape["enum"]
        if isinstance(enum, str) or not isinstance(enum, Sequence) or not enum:
            msg = f"{where}: 'enum' must be a non-empty list"
            raise SchemaError(msg)

    if "properties" in shape:
        properties = shape["properties"]
        if not isinstance(properties, Mapping):
            msg = f"{where}: 'properties' must be a mapping"
            raise SchemaError(msg)
        for name, child in properties.items():
            check_shape(child, f"{where}/properties/{name}")

    if "items" in shape:
        check_shape(shape["items"], f"{where}/items")


def _freeze(value: Any) -> Any:
    """Deep-copy a shape into read-only containers."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, list | tuple):
        return tuple(_freeze(v) for v in value)
    return value


# ---------------------------------------------------------------------------
# Validation (request time)
# ---------------------------------------------------------------------------


def _escape(name: str) -> str:
    return name.replace("~", "~0").replace("/", "~1")


def _types(shape: Mapping[str, Any]) -> tuple[str, ...]:
    declared = shape.get("type")
    if declared is None:
        return ()
    if isinstance(declared, str):
        return (declared,)
    return tuple(declared)


def _allows_null(shape: Mapping[str, Any]) -> bool:
    return bool(shape.get("nullable")) or "null" in _types(shape)


def collect_violations(
    shape: Mapping[str, Any],
    value: Any,
    path: str = "",
) -> list[Violation]:
    """Return every rule *value* breaks, in document order."""
    out: list[Violation] = []
    _validate(shape, value, path, out)
    return out


def _validate(shape: Mapping[str, Any], value: Any, path: str, out: list[Violation]) -> None:
    types = _types(shape)

    if value is None:
        if types and not _allows_null(shape):
            out.append(Violation(path, "type", "must not be null"))
        return

    if types and not any(_TYPE_CHECKS[t](value) for t in types):
        out.append(Violation(path, "type", f"must be {' or '.join(types)}"))
        return

    if "enum" in shape and value not in shape["enum"]:
        allowed = ", ".join(repr(v) for v in shape["enum"])
        out.append(Violation(path, "enum", f"must be one of {allowed}"))
        return

    if isinstance(value, dict):
        _validate_object(shape, value, path, out)
    elif isinstance(value, list) and "items" in shape:
        for index, item in enumerate(value):
            _validate(shape["items"], item, f"{path}/{index}", out)


def _validate_object(
    shape: Mapping[str, Any],
    value: dict[str, Any],
    path: str,
    out: list[Violation],
) -> None:
    properties: Mapping[str, Any] = shape.get("properties", {})
    required = shape.get("required", ())
    reported: set[str] = set()

    for name in required:
        child = properties.get(name, {})
        if name not in value:
            out.append(Violation(f"{path}/{_escape(name)}", "required", "is required"))
            reported.add(name)
        elif value[name] is None and not _allows_null(child):
            out.append(Violation(f"{path}/{_escape(name)}", "required", "must not be null"))
            reported.add(name)

    allow_extra = shape.get("additionalProperties", True)
    for name, item in value.items():
        if name in reported:
            continue
        child_path = f"{path}/{_escape(name)}"
        if name in properties:
            _validate(properties[name], item, child_path, out)
        elif not allow_extra:
            out.append(Violation(child_path, "additionalProperties", "is not allowed"))


# ---------------------------------------------------------------------------
# SchemaDef
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, eq=False)
class SchemaDef:
    """A named, immutable schema.

    The shape is checked and deep-frozen on construction, so a malformed
    schema fails when the module defining it is imported rather than on
    the first request that uses it.
    """

    id: str
    shape: Mapping[str, Any]

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id:
            msg = f"Schema id must be a non-empty string, got {self.id!r}"
            raise SchemaError(msg)
        check_shape(self.shape, self.id)
        object.__setattr__(self, "shape", _freeze(self.shape))

    @classmethod
    def from_mapping(cls, shape: Mapping[str, Any], *, id: str | None = None) -> SchemaDef:  # noqa: A002
        """Build a schema whose id comes from *id* or the shape's ``$id``."""
        schema_id = id or shape.get("$id")
        if not schema_id:
            msg = "Schema has no id: pass id= or set '$id' in the shape"
            raise SchemaError(msg)
        return cls(schema_id, shape)

    def violations(self, value: Any) -> list[Violation]:
        """Return the rules *value* breaks (empty when valid)."""
        return collect_violations(self.shape, value)

    def validate(self, value: Any) -> Any:
        """Return *value* unchanged, or raise ``ValidationError``."""
        found = self.violations(value)
        if found:
            raise ValidationError(found)
        return value

    def __repr__(self) -> str:
        return f"SchemaDef({self.id!r})"
