"""Schema validation for JSON bodies.

Usage::

    from warble.validation import SchemaDef, SchemaRegistry

    registry = SchemaRegistry()
    registry.register(SchemaDef("userSchema", {
        "type": "object",
        "required": ["name"],
        "properties": {"name": {"type": "string"}},
    }))

    registry.validate("userSchema", {"name": "Ada"})   # returns the value
    registry.validate("userSchema", {})                # raises ValidationError
"""

from warble.validation.registry import SchemaRegistry
from warble.validation.result import Violation
from warble.validation.schema import SchemaDef, check_shape, collect_violations

__all__ = [
    "SchemaDef",
    "SchemaRegistry",
    "Violation",
    "check_shape",
    "collect_violations",
]
