"""Schema registry — named schemas shared by routes."""

from collections.abc import Iterator
from typing import Any

from warble.errors import DuplicateSchema, SchemaError
from warble.validation.schema import SchemaDef


class SchemaRegistry:
    """Holds ``SchemaDef`` objects by id.

    Populated during setup and read-only once the app is frozen.

    Usage::

        registry = SchemaRegistry()
        registry.register(SchemaDef("userSchema", {...}))
        registry.validate("userSchema", {"name": "Ada"})
    """

    __slots__ = ("_frozen", "_schemas")

    def __init__(self) -> None:
        self._schemas: dict[str, SchemaDef] = {}
        self._frozen = False

    def register(self, schema: SchemaDef) -> SchemaDef:
        """Add *schema*. Raises ``DuplicateSchema`` if its id is taken."""
        if self._frozen:
            msg = "Cannot register schemas after the app has started."
            raise RuntimeError(msg)
        if schema.id in self._schemas:
            raise DuplicateSchema(schema.id)
        self._schemas[schema.id] = schema
        return schema

    def get(self, schema_id: str) -> SchemaDef:
        """Return the schema registered under *schema_id*.

        Raises ``SchemaError`` for an unknown id.
        """
        try:
            return self._schemas[schema_id]
        except KeyError:
            known = ", ".join(sorted(self._schemas)) or "none"
            msg = f"Unknown schema {schema_id!r} (registered: {known})"
            raise SchemaError(msg) from None

    def resolve(self, ref: SchemaDef | str | None) -> SchemaDef | None:
        """Turn a route's schema reference into a ``SchemaDef``."""
        if ref is None or isinstance(ref, SchemaDef):
            return ref
        return self.get(ref)

    def validate(self, schema_id: str, value: Any) -> Any:
        """Validate *value* against a registered schema and return it unchanged."""
        return self.get(schema_id).validate(value)

    def freeze(self) -> None:
        self._frozen = True

    def __contains__(self, schema_id: object) -> bool:
        return schema_id in self._schemas

    def __iter__(self) -> Iterator[SchemaDef]:
        return iter(self._schemas.values())

    def __len__(self) -> int:
        return len(self._schemas)
