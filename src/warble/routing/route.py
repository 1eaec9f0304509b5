"""Route frozen dataclass."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from warble.validation.schema import SchemaDef


@dataclass(frozen=True, slots=True, eq=False)
class Route:
    """A frozen route definition.

    Created during app setup, compiled into the router at freeze time.
    Schema references are already resolved to ``SchemaDef`` objects.

    ``group`` is the prefix of the route group the route was declared in
    (``None`` for top-level routes); it selects the scoped hooks that run
    for the route. ``pre_handlers`` run after every pipeline
    ``preHandler`` hook.
    """

    path: str
    handler: Callable[..., Any]
    methods: frozenset[str]
    name: str | None = None
    group: str | None = None
    body_schema: SchemaDef | None = None
    response_schemas: Mapping[int, SchemaDef] = field(default_factory=dict)
    pre_handlers: tuple[Callable[..., Any], ...] = ()
