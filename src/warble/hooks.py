"""Request-lifecycle hook pipeline.

Hooks are callbacks registered against a phase:

- ``onRequest``  — after routing, before the body is read or validated
- ``preHandler`` — after validation, before the handler
- ``onResponse`` — after the response is final, before it is sent

A hook is global, or scoped to a route group (identified by the group's
prefix). For a request whose route belongs to group ``G`` the pipeline
runs, in registration order, every global hook and every hook scoped to
``G``. Requests on ungrouped routes see global hooks only.

Each hook receives the ``RequestContext`` and may be ``def`` or
``async def``; hooks run one at a time and each is awaited before the
next starts. If a hook raises, the remaining hooks of that phase are
skipped and the failure is raised as ``HookError`` (an ``HTTPError``
raised on purpose by a hook is passed through unchanged, so a hook can
still answer with e.g. a 401).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from warble._internal.invoke import callable_name, invoke
from warble._internal.types import Hook
from warble.errors import HookError, HTTPError

if TYPE_CHECKING:
    from warble.context import RequestContext


class Phase(StrEnum):
    """Lifecycle phases, in execution order."""

    ON_REQUEST = "onRequest"
    PRE_HANDLER = "preHandler"
    ON_RESPONSE = "onResponse"


@dataclass(frozen=True, slots=True)
class HookEntry:
    """A registered hook."""

    phase: Phase
    callback: Hook
    group: str | None = None

    @property
    def scope(self) -> str:
        return "global" if self.group is None else "group"

    @property
    def name(self) -> str:
        return callable_name(self.callback)

    def applies_to(self, group: str | None) -> bool:
        return self.group is None or self.group == group


class HookPipeline:
    """Ordered, phase-keyed hook registry.

    Mutable during setup, read-only once frozen.

    Usage::

        pipeline = HookPipeline()
        pipeline.register(Phase.ON_REQUEST, log_request)
        pipeline.register(Phase.ON_REQUEST, audit, group="/api/users")
        pipeline.freeze()
        await pipeline.run(Phase.ON_REQUEST, "/api/users", context)
    """

    __slots__ = ("_entries", "_frozen")

    def __init__(self) -> None:
        self._entries: dict[Phase, list[HookEntry]] = {phase: [] for phase in Phase}
        self._frozen = False

    def register(self, phase: Phase | str, callback: Hook, *, group: str | None = None) -> HookEntry:
        """Append *callback* to *phase*. Global unless *group* is given."""
        if self._frozen:
            msg = "Cannot register hooks after the app has started."
            raise RuntimeError(msg)
        if not callable(callback):
            msg = f"Hook must be callable, got {type(callback).__name__}"
            raise TypeError(msg)
        entry = HookEntry(Phase(phase), callback, group)
        self._entries[entry.phase].append(entry)
        return entry

    def entries(self, phase: Phase | str, group: str | None = None) -> tuple[HookEntry, ...]:
        """Hooks that run for *phase* on a route in *group*, in order."""
        return tuple(e for e in self._entries[Phase(phase)] if e.applies_to(group))

    def freeze(self) -> None:
        self._frozen = True

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._entries.values())

    async def run(
        self,
        phase: Phase,
        group: str | None,
        context: RequestContext,
        *,
        extra: Iterable[Hook] = (),
    ) -> None:
        """Run the hooks for *phase*, then the *extra* (route-level) hooks."""
        callbacks = [entry.callback for entry in self.entries(phase, group)]
        callbacks.extend(extra)
        for callback in callbacks:
            try:
                await invoke(callback, context)
            except HTTPError:
                raise
            except Exception as exc:
                raise HookError(phase.value, callable_name(callback)) from exc
