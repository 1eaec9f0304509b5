"""Tests for warble.hooks — phase-keyed hook pipeline."""

import pytest

from warble.context import RequestContext
from warble.errors import HookError, HTTPError
from warble.hooks import HookPipeline, Phase
from warble.http.headers import Headers
from warble.http.request import Request


async def _receive() -> dict:
    return {"type": "http.request", "body": b"", "more_body": False}


def _context() -> RequestContext:
    request = Request(method="GET", path="/", headers=Headers(), _receive=_receive)
    return RequestContext(request=request)


class TestRegistration:
    def test_register_by_phase_name(self) -> None:
        pipeline = HookPipeline()
        entry = pipeline.register("onRequest", lambda ctx: None)
        assert entry.phase is Phase.ON_REQUEST
        assert entry.scope == "global"
        assert len(pipeline) == 1

    def test_unknown_phase_rejected(self) -> None:
        pipeline = HookPipeline()
        with pytest.raises(ValueError):
            pipeline.register("onSend", lambda ctx: None)

    def test_non_callable_rejected(self) -> None:
        pipeline = HookPipeline()
        with pytest.raises(TypeError, match="callable"):
            pipeline.register(Phase.ON_REQUEST, "log")  # type: ignore[arg-type]

    def test_frozen_pipeline_rejects_hooks(self) -> None:
        pipeline = HookPipeline()
        pipeline.freeze()
        with pytest.raises(RuntimeError, match="Cannot register hooks"):
            pipeline.register(Phase.ON_REQUEST, lambda ctx: None)

    def test_group_entry_scope(self) -> None:
        pipeline = HookPipeline()
        entry = pipeline.register(Phase.ON_RESPONSE, lambda ctx: None, group="/api/users")
        assert entry.scope == "group"
        assert entry.applies_to("/api/users")
        assert not entry.applies_to(None)
        assert not entry.applies_to("/api/posts")


class TestEntries:
    def test_global_hooks_apply_everywhere(self) -> None:
        pipeline = HookPipeline()
        pipeline.register(Phase.ON_REQUEST, lambda ctx: None)
        assert len(pipeline.entries(Phase.ON_REQUEST, None)) == 1
        assert len(pipeline.entries(Phase.ON_REQUEST, "/api/users")) == 1

    def test_group_hooks_only_apply_to_their_group(self) -> None:
        pipeline = HookPipeline()
        pipeline.register(Phase.ON_REQUEST, lambda ctx: None, group="/api/users")
        assert pipeline.entries(Phase.ON_REQUEST, None) == ()
        assert pipeline.entries(Phase.ON_REQUEST, "/api/posts") == ()
        assert len(pipeline.entries(Phase.ON_REQUEST, "/api/users")) == 1

    def test_phases_are_separate(self) -> None:
        pipeline = HookPipeline()
        pipeline.register(Phase.ON_REQUEST, lambda ctx: None)
        assert pipeline.entries(Phase.PRE_HANDLER) == ()


class TestRun:
    async def test_registration_order(self) -> None:
        calls: list[str] = []
        pipeline = HookPipeline()
        pipeline.register(Phase.ON_REQUEST, lambda ctx: calls.append("global-1"))
        pipeline.register(Phase.ON_REQUEST, lambda ctx: calls.append("group"), group="/g")
        pipeline.register(Phase.ON_REQUEST, lambda ctx: calls.append("global-2"))

        await pipeline.run(Phase.ON_REQUEST, "/g", _context())

        assert calls == ["global-1", "group", "global-2"]

    async def test_sync_and_async_hooks(self) -> None:
        calls: list[str] = []

        def sync_hook(ctx: RequestContext) -> None:
            calls.append("sync")

        async def async_hook(ctx: RequestContext) -> None:
            calls.append("async")

        pipeline = HookPipeline()
        pipeline.register(Phase.PRE_HANDLER, async_hook)
        pipeline.register(Phase.PRE_HANDLER, sync_hook)

        await pipeline.run(Phase.PRE_HANDLER, None, _context())

        assert calls == ["async", "sync"]

    async def test_extra_hooks_run_last(self) -> None:
        calls: list[str] = []
        pipeline = HookPipeline()
        pipeline.register(Phase.PRE_HANDLER, lambda ctx: calls.append("pipeline"))

        await pipeline.run(
            Phase.PRE_HANDLER, None, _context(), extra=[lambda ctx: calls.append("route")]
        )

        assert calls == ["pipeline", "route"]

    async def test_hooks_share_the_context(self) -> None:
        pipeline = HookPipeline()

        def first(ctx: RequestContext) -> None:
            ctx.body = {"seen": 1}

        def second(ctx: RequestContext) -> None:
            ctx.body["seen"] += 1

        pipeline.register(Phase.PRE_HANDLER, first)
        pipeline.register(Phase.PRE_HANDLER, second)
        context = _context()

        await pipeline.run(Phase.PRE_HANDLER, None, context)

        assert context.body == {"seen": 2}

    async def test_failure_wraps_in_hook_error_and_stops(self) -> None:
        calls: list[str] = []

        def broken(ctx: RequestContext) -> None:
            raise KeyError("boom")

        pipeline = HookPipeline()
        pipeline.register(Phase.ON_REQUEST, broken)
        pipeline.register(Phase.ON_REQUEST, lambda ctx: calls.append("after"))

        with pytest.raises(HookError) as exc_info:
            await pipeline.run(Phase.ON_REQUEST, None, _context())

        assert exc_info.value.phase == "onRequest"
        assert "broken" in exc_info.value.hook
        assert isinstance(exc_info.value.__cause__, KeyError)
        assert calls == []

    async def test_http_error_passes_through(self) -> None:
        def deny(ctx: RequestContext) -> None:
            raise HTTPError(status=401, detail="Unauthorized")

        pipeline = HookPipeline()
        pipeline.register(Phase.ON_REQUEST, deny)

        with pytest.raises(HTTPError) as exc_info:
            await pipeline.run(Phase.ON_REQUEST, None, _context())

        assert exc_info.value.status == 401
        assert not isinstance(exc_info.value, HookError)
