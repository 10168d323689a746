import asyncio

import pytest

from conftest import FakeModel

from core.roles import ArtifactKind, ExpertRole
from core.run_context import RunContext
from core.schemas import Artifact, Idea, RunStatus
from utils.errors import TransientCallError


def _ctx(settings, on_update=None, model=None):
    return RunContext(Idea(text="Budget app"), model or FakeModel(), settings=settings, on_update=on_update)


def _make(aid):
    return Artifact(id=aid, role=ExpertRole.UX, title="t", summary="s", content="s", type=ArtifactKind.UX_FLOW)


def test_status_cannot_move_backwards(settings):
    async def scenario():
        ctx = _ctx(settings)
        await ctx.set_status(RunStatus.DESIGNING, "x")
        with pytest.raises(ValueError):
            await ctx.set_status(RunStatus.ANALYZING, "y")
        await ctx.set_status(RunStatus.ERROR, "z")
        with pytest.raises(ValueError):
            await ctx.set_status(RunStatus.READY, "done")

    asyncio.run(scenario())


def test_async_callback_and_failing_callback(settings):
    got = []

    async def async_cb(partial):
        got.append(partial)

    def broken_cb(partial):
        raise RuntimeError("ui went away")

    async def scenario():
        await _ctx(settings, async_cb).set_step("step one")
        ctx = _ctx(settings, broken_cb)
        await ctx.set_step("step two")
        return ctx

    ctx = asyncio.run(scenario())
    assert got == [{"current_step": "step one"}]
    assert ctx.state.current_step == "step two"


def test_concurrent_appends_get_unique_sequential_ids(settings):
    async def scenario():
        ctx = _ctx(settings)
        await asyncio.gather(*(ctx.append_artifact(_make) for _ in range(10)))
        return ctx

    ctx = asyncio.run(scenario())
    ids = [a.id for a in ctx.state.artifacts]
    assert ids == [f"{ctx.run_id}-{n:03d}" for n in range(1, 11)]


def test_duplicate_id_is_rejected(settings):
    async def scenario():
        ctx = _ctx(settings)
        await ctx.append_artifact(lambda aid: _make("fixed"))
        with pytest.raises(ValueError):
            await ctx.append_artifact(lambda aid: _make("fixed"))
        return ctx

    assert len(asyncio.run(scenario()).state.artifacts) == 1


def test_append_after_cancel_is_dropped(settings):
    updates = []

    async def scenario():
        ctx = _ctx(settings, updates.append)
        ctx.token.cancel()
        return ctx, await ctx.append_artifact(_make)

    ctx, art = asyncio.run(scenario())
    assert art is None
    assert ctx.state.artifacts == []
    assert updates == []


def test_generate_retries_transient_errors(settings):
    model = FakeModel(fail={"Intent Analyst": 2})

    async def scenario():
        return await _ctx(settings, model=model).generate("Role: Intent Analyst. go", {"type": "object"})

    assert asyncio.run(scenario())
    assert model.count("Intent Analyst") == 3

    model = FakeModel(fail={"Intent Analyst": None}, error=TransientCallError)
    with pytest.raises(TransientCallError):
        asyncio.run(_ctx(settings, model=model).generate("Role: Intent Analyst. go"))
    assert model.count("Intent Analyst") == settings.max_attempts


def test_generate_uses_the_configured_attempt_budget(settings):
    model = FakeModel(fail={"UX Expert": None})
    ctx = _ctx(settings.model_copy(update={"max_attempts": 2}), model=model)
    with pytest.raises(TransientCallError):
        asyncio.run(ctx.generate("Role: UX Expert. go"))
    assert model.count("UX Expert") == 2
