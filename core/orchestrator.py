"""Stage orchestration: intent, cartography, expert phases, synthesis."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Iterable

from core.consistency import check_consistency
from core.expert import run_expert
from core.prompts import build_cartography_prompt, build_intent_prompt
from core.registry import registry
from core.role_resolver import resolve_roles, split_phases
from core.roles import ExpertRole
from core.run_context import RunContext, UpdateCallback
from core.schemas import AppMap, Idea, Intent, RunState, RunStatus
from core.synthesis import run_synthesis
from core.validation import validate
from design_solver.llm_client import ModelClient, get_model
from utils.cancellation import CancellationToken
from utils.config import SolverSettings
from utils.errors import FatalStageError, RunCancelled, short_reason
from utils.logging import log_stage, logger

STEP_INTENT = "Decrypting Intention..."
STEP_CARTOGRAPHY = "Mapping Architecture..."
STEP_FOUNDATION = "Engaging Expert Agents..."
STEP_ENRICHMENT = "Enriching Product Strategy..."
STEP_SYNTHESIS = "Synthesizing Visual Prototypes..."
STEP_CONSISTENCY = "Cross-checking Artifacts..."
STEP_DONE = "Solution Fully Projected"


async def _blocking(ctx: RunContext, stage: str, prompt: str, schema: dict[str, Any]) -> dict[str, Any]:
    try:
        raw = await ctx.generate(prompt, schema)
    except RunCancelled:
        raise
    except Exception as e:
        raise FatalStageError(stage, short_reason(e)) from e
    return validate(schema, raw)


async def analyze_intent(ctx: RunContext) -> Intent:
    spec = registry.get(ExpertRole.INTENT)
    payload = await _blocking(ctx, "intent", build_intent_prompt(ctx.state.idea, spec), spec.schema)
    goal = str(payload.get("goal") or "").strip() or ctx.state.idea.text
    return Intent(
        goal=goal,
        target=str(payload.get("target") or ""),
        constraints=[str(c) for c in payload.get("constraints") or []],
    )


async def map_application(ctx: RunContext, intent: Intent) -> AppMap:
    spec = registry.get(ExpertRole.CARTOGRAPHER)
    prompt = build_cartography_prompt(ctx.state.idea, intent, spec, ctx.settings.app_map_modules)
    payload = await _blocking(ctx, "cartography", prompt, spec.schema)
    modules = [m for m in payload.get("modules") or [] if isinstance(m, dict) and str(m.get("name") or "").strip()]
    if not modules:
        modules = list(spec.schema["properties"]["modules"]["default"])
    return AppMap.model_validate({"modules": modules})


async def join_nodes(
    ctx: RunContext, phase: str, jobs: Iterable[tuple[str, Awaitable[Any]]]
) -> dict[str, Any]:
    """Run *jobs* concurrently and collect each outcome by node name.

    Results are either the node's return value or the exception it raised;
    the group itself never fails.
    """
    jobs = list(jobs)
    if not jobs:
        return {}
    names = [name for name, _ in jobs]
    outcomes = await asyncio.gather(*(job for _, job in jobs), return_exceptions=True)
    results: dict[str, Any] = {}
    for name, outcome in zip(names, outcomes):
        if isinstance(outcome, BaseException) and not isinstance(outcome, RunCancelled):
            logger.warning("node_error run_id=%s phase=%s node=%s error=%s", ctx.run_id, phase, name, outcome)
        results[name] = outcome
    ok = sum(1 for v in results.values() if v is not None and not isinstance(v, BaseException))
    logger.info("phase_joined run_id=%s phase=%s nodes=%d artifacts=%d", ctx.run_id, phase, len(names), ok)
    return results


async def _run_phase(ctx: RunContext, phase: str, roles: list[ExpertRole]) -> dict[str, Any]:
    return await join_nodes(ctx, phase, ((r.value, run_expert(r, ctx)) for r in roles))


async def execute(ctx: RunContext) -> RunState:
    """Drive *ctx* through every stage and return its final state."""
    state = ctx.state
    token = ctx.token
    try:
        log_stage(ctx.run_id, "intent")
        await ctx.set_status(RunStatus.ANALYZING, STEP_INTENT)
        intent = await analyze_intent(ctx)
        token.raise_if_cancelled()
        await ctx.update(intent=intent, status=RunStatus.DESIGNING, current_step=STEP_CARTOGRAPHY)

        log_stage(ctx.run_id, "cartography")
        app_map = await map_application(ctx, intent)
        token.raise_if_cancelled()
        await ctx.update(app_map=app_map)

        roles = resolve_roles(state.idea.mode, state.idea.depth)
        await ctx.update(roles=roles, current_step=STEP_FOUNDATION)
        phase_a, phase_b = split_phases(roles)

        log_stage(ctx.run_id, "phase_a", ",".join(r.value for r in phase_a))
        await _run_phase(ctx, "a", phase_a)
        token.raise_if_cancelled()

        if phase_b:
            await ctx.set_step(STEP_ENRICHMENT)
            log_stage(ctx.run_id, "phase_b", ",".join(r.value for r in phase_b))
            await _run_phase(ctx, "b", phase_b)
            token.raise_if_cancelled()

        await ctx.set_step(STEP_SYNTHESIS)
        log_stage(ctx.run_id, "synthesis")
        await run_synthesis(ctx)
        token.raise_if_cancelled()

        if ctx.settings.consistency_enabled:
            await ctx.set_step(STEP_CONSISTENCY)
            report = check_consistency(state)
            if not report.ok:
                logger.info("consistency_issues run_id=%s count=%d", ctx.run_id, len(report.issues))
            await ctx.update(consistency=report)
            token.raise_if_cancelled()

        await ctx.set_status(RunStatus.READY, STEP_DONE)
        log_stage(ctx.run_id, "ready", f"artifacts={len(state.artifacts)}")
    except RunCancelled:
        logger.info("run_cancelled run_id=%s status=%s", ctx.run_id, state.status.value)
    except FatalStageError as e:
        logger.error("run_failed run_id=%s stage=%s reason=%s", ctx.run_id, e.stage, e.reason)
        await ctx.update(status=RunStatus.ERROR, current_step=str(e), error=str(e))
    return state


async def run_pipeline(
    idea_text: str,
    mode: str = "idea",
    depth: str = "standard",
    on_update: UpdateCallback | None = None,
    *,
    model: ModelClient | None = None,
    settings: SolverSettings | None = None,
    cancel_token: CancellationToken | None = None,
) -> RunState:
    """Run the full design pipeline for one idea.

    Progress is streamed through *on_update* as partial state dicts.  The
    final state is returned; only a failed intent or cartography stage puts
    it in ``error``.  Invalid idea text, mode or depth raise ``ValueError``
    before anything runs.
    """
    idea = Idea(text=idea_text, mode=mode, depth=depth)
    settings = settings or SolverSettings.from_config()
    ctx = RunContext(
        idea,
        model or get_model(settings),
        settings=settings,
        on_update=on_update,
        cancel_token=cancel_token,
    )
    logger.info("run_start run_id=%s mode=%s depth=%s", ctx.run_id, idea.mode, idea.depth)
    return await execute(ctx)


class DesignSolver:
    """Owns the model client and settings; at most one run is active.

    Starting a run supersedes the previous one: its token is cancelled, so it
    stops at its next suspension point and emits nothing more.
    """

    def __init__(self, model: ModelClient | None = None, settings: SolverSettings | None = None):
        self.settings = settings or SolverSettings.from_config()
        self.model = model or get_model(self.settings)
        self._token: CancellationToken | None = None
        self._task: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def reset(self) -> None:
        """Cancel the active run, if any."""
        if self._token is not None:
            self._token.cancel()
            self._token = None

    def start(
        self,
        idea_text: str,
        mode: str = "idea",
        depth: str = "standard",
        on_update: UpdateCallback | None = None,
    ) -> asyncio.Task:
        """Schedule a new run on the running loop and return its task."""
        self.reset()
        token = CancellationToken()
        self._token = token
        self._task = asyncio.ensure_future(
            run_pipeline(
                idea_text,
                mode,
                depth,
                on_update,
                model=self.model,
                settings=self.settings,
                cancel_token=token,
            )
        )
        return self._task

    async def run(
        self,
        idea_text: str,
        mode: str = "idea",
        depth: str = "standard",
        on_update: UpdateCallback | None = None,
    ) -> RunState:
        return await self.start(idea_text, mode, depth, on_update)


__all__ = ["run_pipeline", "execute", "join_nodes", "DesignSolver"]
