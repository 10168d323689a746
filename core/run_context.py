"""Per-run shared state, progress emission and the retried model call."""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Union

from core.schemas import STATUS_ORDER, Artifact, Idea, RunState, RunStatus
from design_solver.llm_client import ModelClient
from utils.cancellation import CancellationToken
from utils.config import SolverSettings
from utils.errors import RunCancelled
from utils.logging import logger
from utils.retry import is_retryable, retrying
from utils.run_id import artifact_id, new_run_id
from utils.stream_events import classify_update

UpdateCallback = Callable[[dict[str, Any]], Union[None, Awaitable[None]]]


class RunContext:
    """Mutable aggregate exclusively owned by one pipeline invocation.

    Every stage and node receives the context by reference.  Artifact
    appends and their progress emission happen under one per-run lock, and
    nothing is emitted once the run's token is cancelled.
    """

    def __init__(
        self,
        idea: Idea,
        model: ModelClient,
        *,
        settings: SolverSettings | None = None,
        on_update: UpdateCallback | None = None,
        cancel_token: CancellationToken | None = None,
        run_id: str | None = None,
    ) -> None:
        self.model = model
        self.settings = settings or SolverSettings()
        self.on_update = on_update
        self.token = cancel_token or CancellationToken()
        self.state = RunState(run_id=run_id or new_run_id(), idea=idea)
        self._lock = asyncio.Lock()
        self._seq = 0
        self._ids: set[str] = set()
        s = self.settings
        self._retried_call = retrying(
            s.max_attempts,
            s.retry_delay_s,
            backoff=s.retry_backoff,
            cap=s.retry_cap_s,
            retry_if=is_retryable,
            cancel_token=self.token,
        )(self._call_model)

    @property
    def run_id(self) -> str:
        return self.state.run_id

    @property
    def cancelled(self) -> bool:
        return self.token.is_set()

    async def emit(self, *fields: str) -> None:
        """Send the current value of *fields* to the progress callback."""
        if self.cancelled:
            logger.debug("emit_suppressed run_id=%s fields=%s", self.run_id, fields)
            return
        partial = self.state.model_dump(mode="json", include=set(fields))
        event = classify_update(partial)
        logger.debug("progress run_id=%s kind=%s step=%s", self.run_id, event.kind, event.step)
        if self.on_update is None:
            return
        try:
            result = self.on_update(partial)
            if inspect.isawaitable(result):
                await result
        except RunCancelled:
            raise
        except Exception as e:
            logger.warning("progress_callback_failed run_id=%s error=%s", self.run_id, e)

    async def update(self, **changes: Any) -> None:
        """Assign *changes* on the state and emit them as one partial update."""
        if "status" in changes:
            self._check_transition(RunStatus(changes["status"]))
        for key, value in changes.items():
            setattr(self.state, key, value)
        await self.emit(*changes)

    async def set_status(self, status: RunStatus, step: str) -> None:
        await self.update(status=status, current_step=step)

    async def set_step(self, step: str) -> None:
        await self.update(current_step=step)

    def _check_transition(self, new: RunStatus) -> None:
        cur = self.state.status
        if cur == new:
            return
        if cur.terminal:
            raise ValueError(f"run {self.run_id} already finished with status {cur.value}")
        if new is RunStatus.ERROR:
            return
        if STATUS_ORDER[new] < STATUS_ORDER[cur]:
            raise ValueError(f"status cannot move from {cur.value} to {new.value}")

    def next_artifact_id(self) -> str:
        self._seq += 1
        return artifact_id(self.run_id, self._seq)

    async def append_artifact(self, build: Callable[[str], Artifact]) -> Artifact | None:
        """Create an artifact with a fresh id, append it and emit the list.

        *build* receives the id.  Returns ``None`` when the run has been
        cancelled, in which case nothing is appended.
        """
        async with self._lock:
            if self.cancelled:
                logger.info("late_artifact_dropped run_id=%s", self.run_id)
                return None
            aid = self.next_artifact_id()
            artifact = build(aid)
            if artifact.id in self._ids:
                raise ValueError(f"duplicate artifact id {artifact.id}")
            self._ids.add(artifact.id)
            self.state.artifacts.append(artifact)
            await self.emit("artifacts")
            return artifact

    async def _call_model(self, prompt: str, shape_hint: dict[str, Any] | None) -> str:
        return await self.token.guard(self.model.generate(prompt, shape_hint))

    async def generate(self, prompt: str, shape_hint: dict[str, Any] | None = None) -> str:
        """Call the model with the run's retry policy and cancellation token."""
        return await self._retried_call(prompt, shape_hint)
