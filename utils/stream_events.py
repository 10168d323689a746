from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional

EventKind = Literal[
    "stage",
    "artifact",
    "roles",
    "consistency",
    "error",
    "done",
]

TERMINAL_STATUSES = frozenset({"ready", "error"})


@dataclass(frozen=True)
class Event:
    """Classification of a partial-state update, for logging and consumers."""

    kind: EventKind
    status: Optional[str] = None
    step: Optional[str] = None
    meta: Dict[str, Any] | None = None


def classify_update(update: Dict[str, Any]) -> Event:
    """Return the :class:`Event` describing a partial-state *update*."""
    status = update.get("status")
    step = update.get("current_step")
    if status == "error":
        return Event("error", status=status, step=step, meta={"error": update.get("error")})
    if status == "ready":
        return Event("done", status=status, step=step)
    if "artifacts" in update:
        return Event("artifact", status=status, step=step, meta={"count": len(update["artifacts"])})
    if "consistency" in update:
        return Event("consistency", status=status, step=step)
    if "roles" in update:
        return Event("roles", status=status, step=step, meta={"roles": list(update["roles"])})
    return Event("stage", status=status, step=step)


def merge_update(prev: Dict[str, Any] | None, update: Dict[str, Any]) -> Dict[str, Any]:
    """Field-wise overwrite of *prev* with *update*.

    ``artifacts`` in an update is the whole list at time of emission, so it
    replaces rather than extends.
    """
    out = dict(prev or {})
    out.update(update)
    return out


def is_terminal(status: str | None) -> bool:
    return status in TERMINAL_STATUSES


__all__ = ["Event", "EventKind", "classify_update", "merge_update", "is_terminal"]
