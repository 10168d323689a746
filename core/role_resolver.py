"""Selection of the specialist roles that participate in a run."""

from __future__ import annotations

from core.roles import BLOCKING_ROLES, FOUNDATION_ROLES, ExpertRole
from core.schemas import DEPTHS, MODES

_MODE_ROLES: dict[str, tuple[ExpertRole, ...]] = {
    "mvp": (ExpertRole.TECH_STACK, ExpertRole.PRICING),
    "scale": (ExpertRole.RISK, ExpertRole.ESTIMATION, ExpertRole.GTM),
}


def _norm(value: str, allowed: tuple[str, ...], what: str) -> str:
    v = (value or "").strip().lower()
    if v not in allowed:
        raise ValueError(f"unknown {what} {value!r}; expected one of {', '.join(allowed)}")
    return v


def resolve_roles(mode: str, depth: str) -> list[ExpertRole]:
    """Return the ordered roles active for ``(mode, depth)``.

    The result depends only on its arguments.  Order is foundation roles,
    then depth additions, then mode additions.
    """
    mode = _norm(mode, MODES, "mode")
    depth = _norm(depth, DEPTHS, "depth")

    roles = [ExpertRole.INTENT, ExpertRole.CARTOGRAPHER, ExpertRole.UX, ExpertRole.UI]
    if depth != "quick":
        roles += [ExpertRole.COMPONENT, ExpertRole.DATA, ExpertRole.CONSISTENCY]
    if depth == "deep":
        roles.append(ExpertRole.SIMPLIFIER)
        if ExpertRole.PERSONA not in roles:
            roles.append(ExpertRole.PERSONA)
        roles += _MODE_ROLES.get(mode, ())
    return roles


def split_phases(roles: list[ExpertRole]) -> tuple[list[ExpertRole], list[ExpertRole]]:
    """Split resolved roles into the two concurrent expert phases.

    Phase A holds the foundation roles, phase B every other expert.  Blocking
    stages and the synthesis role belong to neither.
    """
    skip = set(BLOCKING_ROLES) | {ExpertRole.PROTOTYPER}
    phase_a = [r for r in roles if r in FOUNDATION_ROLES]
    phase_b = [r for r in roles if r not in skip and r not in FOUNDATION_ROLES]
    return phase_a, phase_b


def expert_roles(roles: list[ExpertRole]) -> list[ExpertRole]:
    phase_a, phase_b = split_phases(roles)
    return phase_a + phase_b
