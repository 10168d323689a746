"""Advisory completeness checks over the final artifact set."""

from __future__ import annotations

import json
from collections import Counter

from core.role_resolver import expert_roles
from core.schemas import ConsistencyReport, RunState


def _corpus(state: RunState) -> str:
    chunks: list[str] = []
    for a in state.artifacts:
        chunks.append(a.summary)
        chunks.append(a.content)
        if a.projection:
            chunks.append(json.dumps(a.projection, ensure_ascii=False))
    return "\n".join(chunks).lower()


def check_consistency(state: RunState) -> ConsistencyReport:
    """Return the consistency report for *state*.

    Flags resolved experts without an artifact, missing prototype,
    application-map modules no artifact mentions, an artifact count below
    the expected floor, and duplicate ids.  Never changes the run.
    """
    issues: list[str] = []
    experts = expert_roles(state.roles)
    produced = {a.role for a in state.artifacts}
    for role in experts:
        if role not in produced:
            issues.append(f"No artifact from {role.value}")
    if not any(a.type.value == "prototype" for a in state.artifacts):
        issues.append("No prototype was synthesized")

    floor = len(experts) + 1
    if len(state.artifacts) < floor:
        issues.append(f"Artifact count {len(state.artifacts)} is below the expected {floor}")

    if state.app_map is not None and state.artifacts:
        corpus = _corpus(state)
        for module in state.app_map.modules:
            if module.name.strip().lower() not in corpus:
                issues.append(f"Module '{module.name}' is not covered by any artifact")

    dupes = [aid for aid, n in Counter(a.id for a in state.artifacts).items() if n > 1]
    for aid in dupes:
        issues.append(f"Duplicate artifact id {aid}")
    return ConsistencyReport.from_issues(issues)
