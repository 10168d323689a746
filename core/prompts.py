"""Prompt construction for every pipeline stage."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Iterable

from core.roles import FOUNDATION_ROLES
from core.schemas import AppMap, Artifact, Idea, Intent

if TYPE_CHECKING:
    from core.registry import RoleSpec
    from core.run_context import RunContext

JSON_RULES = "Return strictly one JSON object. No markdown fences, no commentary."


def example_payload(schema: dict[str, Any], key: str = "value") -> Any:
    t = schema.get("type")
    if t == "object":
        props = schema.get("properties") or {}
        if not props and isinstance(schema.get("additionalProperties"), dict):
            return {"layer": "technology"}
        return {k: example_payload(v, k) for k, v in props.items()}
    if t == "array":
        return [example_payload(schema.get("items") or {}, key.rstrip("s") or key)]
    if t in ("number", "integer"):
        return 0.8
    if t == "boolean":
        return True
    return key.replace("_", " ").title()


def shape_example(schema: dict[str, Any]) -> str:
    """Render a compact JSON example of *schema* for use in prompts."""
    return json.dumps(example_payload(schema), ensure_ascii=False)


def _intent_block(intent: Intent | None) -> str:
    if intent is None:
        return "Intent: not available"
    constraints = "; ".join(intent.constraints) or "none stated"
    return f"Goal: {intent.goal}\nTarget: {intent.target or 'unspecified'}\nConstraints: {constraints}"


def _app_map_block(app_map: AppMap | None) -> str:
    if app_map is None:
        return "Application map: not available"
    return json.dumps(app_map.model_dump(mode="json"), ensure_ascii=False)


def artifact_digest(artifacts: Iterable[Artifact], max_chars: int = 1600) -> str:
    """Return a compact one-line-per-artifact digest, capped at *max_chars*."""
    artifacts = list(artifacts)
    lines: list[str] = []
    used = 0
    for a in artifacts:
        summary = " ".join(a.summary.split())
        if len(summary) > 200:
            summary = summary[:197] + "..."
        line = f"- [{a.type.value}] {a.role.value}: {summary}"
        if used + len(line) > max_chars:
            lines.append(f"- ... {len(artifacts) - len(lines)} more")
            break
        lines.append(line)
        used += len(line) + 1
    return "\n".join(lines) if lines else "- none yet"


def build_intent_prompt(idea: Idea, spec: RoleSpec) -> str:
    return (
        f'Role: {spec.label}. Analyze the following product idea: "{idea.text}".\n'
        f"Product stage: {idea.mode}. Task: {spec.task}\n"
        f"Return a JSON object shaped like: {shape_example(spec.schema)}\n"
        f"{JSON_RULES}"
    )


def build_cartography_prompt(idea: Idea, intent: Intent, spec: RoleSpec, modules: int = 4) -> str:
    return (
        f'Role: {spec.label}. Product idea: "{idea.text}".\n'
        f"{_intent_block(intent)}\n"
        f"Task: {spec.task} Define {modules} main modules.\n"
        f"Return a JSON object shaped like: {shape_example(spec.schema)}\n"
        f"{JSON_RULES}"
    )


def build_expert_prompt(spec: RoleSpec, ctx: RunContext) -> str:
    state = ctx.state
    parts = [
        f"Role: {spec.label}.",
        f'Product idea: "{state.idea.text}" (stage: {state.idea.mode}, depth: {state.idea.depth}).',
        _intent_block(state.intent),
        f"Application map: {_app_map_block(state.app_map)}",
    ]
    if spec.role not in FOUNDATION_ROLES:
        parts.append(
            "Artifacts produced so far:\n"
            + artifact_digest(list(state.artifacts), ctx.settings.digest_max_chars)
        )
    parts.append(f"Task: {spec.task}")
    parts.append(
        f"Return a JSON object shaped like: {shape_example(spec.schema)}. "
        "Include a numeric 'confidence' between 0 and 1."
    )
    parts.append(JSON_RULES)
    return "\n".join(parts)


def build_synthesis_prompt(spec: RoleSpec, ctx: RunContext, style: str) -> str:
    state = ctx.state
    return (
        f'Expert Task: {spec.task} Product: "{state.idea.text}".\n'
        f"Direction: {style}\n"
        f"Architecture Context: {_app_map_block(state.app_map)}\n"
        "Design decisions so far:\n"
        f"{artifact_digest(list(state.artifacts), ctx.settings.digest_max_chars)}\n\n"
        "Technical Rules:\n"
        "- Use the Tailwind CSS CDN.\n"
        "- Must be a single interactive dashboard or landing page.\n"
        "- Make it feel professional and production-ready.\n"
        "- Return ONLY RAW HTML. NO MARKDOWN. NO CODE BLOCKS."
    )
