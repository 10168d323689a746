from __future__ import annotations

import re
from typing import Any

from core.registry import RoleSpec, registry
from core.roles import ExpertRole
from core.run_context import RunContext
from core.schemas import Artifact
from core.validation import normalize_confidence, validate
from utils.errors import PartialArtifactFailure, RunCancelled
from utils.logging import log_node_failure, logger

DEFAULT_CONFIDENCE = 0.9

_BULLET_RE = re.compile(r"^[ \t]*[-+*][ \t]+", re.MULTILINE)


def clean_text(text: str) -> str:
    """Strip markdown emphasis, headings and bullet markers from *text*."""
    text = _BULLET_RE.sub("• ", text or "")
    return text.replace("*", "").replace("#", "").strip()


def confidence_of(payload: Any) -> float:
    if isinstance(payload, dict):
        conf = normalize_confidence(payload.get("confidence"))
        if conf is not None:
            return conf
    return DEFAULT_CONFIDENCE


def build_artifact(spec: RoleSpec, payload: dict[str, Any], artifact_id: str) -> Artifact:
    summary = clean_text(str(payload.get("summary") or ""))
    return Artifact(
        id=artifact_id,
        role=spec.role,
        title=f"{spec.label} Strategy",
        summary=summary,
        content=summary,
        type=spec.kind,
        projection=payload,
        confidence=confidence_of(payload),
    )


async def run_expert(role: ExpertRole, ctx: RunContext) -> Artifact | None:
    """Run one specialist node and append its artifact to the run.

    Failures stay inside the node: they are logged and the node yields no
    artifact.  Siblings and the run are unaffected.
    """
    spec = registry.get(role)
    raw = ""
    try:
        prompt = spec.build_prompt(ctx)
        raw = await ctx.generate(prompt, spec.schema)
        payload = validate(spec.schema, raw)
        artifact = await ctx.append_artifact(lambda aid: build_artifact(spec, payload, aid))
    except RunCancelled:
        logger.debug("expert_cancelled run_id=%s role=%s", ctx.run_id, role.value)
        return None
    except Exception as e:
        failure = PartialArtifactFailure(role.value, e)
        log_node_failure(ctx.run_id, role.value, str(failure), raw)
        return None
    if artifact is not None:
        logger.info(
            "expert_done run_id=%s role=%s artifact=%s confidence=%.2f",
            ctx.run_id,
            role.value,
            artifact.id,
            artifact.confidence,
        )
    return artifact
