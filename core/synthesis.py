from __future__ import annotations

from core.prompts import build_synthesis_prompt
from core.registry import registry
from core.roles import ExpertRole
from core.run_context import RunContext
from core.schemas import Artifact
from core.validation import validate
from utils.errors import PartialArtifactFailure, RunCancelled
from utils.json_safety import strip_fences
from utils.logging import log_node_failure, logger

PROTOTYPE_TITLE = "Visual Projection 01"


async def run_synthesis(ctx: RunContext, style: str | None = None) -> Artifact | None:
    """Assemble the HTML prototype from everything produced so far.

    Failure is non-fatal: the run still finishes, without a prototype.
    """
    spec = registry.get(ExpertRole.PROTOTYPER)
    style = style or ctx.settings.prototype_style
    raw = ""
    try:
        raw = await ctx.generate(build_synthesis_prompt(spec, ctx, style))
        html = strip_fences(raw)
        if not html:
            raise ValueError("empty prototype markup")
        projection = validate(spec.schema, {"style": style})
        artifact = await ctx.append_artifact(
            lambda aid: Artifact(
                id=aid,
                role=spec.role,
                title=PROTOTYPE_TITLE,
                summary=f"Interactive prototype: {style}",
                content=html,
                type=spec.kind,
                projection=projection,
                confidence=0.9,
            )
        )
    except RunCancelled:
        return None
    except Exception as e:
        log_node_failure(ctx.run_id, spec.label, str(PartialArtifactFailure(spec.label, e)), raw)
        return None
    if artifact is not None:
        logger.info("synthesis_done run_id=%s artifact=%s chars=%d", ctx.run_id, artifact.id, len(artifact.content))
    return artifact
