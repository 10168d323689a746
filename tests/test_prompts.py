import json

from core.prompts import artifact_digest, build_intent_prompt, example_payload, shape_example
from core.registry import PROJECTION_FIELDS, PROJECTION_SCHEMAS, registry
from core.roles import ArtifactKind, ExpertRole
from core.schemas import Artifact, Idea


def _art(n, summary="short"):
    return Artifact(
        id=f"r-{n:03d}", role=ExpertRole.UX, title="t", summary=summary, content=summary, type=ArtifactKind.UX_FLOW
    )


def test_digest_empty():
    assert artifact_digest([]) == "- none yet"


def test_digest_lines_and_truncation():
    digest = artifact_digest([_art(1, "Line one\n\nspans"), _art(2, "x" * 500)])
    lines = digest.splitlines()
    assert lines[0] == "- [ux-flow] UX Expert: Line one spans"
    assert lines[1].endswith("...")
    assert len(lines[1]) < 260


def test_digest_respects_budget():
    digest = artifact_digest([_art(i, "y" * 150) for i in range(1, 30)], max_chars=600)
    assert len(digest) < 700
    assert digest.splitlines()[-1].startswith("- ... ")


def test_shape_example_is_json():
    spec = registry.get(ExpertRole.UX)
    example = json.loads(shape_example(spec.schema))
    assert example["steps"] == [{"label": "Label", "desc": "Desc"}]


def test_example_payload_for_open_mapping():
    assert example_payload(PROJECTION_SCHEMAS[ArtifactKind.TECH_ROADMAP])["stack"] == {"layer": "technology"}


def test_intent_prompt_mentions_idea_and_stage():
    prompt = build_intent_prompt(Idea(text="Pet sitter marketplace", mode="scale"), registry.get(ExpertRole.INTENT))
    assert prompt.startswith("Role: Intent Analyst.")
    assert "Pet sitter marketplace" in prompt
    assert "Product stage: scale" in prompt


def test_every_role_is_registered_with_its_projection_field():
    for role in ExpertRole:
        spec = registry.get(role)
        field = PROJECTION_FIELDS[spec.kind]
        if field is not None:
            assert field in spec.schema["properties"]
    assert registry.get(ExpertRole.API_CONTRACT).kind is ArtifactKind.API_CONTRACT
