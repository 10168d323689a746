import pytest
from pydantic import ValidationError

from core.roles import ArtifactKind, ExpertRole, normalize_role
from core.schemas import AppMap, Artifact, Idea, RunState, RunStatus
from utils.run_id import artifact_id, is_run_id, new_run_id


def test_idea_normalizes_and_rejects_blank():
    idea = Idea(text="  Todo app ", mode="MVP", depth="Deep")
    assert (idea.text, idea.mode, idea.depth) == ("Todo app", "mvp", "deep")
    with pytest.raises(ValidationError):
        Idea(text="   ")
    with pytest.raises(ValidationError):
        Idea(text="x", mode="enterprise")


def test_artifact_confidence_bounds_and_immutability():
    art = Artifact(id="a", role=ExpertRole.UI, title="t", summary="s", content="c", type="ui-layout")
    assert art.type is ArtifactKind.UI_LAYOUT
    assert art.confidence == 0.9
    with pytest.raises(ValidationError):
        Artifact(id="a", role=ExpertRole.UI, title="t", summary="s", content="c", type="ui-layout", confidence=1.5)
    with pytest.raises(ValidationError):
        art.title = "changed"


def test_app_map_requires_a_module():
    with pytest.raises(ValidationError):
        AppMap(modules=[])


def test_run_state_json_dump_uses_display_values():
    state = RunState(run_id="r", idea=Idea(text="x"), roles=[ExpertRole.UX], status=RunStatus.DESIGNING)
    dumped = state.model_dump(mode="json")
    assert dumped["roles"] == ["UX Expert"]
    assert dumped["status"] == "designing"
    assert state.artifacts_of("prototype") == []


def test_status_terminal_flag():
    assert RunStatus.READY.terminal and RunStatus.ERROR.terminal
    assert not RunStatus.DESIGNING.terminal


def test_run_ids():
    rid = new_run_id()
    assert is_run_id(rid)
    assert artifact_id(rid, 7) == f"{rid}-007"


def test_normalize_role_aliases():
    assert normalize_role("ux expert") is ExpertRole.UX
    assert normalize_role("nobody") is None
