from utils.stream_events import classify_update, is_terminal, merge_update


def test_classify_update_kinds():
    assert classify_update({"status": "analyzing", "current_step": "x"}).kind == "stage"
    assert classify_update({"artifacts": [{}, {}]}).meta == {"count": 2}
    assert classify_update({"roles": ["UX Expert"]}).kind == "roles"
    assert classify_update({"consistency": {"ok": True, "issues": []}}).kind == "consistency"
    assert classify_update({"status": "ready"}).kind == "done"
    err = classify_update({"status": "error", "error": "intent failed: x"})
    assert err.kind == "error"
    assert err.meta["error"] == "intent failed: x"


def test_merge_update_overwrites_field_wise():
    prev = {"status": "designing", "artifacts": [{"id": "a"}], "current_step": "s1"}
    merged = merge_update(prev, {"artifacts": [{"id": "a"}, {"id": "b"}]})
    assert merged == {"status": "designing", "artifacts": [{"id": "a"}, {"id": "b"}], "current_step": "s1"}
    assert prev["artifacts"] == [{"id": "a"}]
    assert merge_update(None, {"status": "idle"}) == {"status": "idle"}


def test_terminal_statuses():
    assert is_terminal("ready")
    assert is_terminal("error")
    assert not is_terminal("designing")
    assert not is_terminal(None)
