import importlib

import config.feature_flags as ff
from design_solver.llm_client import DryRunModel, get_model
from utils.config import SolverSettings, load_config


def test_defaults_yaml_loads():
    cfg = load_config()
    assert cfg["retry"]["max_attempts"] == 3
    assert cfg["consistency"]["enabled"] is True
    settings = SolverSettings.from_config(cfg)
    assert settings.max_attempts == 3
    assert settings.digest_max_chars == 1600


def test_local_overrides_and_env(tmp_path, monkeypatch):
    local = tmp_path / "local.yaml"
    local.write_text("retry:\n  max_attempts: 5\nmodel:\n  name: local-model\n")
    monkeypatch.setenv("APP__RETRY__DELAY_S", "0.5")
    monkeypatch.setenv("APP__CONSISTENCY__ENABLED", "false")
    cfg = load_config(str(local))
    settings = SolverSettings.from_config(cfg)
    assert settings.max_attempts == 5
    assert settings.retry_delay_s == 0.5
    assert settings.model_name == "local-model"
    assert settings.consistency_enabled is False


def test_model_flag_overrides_yaml(monkeypatch):
    monkeypatch.setattr(ff, "DESIGN_SOLVER_MODEL", "flag-model")
    assert SolverSettings.from_config({"model": {"name": "yaml-model"}}).model_name == "flag-model"


def test_feature_flags_read_environment(monkeypatch):
    monkeypatch.setenv("DRY_RUN", "true")
    monkeypatch.setenv("CONSISTENCY_ENABLED", "false")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    importlib.reload(ff)
    try:
        assert ff.DRY_RUN is True
        assert isinstance(get_model(), DryRunModel)
        assert SolverSettings.from_config({}).consistency_enabled is False
    finally:
        monkeypatch.delenv("DRY_RUN")
        monkeypatch.delenv("CONSISTENCY_ENABLED")
        importlib.reload(ff)
