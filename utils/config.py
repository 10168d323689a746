from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import BaseModel, Field

import config.feature_flags as ff

DEFAULTS_PATH = Path(__file__).resolve().parent.parent / "config" / "defaults.yaml"
LOCAL_PATH = DEFAULTS_PATH.with_name("local.yaml")
ENV_PREFIX = "APP__"


def _deep_merge(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(a)
    for k, v in b.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _coerce(value: str) -> Any:
    if value.lower() in {"true", "false"}:
        return value.lower() == "true"
    try:
        return int(value)
    except ValueError:
        try:
            return float(value)
        except ValueError:
            return value


def _read_yaml(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _env_overrides(prefix: str = ENV_PREFIX) -> Dict[str, Any]:
    """Nest ``PREFIX_SECTION__KEY=value`` variables into a config mapping."""
    out: Dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue
        *sections, leaf = key[len(prefix) :].lower().split("__")
        node = out
        for section in sections:
            node = node.setdefault(section, {})
        node[leaf] = _coerce(value)
    return out


def load_config(overrides_path: str | None = None) -> Dict[str, Any]:
    """Load ``config/defaults.yaml`` with local and environment overlays.

    ``config/local.yaml`` (or *overrides_path*) is deep-merged on top, then
    ``APP__SECTION__KEY=value`` environment variables.
    """
    cfg = _read_yaml(DEFAULTS_PATH)
    local = Path(overrides_path) if overrides_path else LOCAL_PATH
    if local.exists():
        cfg = _deep_merge(cfg, _read_yaml(local))
    return _deep_merge(cfg, _env_overrides())


class SolverSettings(BaseModel):
    """Typed view over the merged configuration."""

    model_name: str = "gpt-4o-mini"
    temperature: float = 0.7
    timeout_s: float = 60.0
    max_attempts: int = Field(default=3, ge=1)
    retry_delay_s: float = Field(default=1.0, ge=0.0)
    retry_backoff: float = Field(default=2.0, ge=1.0)
    retry_cap_s: float = Field(default=8.0, ge=0.0)
    digest_max_chars: int = 1600
    app_map_modules: int = 4
    prototype_style: str = "Material Design 3 - Glassmorphism, soft violet/purple accents, high-end commercial look."
    consistency_enabled: bool = True

    @classmethod
    def from_config(cls, cfg: Dict[str, Any] | None = None) -> "SolverSettings":
        cfg = load_config() if cfg is None else cfg
        model = cfg.get("model") or {}
        retry = cfg.get("retry") or {}
        prompts = cfg.get("prompts") or {}
        synthesis = cfg.get("synthesis") or {}
        consistency = cfg.get("consistency") or {}
        data: Dict[str, Any] = {
            "model_name": ff.DESIGN_SOLVER_MODEL or model.get("name"),
            "temperature": model.get("temperature"),
            "timeout_s": model.get("timeout_s"),
            "max_attempts": retry.get("max_attempts"),
            "retry_delay_s": retry.get("delay_s"),
            "retry_backoff": retry.get("backoff"),
            "retry_cap_s": retry.get("cap_s"),
            "digest_max_chars": prompts.get("digest_max_chars"),
            "app_map_modules": prompts.get("app_map_modules"),
            "prototype_style": synthesis.get("style"),
            "consistency_enabled": ff.CONSISTENCY_ENABLED and consistency.get("enabled", True),
        }
        return cls(**{k: v for k, v in data.items() if v is not None})
