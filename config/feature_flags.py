from __future__ import annotations

import os


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


# Use the offline model client instead of calling a provider.
DRY_RUN = _flag("DRY_RUN")
# Compute the advisory consistency report at the end of a run.
CONSISTENCY_ENABLED = _flag("CONSISTENCY_ENABLED", "true")
# Overrides ``model.name`` from the YAML configuration when set.
DESIGN_SOLVER_MODEL: str | None = os.getenv("DESIGN_SOLVER_MODEL") or None

