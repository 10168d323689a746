from __future__ import annotations

import re
import time
import uuid

_RUN_ID_RE = re.compile(r"^\d{10}-[0-9a-f]{8}$")


def new_run_id() -> str:
    """Return a time-ordered id ``{epoch_seconds}-{hex8}`` for a new run."""
    return f"{int(time.time())}-{uuid.uuid4().hex[:8]}"


def is_run_id(value: str) -> bool:
    return bool(_RUN_ID_RE.fullmatch(value or ""))


def artifact_id(run_id: str, seq: int) -> str:
    """Return the id of the *seq*-th artifact appended to *run_id*.

    Ids sort in append order within a run and never repeat across runs.
    """
    return f"{run_id}-{seq:03d}"
