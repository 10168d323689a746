import logging

logger = logging.getLogger("design_solver")
logger.setLevel(logging.INFO)

if not logger.handlers:
    h = logging.StreamHandler()
    fmt = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
    h.setFormatter(fmt)
    logger.addHandler(h)


def _preview(raw: str | None) -> str:
    return (raw or "")[:256]


def log_node_failure(run_id: str | None, role: str, reason: str, raw_head: str = "") -> None:
    logger.warning(
        "expert_failed run_id=%s role=%s reason=%s head=%r",
        run_id or "",
        role,
        reason,
        _preview(raw_head),
    )


def log_stage(run_id: str | None, stage: str, note: str = "") -> None:
    msg = f"stage run_id={run_id or ''} stage={stage}"
    if note:
        msg += f" note={note}"
    logger.info(msg)
