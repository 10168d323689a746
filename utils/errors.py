from __future__ import annotations


class TransientCallError(RuntimeError):
    """Model call failed for a retryable reason (network, quota window, timeout)."""


class ProjectionValidationError(ValueError):
    """Model output did not parse or did not match the expected schema.

    Raised and recovered inside :mod:`core.validation` only.
    """


class FatalStageError(RuntimeError):
    """A blocking stage exhausted its retries; the run cannot continue."""

    def __init__(self, stage: str, reason: str):
        self.stage = stage
        self.reason = reason
        super().__init__(f"{stage} failed: {reason}")


class PartialArtifactFailure(RuntimeError):
    """A single expert or synthesis node produced no artifact."""

    def __init__(self, role: str, cause: BaseException):
        self.role = role
        self.cause = cause
        super().__init__(f"{role}: {type(cause).__name__}: {cause}")


class RunCancelled(RuntimeError):
    """The run was superseded or reset while work was in flight."""


def classify_provider_error(exc: BaseException) -> str:
    """Map provider SDK exceptions to canonical kinds."""
    if isinstance(exc, TransientCallError):
        return "transient"
    name = exc.__class__.__name__.lower()
    msg = str(exc).lower()
    if "rate" in name or "rate" in msg and "limit" in msg:
        return "rate_limit"
    if "timeout" in name or "timed" in msg:
        return "timeout"
    if "auth" in name or "unauthorized" in msg or "api key" in msg:
        return "auth"
    if "quota" in name or "billing" in msg:
        return "quota"
    if isinstance(exc, (ValueError, KeyError, TypeError)) or "validation" in name:
        return "validation"
    return "transient"


def short_reason(exc: BaseException, limit: int = 200) -> str:
    """One-line, length-capped description of *exc* for user-facing status."""
    text = " ".join(str(exc).split()) or exc.__class__.__name__
    return text if len(text) <= limit else text[: limit - 3] + "..."


__all__ = [
    "TransientCallError",
    "ProjectionValidationError",
    "FatalStageError",
    "PartialArtifactFailure",
    "RunCancelled",
    "classify_provider_error",
    "short_reason",
]
