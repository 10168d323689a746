from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from core.roles import ArtifactKind, ExpertRole

Mode = Literal["idea", "mvp", "scale"]
Depth = Literal["quick", "standard", "deep"]

MODES: tuple[str, ...] = ("idea", "mvp", "scale")
DEPTHS: tuple[str, ...] = ("quick", "standard", "deep")


class RunStatus(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    DESIGNING = "designing"
    READY = "ready"
    ERROR = "error"

    @property
    def terminal(self) -> bool:
        return self in (RunStatus.READY, RunStatus.ERROR)


# Position of each non-error status in the forward sequence.
STATUS_ORDER = {
    RunStatus.IDLE: 0,
    RunStatus.ANALYZING: 1,
    RunStatus.DESIGNING: 2,
    RunStatus.READY: 3,
}


class Idea(BaseModel):
    """Immutable pipeline input."""

    text: str
    mode: Mode = "idea"
    depth: Depth = "standard"

    model_config = ConfigDict(frozen=True)

    @field_validator("text")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("idea text must not be empty")
        return v

    @field_validator("mode", "depth", mode="before")
    @classmethod
    def _lower(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v


class Intent(BaseModel):
    goal: str
    target: str = ""
    constraints: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class AppModule(BaseModel):
    name: str
    description: str = ""
    features: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class AppMap(BaseModel):
    modules: list[AppModule] = Field(min_length=1)

    model_config = ConfigDict(frozen=True)


class Artifact(BaseModel):
    """One unit of output produced by a role."""

    id: str
    role: ExpertRole
    title: str
    summary: str
    content: str
    type: ArtifactKind
    projection: dict[str, Any] | None = None
    confidence: float = Field(default=0.9, ge=0.0, le=1.0)

    model_config = ConfigDict(frozen=True)


class ConsistencyReport(BaseModel):
    issues: list[str] = Field(default_factory=list)
    ok: bool = True

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_issues(cls, issues: list[str]) -> "ConsistencyReport":
        return cls(issues=list(issues), ok=not issues)


class RunState(BaseModel):
    """Aggregate state of one pipeline invocation."""

    run_id: str
    idea: Idea
    intent: Intent | None = None
    app_map: AppMap | None = None
    artifacts: list[Artifact] = Field(default_factory=list)
    status: RunStatus = RunStatus.IDLE
    current_step: str = ""
    roles: list[ExpertRole] = Field(default_factory=list)
    consistency: ConsistencyReport | None = None
    error: str | None = None

    def artifacts_of(self, kind: ArtifactKind | str) -> list[Artifact]:
        kind = ArtifactKind(kind)
        return [a for a in self.artifacts if a.type == kind]


__all__ = [
    "Mode",
    "Depth",
    "MODES",
    "DEPTHS",
    "RunStatus",
    "STATUS_ORDER",
    "Idea",
    "Intent",
    "AppModule",
    "AppMap",
    "Artifact",
    "ConsistencyReport",
    "RunState",
]
