"""Registration table mapping each role to its output schema, kind and prompt."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from core.roles import ArtifactKind, ExpertRole

FALLBACK_SUMMARY = "Strategizing based on product requirements."

PromptBuilder = Callable[["RoleSpec", Any], str]


def _string(default: str | None = None) -> dict[str, Any]:
    out: dict[str, Any] = {"type": "string"}
    if default is not None:
        out["default"] = default
    return out


def _strings() -> dict[str, Any]:
    return {"type": "array", "items": {"type": "string"}, "default": []}


def _records(**props: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "array",
        "default": [],
        "items": {
            "type": "object",
            "properties": props,
            "required": [next(iter(props))],
        },
    }


def _projection(field: str | None = None, shape: dict[str, Any] | None = None) -> dict[str, Any]:
    props: dict[str, Any] = {
        "summary": _string(FALLBACK_SUMMARY),
        "confidence": {"type": "number", "minimum": 0, "maximum": 1},
    }
    required = ["summary"]
    if field is not None and shape is not None:
        props[field] = shape
        required.append(field)
    return {"type": "object", "properties": props, "required": required}


INTENT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "goal": _string(""),
        "target": _string(""),
        "constraints": _strings(),
    },
    "required": ["goal", "target", "constraints"],
}

APP_MAP_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "modules": {
            "type": "array",
            "minItems": 1,
            "default": [
                {
                    "name": "Core Experience",
                    "description": "Primary workflow delivering the product goal.",
                    "features": [],
                }
            ],
            "items": {
                "type": "object",
                "properties": {
                    "name": _string(),
                    "description": _string(""),
                    "features": _strings(),
                },
                "required": ["name"],
            },
        }
    },
    "required": ["modules"],
}

PROTOTYPE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {"style": _string("")},
}

# Projection field read by renderers for each artifact kind.
PROJECTION_FIELDS: dict[ArtifactKind, str | None] = {
    ArtifactKind.UX_FLOW: "steps",
    ArtifactKind.UI_LAYOUT: "layout",
    ArtifactKind.DATA_SCHEMA: "entities",
    ArtifactKind.PERSONA_PROFILE: "personas",
    ArtifactKind.RISK_ANALYSIS: "risks",
    ArtifactKind.TECH_ROADMAP: "stack",
    ArtifactKind.MONETIZATION_PLAN: "tiers",
    ArtifactKind.COMPONENT_MAP: "components",
    ArtifactKind.GTM_STRATEGY: "channels",
    ArtifactKind.ESTIMATION_SPEC: "estimates",
    ArtifactKind.API_CONTRACT: "endpoints",
    ArtifactKind.PROTOTYPE: None,
    ArtifactKind.TEXT: None,
    ArtifactKind.CONSISTENCY_REPORT: None,
}

PROJECTION_SCHEMAS: dict[ArtifactKind, dict[str, Any]] = {
    ArtifactKind.UX_FLOW: _projection("steps", _records(label=_string(), desc=_string(""))),
    ArtifactKind.UI_LAYOUT: _projection("layout", _records(area=_string(), items=_strings())),
    ArtifactKind.DATA_SCHEMA: _projection("entities", _records(name=_string(), fields=_strings())),
    ArtifactKind.PERSONA_PROFILE: _projection(
        "personas",
        _records(name=_string(), role=_string(""), goals=_strings(), frustrations=_strings()),
    ),
    ArtifactKind.RISK_ANALYSIS: _projection(
        "risks", _records(area=_string(), severity=_string("medium"), mitigation=_string(""))
    ),
    ArtifactKind.TECH_ROADMAP: _projection(
        "stack", {"type": "object", "additionalProperties": {"type": "string"}, "default": {}}
    ),
    ArtifactKind.MONETIZATION_PLAN: _projection(
        "tiers", _records(name=_string(), price=_string(""), features=_strings())
    ),
    ArtifactKind.COMPONENT_MAP: _projection(
        "components", _records(name=_string(), purpose=_string(""), children=_strings())
    ),
    ArtifactKind.GTM_STRATEGY: _projection(
        "channels", _records(channel=_string(), tactic=_string(""))
    ),
    ArtifactKind.ESTIMATION_SPEC: _projection(
        "estimates", _records(module=_string(), effort=_string(""), notes=_string(""))
    ),
    ArtifactKind.API_CONTRACT: _projection(
        "endpoints", _records(path=_string(), method=_string("GET"), purpose=_string(""))
    ),
    ArtifactKind.TEXT: _projection(),
    ArtifactKind.CONSISTENCY_REPORT: _projection(),
    ArtifactKind.PROTOTYPE: PROTOTYPE_SCHEMA,
}


@dataclass(frozen=True)
class RoleSpec:
    """Static configuration of one role."""

    role: ExpertRole
    kind: ArtifactKind
    schema: dict[str, Any]
    task: str
    builder: PromptBuilder | None = None

    @property
    def label(self) -> str:
        return self.role.value

    def build_prompt(self, ctx: Any) -> str:
        if self.builder is None:
            from core.prompts import build_expert_prompt

            return build_expert_prompt(self, ctx)
        return self.builder(self, ctx)


class RoleRegistry:
    """Registry of role specifications."""

    def __init__(self) -> None:
        self._specs: dict[ExpertRole, RoleSpec] = {}

    def register(self, spec: RoleSpec) -> None:
        self._specs[spec.role] = spec

    def get(self, role: ExpertRole) -> RoleSpec:
        try:
            return self._specs[role]
        except KeyError:
            raise KeyError(f"no spec registered for role {role.value!r}") from None

    def __contains__(self, role: object) -> bool:
        return role in self._specs

    def list(self) -> list[RoleSpec]:
        return list(self._specs.values())


registry = RoleRegistry()


def _register(role: ExpertRole, kind: ArtifactKind, task: str, schema: dict[str, Any] | None = None) -> None:
    registry.register(RoleSpec(role=role, kind=kind, schema=schema or PROJECTION_SCHEMAS[kind], task=task))


_register(
    ExpertRole.INTENT,
    ArtifactKind.TEXT,
    "Extract the primary objective, the target audience and the key constraints.",
    INTENT_SCHEMA,
)
_register(
    ExpertRole.CARTOGRAPHER,
    ArtifactKind.TEXT,
    "Design the application map as main modules with descriptions and key features.",
    APP_MAP_SCHEMA,
)
_register(ExpertRole.UX, ArtifactKind.UX_FLOW, "Define a 4-step user journey.")
_register(
    ExpertRole.UI,
    ArtifactKind.UI_LAYOUT,
    "Propose the dashboard layout as named zones listing the modules each one holds.",
)
_register(ExpertRole.DATA, ArtifactKind.DATA_SCHEMA, "Define the core database entities and their fields.")
_register(
    ExpertRole.COMPONENT,
    ArtifactKind.COMPONENT_MAP,
    "Break the interface into reusable components with their purpose and child components.",
)
_register(
    ExpertRole.CONSISTENCY,
    ArtifactKind.CONSISTENCY_REPORT,
    "Review the application map and the foundation artifacts for gaps, contradictions and naming drift.",
)
_register(
    ExpertRole.SIMPLIFIER,
    ArtifactKind.TEXT,
    "Propose cuts and simplifications that keep the core value while reducing scope.",
)
_register(
    ExpertRole.RISK,
    ArtifactKind.RISK_ANALYSIS,
    "Identify the main delivery and complexity risks with a severity and a mitigation each.",
)
_register(
    ExpertRole.PERSONA,
    ArtifactKind.PERSONA_PROFILE,
    "Describe 3 target personas with their role, goals and frustrations.",
)
_register(
    ExpertRole.PRICING,
    ArtifactKind.MONETIZATION_PLAN,
    "Design monetization tiers with a price point and the features included in each.",
)
_register(ExpertRole.GTM, ArtifactKind.GTM_STRATEGY, "Plan the go-to-market channels and the launch tactic for each.")
_register(
    ExpertRole.TECH_STACK,
    ArtifactKind.TECH_ROADMAP,
    "Recommend a technology stack as a mapping from layer (frontend, backend, database, hosting) to technology.",
)
_register(ExpertRole.API_CONTRACT, ArtifactKind.API_CONTRACT, "Design the main API endpoints with method and purpose.")
_register(ExpertRole.ESTIMATION, ArtifactKind.ESTIMATION_SPEC, "Estimate the delivery effort for each application module.")
_register(
    ExpertRole.PROTOTYPER,
    ArtifactKind.PROTOTYPE,
    "Create a high-fidelity HTML/Tailwind CSS interactive prototype.",
)


__all__ = [
    "FALLBACK_SUMMARY",
    "INTENT_SCHEMA",
    "APP_MAP_SCHEMA",
    "PROJECTION_FIELDS",
    "PROJECTION_SCHEMAS",
    "RoleSpec",
    "RoleRegistry",
    "registry",
]
