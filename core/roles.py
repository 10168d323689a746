from __future__ import annotations

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class ExpertRole(str, Enum):
    # foundation
    INTENT = "Intent Analyst"
    CARTOGRAPHER = "Product Cartographer"
    UX = "UX Expert"
    UI = "UI Expert"
    DATA = "Data Architect"
    COMPONENT = "Component Expert"

    # quality
    CONSISTENCY = "Consistency Guardian"
    SIMPLIFIER = "Simplification Expert"
    RISK = "Risk & Complexity Analyst"

    # business
    PERSONA = "Persona Specialist"
    PRICING = "Monetization Strategist"
    GTM = "Go-To-Market Lead"

    # technical
    TECH_STACK = "Tech Stack Architect"
    API_CONTRACT = "API Contract Designer"
    ESTIMATION = "Estimation Lead"

    # projection
    PROTOTYPER = "Synthesis Expert"


class ArtifactKind(str, Enum):
    TEXT = "text"
    UI_LAYOUT = "ui-layout"
    DATA_SCHEMA = "data-schema"
    UX_FLOW = "ux-flow"
    PROTOTYPE = "prototype"
    COMPONENT_MAP = "component-map"
    CONSISTENCY_REPORT = "consistency-report"
    PERSONA_PROFILE = "persona-profile"
    RISK_ANALYSIS = "risk-analysis"
    MONETIZATION_PLAN = "monetization-plan"
    TECH_ROADMAP = "tech-roadmap"
    GTM_STRATEGY = "gtm-strategy"
    ESTIMATION_SPEC = "estimation-spec"
    API_CONTRACT = "api-contract"


# Sequential stages that run before any expert and abort the run on failure.
BLOCKING_ROLES = (ExpertRole.INTENT, ExpertRole.CARTOGRAPHER)

# Roles whose output later roles may reference.
FOUNDATION_ROLES = (ExpertRole.UX, ExpertRole.UI, ExpertRole.PERSONA)

CANON = {
    "intent": ExpertRole.INTENT,
    "intent analyst": ExpertRole.INTENT,
    "cartographer": ExpertRole.CARTOGRAPHER,
    "cartography": ExpertRole.CARTOGRAPHER,
    "product cartographer": ExpertRole.CARTOGRAPHER,
    "ux": ExpertRole.UX,
    "ux expert": ExpertRole.UX,
    "ui": ExpertRole.UI,
    "ui expert": ExpertRole.UI,
    "data": ExpertRole.DATA,
    "data architect": ExpertRole.DATA,
    "component": ExpertRole.COMPONENT,
    "components": ExpertRole.COMPONENT,
    "component expert": ExpertRole.COMPONENT,
    "consistency": ExpertRole.CONSISTENCY,
    "consistency guardian": ExpertRole.CONSISTENCY,
    "simplification": ExpertRole.SIMPLIFIER,
    "simplifier": ExpertRole.SIMPLIFIER,
    "simplification expert": ExpertRole.SIMPLIFIER,
    "risk": ExpertRole.RISK,
    "risk & complexity analyst": ExpertRole.RISK,
    "persona": ExpertRole.PERSONA,
    "personas": ExpertRole.PERSONA,
    "persona specialist": ExpertRole.PERSONA,
    "pricing": ExpertRole.PRICING,
    "monetization": ExpertRole.PRICING,
    "monetization strategist": ExpertRole.PRICING,
    "gtm": ExpertRole.GTM,
    "go-to-market": ExpertRole.GTM,
    "go-to-market lead": ExpertRole.GTM,
    "tech stack": ExpertRole.TECH_STACK,
    "tech-stack": ExpertRole.TECH_STACK,
    "tech stack architect": ExpertRole.TECH_STACK,
    "api": ExpertRole.API_CONTRACT,
    "api contract": ExpertRole.API_CONTRACT,
    "api contract designer": ExpertRole.API_CONTRACT,
    "estimation": ExpertRole.ESTIMATION,
    "estimation lead": ExpertRole.ESTIMATION,
    "synthesis": ExpertRole.PROTOTYPER,
    "prototyper": ExpertRole.PROTOTYPER,
    "synthesis expert": ExpertRole.PROTOTYPER,
}


def normalize_role(role: str | ExpertRole | None) -> ExpertRole | None:
    """Map a loose role name (enum name, display value or alias) to a role."""
    if role is None:
        return None
    if isinstance(role, ExpertRole):
        return role
    r = " ".join(str(role).split()).strip()
    if not r:
        return None
    hit = CANON.get(r.lower())
    if hit is not None:
        return hit
    try:
        return ExpertRole[r.upper().replace("-", "_").replace(" ", "_")]
    except KeyError:
        logger.debug("unknown role=%r", r)
        return None
