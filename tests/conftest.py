import asyncio
import json

import pytest

from core.prompts import example_payload
from utils.config import SolverSettings
from utils.errors import TransientCallError

MODULES = [
    {"name": "Onboarding", "description": "Account setup", "features": ["signup"]},
    {"name": "Dashboard", "description": "Daily overview", "features": ["widgets"]},
]


def role_of(prompt: str) -> str:
    """Return the role label a prompt was built for."""
    if prompt.startswith("Role: "):
        return prompt[len("Role: ") :].split(".", 1)[0]
    if prompt.startswith("Expert Task:"):
        return "Synthesis Expert"
    return "unknown"


class FakeModel:
    """Scripted model client keyed by role label.

    ``fail`` maps a role to the number of leading calls that raise
    (``None`` means every call fails).  ``replies`` overrides the text
    returned for a role.  ``gate`` holds roles until the event is set.
    """

    def __init__(self, fail=None, replies=None, gate=None, error=TransientCallError):
        self.fail = dict(fail or {})
        self.replies = dict(replies or {})
        self.gate = gate
        self.error = error
        self.calls = []

    def count(self, role: str) -> int:
        return self.calls.count(role)

    async def generate(self, prompt, shape_hint=None):
        role = role_of(prompt)
        self.calls.append(role)
        await asyncio.sleep(0)
        if self.gate is not None and role in self.gate[0]:
            await self.gate[1].wait()
        if role in self.fail:
            limit = self.fail[role]
            if limit is None or self.count(role) <= limit:
                raise self.error(f"{role} unavailable")
        if role in self.replies:
            return self.replies[role]
        if role == "Intent Analyst":
            return json.dumps({"goal": "Help teams plan sprints", "target": "Small teams", "constraints": ["Web only"]})
        if role == "Product Cartographer":
            return json.dumps({"modules": MODULES})
        if shape_hint is None:
            return "```html\n<html><body><h1>Onboarding</h1></body></html>\n```"
        payload = example_payload(shape_hint)
        payload["summary"] = f"{role} plan covering Onboarding and Dashboard"
        payload["confidence"] = 0.8
        return json.dumps(payload)


@pytest.fixture
def settings():
    return SolverSettings(retry_delay_s=0.0, retry_cap_s=0.0)


@pytest.fixture
def fake_model():
    return FakeModel()


@pytest.fixture(autouse=True)
def _no_provider_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("DESIGN_SOLVER_MODEL", raising=False)
