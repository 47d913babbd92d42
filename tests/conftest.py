"""
Shared fixtures for advisory board tests
"""

import asyncio
from typing import Dict, List, Optional

import pytest

from advisory_board.models import Advisor, AdvisorResponse, PersonaConfig, ServiceConfig
from advisory_board.providers.base import PersonaResponder


# ============ RESPONDER DOUBLES ============

class ScriptedResponder(PersonaResponder):
    """Replays a per-advisor script of outcomes, one step per call.

    A step is a response string, an exception to raise, or a float delay
    (seconds) followed by the next step. The last step repeats once the
    script runs out.
    """

    def __init__(self, scripts: Dict[str, List], default: str = "Default advice."):
        self.scripts = {k: list(v) for k, v in scripts.items()}
        self.default = default
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def _next(self, advisor_id: str):
        script = self.scripts.get(advisor_id)
        if not script:
            return self.default
        return script.pop(0) if len(script) > 1 else script[0]

    async def respond(self, advisor, prompt, persona, session_context=None):
        self.calls.append(advisor.id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            step = self._next(advisor.id)
            while isinstance(step, float):
                await asyncio.sleep(step)
                step = self._next(advisor.id)
            if isinstance(step, BaseException):
                raise step
            return step
        finally:
            self.in_flight -= 1

    def call_count(self, advisor_id: str) -> int:
        return self.calls.count(advisor_id)


# ============ SAMPLE DATA FIXTURES ============

def make_advisor(advisor_id: str, name: Optional[str] = None, expertise: str = "Product Strategy",
                 domain: str = "productboard") -> Advisor:
    return Advisor(
        id=advisor_id,
        name=name or advisor_id.upper(),
        expertise=expertise,
        background="Ten years in the field",
        domain=domain,
    )


def make_response(name: str, expertise: str, content: str, advisor_id: Optional[str] = None) -> AdvisorResponse:
    return AdvisorResponse(
        advisor_id=advisor_id or name.lower().replace(" ", "-"),
        content=content,
        persona=PersonaConfig(
            name=name,
            expertise=expertise,
            background="Ten years in the field",
            tone="professional",
        ),
    )


@pytest.fixture
def advisors() -> List[Advisor]:
    """Three product advisors with ids a, b, c."""
    return [make_advisor("a"), make_advisor("b"), make_advisor("c")]


@pytest.fixture
def fast_config() -> ServiceConfig:
    """Short timeouts and no backoff so failure paths run quickly."""
    return ServiceConfig(timeout_ms=200, retry_attempts=2, retry_delay_ms=0)
