"""Fallback responder: try responders in order until one answers."""

import logging
from typing import List, Optional

from ..models import Advisor, PersonaConfig
from .base import PersonaResponder, validate_prompt

logger = logging.getLogger(__name__)


class FallbackResponder(PersonaResponder):
    """Chains responders, primary first.

    A failing responder hands the call to the next one; only the last
    responder's error propagates. A blank prompt is rejected before any
    responder runs.
    """

    def __init__(self, responders: List[PersonaResponder]):
        if not responders:
            raise ValueError("FallbackResponder needs at least one responder")
        self.responders = list(responders)

    async def respond(
        self,
        advisor: Advisor,
        prompt: str,
        persona: PersonaConfig,
        session_context: Optional[str] = None,
    ) -> str:
        validate_prompt(prompt)
        last = len(self.responders) - 1
        for i, responder in enumerate(self.responders):
            try:
                return await responder.respond(advisor, prompt, persona, session_context)
            except Exception as e:
                if i == last:
                    raise
                logger.warning(
                    "%s failed for %s, falling back to %s: %s",
                    type(responder).__name__, advisor.id,
                    type(self.responders[i + 1]).__name__, e,
                )
