"""Abstract base class for persona responders."""

from abc import ABC, abstractmethod
from typing import List, Dict, Optional

from ..errors import PersonaInputError
from ..models import Advisor, PersonaConfig


class PersonaResponder(ABC):
    """Turns an advisor persona plus a prompt into response text.

    Implementations may be a local template engine or a remote language model.
    Callers must not assume success, a latency bound or determinism. Failures
    should be raised as PersonaResponderError subclasses so they can be
    classified without inspecting messages.
    """

    @abstractmethod
    async def respond(
        self,
        advisor: Advisor,
        prompt: str,
        persona: PersonaConfig,
        session_context: Optional[str] = None,
    ) -> str:
        ...


def validate_prompt(prompt: str) -> str:
    if not prompt or not prompt.strip():
        raise PersonaInputError("Prompt cannot be empty")
    return prompt.strip()


def build_system_prompt(persona: PersonaConfig) -> str:
    lines = [
        f"You are {persona.name}, an expert advisor in {persona.expertise}.",
        f"Background: {persona.background}",
        f"Tone: {persona.tone}.",
    ]
    if persona.specialization:
        lines.append(f"Specializations: {', '.join(persona.specialization)}.")
    lines.append(
        "Answer from your own professional perspective. Give concrete, actionable "
        "recommendations and say plainly what is important or critical."
    )
    return "\n".join(lines)


def build_persona_messages(
    prompt: str,
    persona: PersonaConfig,
    session_context: Optional[str] = None,
) -> List[Dict[str, str]]:
    """Chat messages for one persona: system prompt, optional context, question."""
    messages = [{"role": "system", "content": build_system_prompt(persona)}]
    if session_context:
        messages.append({
            "role": "user",
            "content": f"Context from earlier in this consultation:\n{session_context}",
        })
    messages.append({"role": "user", "content": prompt})
    return messages
