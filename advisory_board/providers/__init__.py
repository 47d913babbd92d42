"""Persona responder routing.

Responder ids are routed by prefix:
  - "template": local template engine (no network)
  - "openrouter:<model>" (e.g. "openrouter:openai/gpt-4o-mini"): OpenRouter
  - bare "vendor/model" ids (e.g. "anthropic/claude-3.5-haiku"): OpenRouter

A `fallback` id wraps the primary in a FallbackResponder, so a failed remote
call is answered by the fallback (typically "template") instead.
"""

import random
from typing import Optional, Tuple

from .base import PersonaResponder, build_persona_messages, build_system_prompt
from .fallback_provider import FallbackResponder
from .openrouter_provider import OpenRouterResponder
from .template_provider import TemplateResponder

TEMPLATE_ID = "template"


def resolve_responder(
    responder_id: str,
    rng: Optional[random.Random] = None,
    latency_ms: Tuple[int, int] = (0, 0),
    fallback: Optional[str] = None,
    **options,
) -> PersonaResponder:
    """Build the responder for a responder id.

    Examples:
      "template"                       -> TemplateResponder
      "openrouter:openai/gpt-4o-mini"  -> OpenRouterResponder(model="openai/gpt-4o-mini")
      "anthropic/claude-3.5-haiku"     -> OpenRouterResponder(model="anthropic/claude-3.5-haiku")
      "openai/gpt-4o-mini", fallback="template"
                                       -> FallbackResponder([OpenRouterResponder, TemplateResponder])
    """
    responder_id = (responder_id or TEMPLATE_ID).strip()
    fallback = (fallback or "").strip()

    primary = _resolve_one(responder_id, rng, latency_ms, **options)
    if not fallback or fallback == responder_id:
        return primary
    return FallbackResponder([primary, _resolve_one(fallback, rng, latency_ms, **options)])


def _resolve_one(
    responder_id: str,
    rng: Optional[random.Random],
    latency_ms: Tuple[int, int],
    **options,
) -> PersonaResponder:
    if responder_id == TEMPLATE_ID:
        return TemplateResponder(rng=rng, latency_ms=latency_ms)

    if responder_id.startswith("openrouter:"):
        return OpenRouterResponder(model=responder_id[len("openrouter:"):], **options)

    if "/" in responder_id:
        return OpenRouterResponder(model=responder_id, **options)

    raise ValueError(f"Unknown responder: {responder_id}")


__all__ = [
    "PersonaResponder",
    "TemplateResponder",
    "OpenRouterResponder",
    "build_persona_messages",
    "build_system_prompt",
    "FallbackResponder",
    "resolve_responder",
]
