"""Stage 1: Dispatch a prompt to every selected advisor concurrently.

Each advisor call runs under its own timeout and retry loop; one slow or failing
advisor never blocks or cancels another. A dispatch only fails as a whole when
every advisor has failed.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Callable

from ..errors import (
    BATCH_ADVISOR_ID, ConsultationError, ErrorKind, classify_error,
)
from ..models import Advisor, AdvisorResponse, PersonaConfig, ServiceConfig
from ..providers.base import PersonaResponder
from .utils import significant_tokens

logger = logging.getLogger(__name__)

EventCallback = Callable[[str, Dict[str, Any]], None]

DOMAIN_TONES = {
    "cliniboard": "professional, evidence-based, regulatory-focused",
    "eduboard": "pedagogical, inclusive, reform-minded",
    "remediboard": "holistic, traditional, wellness-oriented",
    "productboard": "strategic, data-driven, customer-focused",
}
DEFAULT_TONE = "professional, knowledgeable"
MAX_SPECIALIZATIONS = 5


def get_domain_tone(domain_id: str) -> str:
    return DOMAIN_TONES.get(domain_id, DEFAULT_TONE)


def build_persona_config(advisor: Advisor) -> PersonaConfig:
    """Fresh persona view of an advisor for a single response."""
    return PersonaConfig(
        name=advisor.name,
        expertise=advisor.expertise,
        background=advisor.background,
        tone=get_domain_tone(advisor.domain),
        specialization=significant_tokens(advisor.expertise, limit=MAX_SPECIALIZATIONS),
    )


@dataclass
class DispatchResult:
    responses: List[AdvisorResponse] = field(default_factory=list)
    errors: List[ConsultationError] = field(default_factory=list)


def _noop_event(event_type: str, data: Dict[str, Any]) -> None:
    pass


class ConsultationOrchestrator:
    """Drives concurrent advisor calls through a PersonaResponder."""

    def __init__(self, responder: PersonaResponder, config: Optional[ServiceConfig] = None):
        self.responder = responder
        config = config or ServiceConfig()
        config.validate()
        self._config = config

    # ---- configuration ----

    def get_config(self) -> ServiceConfig:
        # Frozen dataclass: handing out the reference is handing out a copy
        return self._config

    def update_config(self, **changes: Any) -> ServiceConfig:
        """Swap in a new config object; running dispatches keep their snapshot."""
        self._config = self._config.updated(**changes)
        logger.info("Service config updated: %s", self._config.to_dict())
        return self._config

    # ---- single advisor ----

    async def _call_once(
        self,
        advisor: Advisor,
        prompt: str,
        session_context: Optional[str],
        config: ServiceConfig,
    ) -> AdvisorResponse:
        persona = build_persona_config(advisor)
        try:
            content = await asyncio.wait_for(
                self.responder.respond(advisor, prompt, persona, session_context),
                timeout=config.timeout_ms / 1000,
            )
        except asyncio.TimeoutError:
            raise ConsultationError(
                f"Timeout waiting for response from {advisor.name}",
                advisor.id,
                ErrorKind.TIMEOUT,
            ) from None
        except ConsultationError:
            raise
        except Exception as e:
            raise ConsultationError(
                f"Failed to generate response for {advisor.name}: {e}",
                advisor.id,
                classify_error(e),
            ) from e

        return AdvisorResponse(advisor_id=advisor.id, content=content, persona=persona)

    async def _call_with_retry(
        self,
        advisor: Advisor,
        prompt: str,
        session_context: Optional[str],
        config: ServiceConfig,
        on_event: EventCallback,
    ) -> AdvisorResponse:
        last_error: Optional[ConsultationError] = None
        for attempt in range(1, config.retry_attempts + 1):
            try:
                return await self._call_once(advisor, prompt, session_context, config)
            except ConsultationError as e:
                last_error = e
                if attempt < config.retry_attempts:
                    wait_time = config.retry_delay_ms * attempt / 1000
                    logger.info(
                        "Retry %d for %s in %.2fs: %s",
                        attempt, advisor.id, wait_time, e.message,
                    )
                    on_event("advisor_retry", {
                        "advisor_id": advisor.id, "attempt": attempt, "kind": e.kind.value,
                    })
                    await asyncio.sleep(wait_time)

        logger.info("Advisor %s failed after %d attempts", advisor.id, config.retry_attempts)
        raise last_error

    async def dispatch_one(
        self,
        advisor: Advisor,
        prompt: str,
        session_context: Optional[str] = None,
        on_event: Optional[EventCallback] = None,
    ) -> AdvisorResponse:
        """Retry-wrapped call for one advisor; the final attempt's error propagates."""
        return await self._call_with_retry(
            advisor, prompt, session_context, self._config, on_event or _noop_event,
        )

    # ---- whole panel ----

    async def dispatch_all_detailed(
        self,
        advisors: List[Advisor],
        prompt: str,
        session_context: Optional[str] = None,
        on_event: Optional[EventCallback] = None,
    ) -> DispatchResult:
        """Dispatch to every advisor and partition the outcomes.

        Raises a batch-level UNKNOWN ConsultationError only when no advisor succeeded.
        """
        emit = on_event or _noop_event
        config = self._config

        # One call per advisor id keeps the result keyed 1:1
        unique: Dict[str, Advisor] = {}
        for advisor in advisors:
            unique.setdefault(advisor.id, advisor)
        panel = list(unique.values())

        emit("dispatch_init", {"total": len(panel)})

        async def run(advisor: Advisor) -> AdvisorResponse:
            response = await self._call_with_retry(advisor, prompt, session_context, config, emit)
            emit("advisor_complete", {"advisor_id": advisor.id})
            return response

        outcomes = await asyncio.gather(*(run(a) for a in panel), return_exceptions=True)

        result = DispatchResult()
        for advisor, outcome in zip(panel, outcomes):
            if isinstance(outcome, AdvisorResponse):
                result.responses.append(outcome)
                continue
            if isinstance(outcome, ConsultationError):
                error = outcome
            elif isinstance(outcome, Exception):
                error = ConsultationError(
                    f"Failed to get response from {advisor.name}: {outcome}",
                    advisor.id,
                    classify_error(outcome),
                )
            else:
                # CancelledError and friends are not advisor failures
                raise outcome
            result.errors.append(error)
            emit("advisor_error", error.to_dict())

        emit("dispatch_complete", {
            "succeeded": len(result.responses), "failed": len(result.errors),
        })

        if panel and not result.responses:
            logger.error("All %d advisor responses failed", len(panel))
            raise ConsultationError(
                "All advisor responses failed", BATCH_ADVISOR_ID, ErrorKind.UNKNOWN,
                errors=result.errors,
            )

        if result.errors:
            logger.warning(
                "Some advisor responses failed (%d of %d)", len(result.errors), len(panel),
            )
            for error in result.errors:
                logger.warning("  %s [%s]: %s", error.advisor_id, error.kind.value, error.message)

        return result

    async def dispatch_all(
        self,
        advisors: List[Advisor],
        prompt: str,
        session_context: Optional[str] = None,
        on_event: Optional[EventCallback] = None,
    ) -> List[AdvisorResponse]:
        result = await self.dispatch_all_detailed(advisors, prompt, session_context, on_event)
        return result.responses
