"""AdvisoryService: the operations exposed to API and CLI layers.

This is the one place where the analyzer, orchestrator, synthesizer and the
session store are wired together; `build_service()` is the composition point
that reads configuration.
"""

import logging
import random
from typing import List, Optional, Any

from .config import resolve_service_config, resolve_responder_id, resolve_responder_fallback
from .config_loader import get_responder_config, get_responder_latency, get_summary_latency
from .council import ConsultationOrchestrator, QuestionAnalyzer, SummarySynthesizer
from .council.dispatch import EventCallback
from .errors import ConsultationError, ErrorKind
from .models import Advisor, AdvisorResponse, QuestionAnalysis, QuestionContext, ServiceConfig
from .providers import resolve_responder
from .session import ConsultationRound, ConsultationSession, SessionStore

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    pass


class AdvisorNotFoundError(KeyError):
    pass


class AdvisoryService:
    def __init__(
        self,
        orchestrator: ConsultationOrchestrator,
        synthesizer: Optional[SummarySynthesizer] = None,
        analyzer: Optional[QuestionAnalyzer] = None,
        store: Optional[SessionStore] = None,
    ):
        self.orchestrator = orchestrator
        self.synthesizer = synthesizer or SummarySynthesizer()
        self.analyzer = analyzer or QuestionAnalyzer()
        self.store = store or SessionStore()

    # ---- analysis ----

    def analyze_question(self, question: str, context: Optional[QuestionContext] = None) -> QuestionAnalysis:
        return self.analyzer.analyze(question, context)

    # ---- sessions ----

    def create_session(self, advisors: List[Advisor]) -> ConsultationSession:
        session = self.store.create(advisors)
        logger.info("Created %s with %d advisors", session.id, len(advisors))
        return session

    def get_session(self, session_id: str) -> ConsultationSession:
        session = self.store.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def list_sessions(self) -> List[ConsultationSession]:
        return self.store.list()

    def delete_session(self, session_id: str) -> bool:
        return self.store.delete(session_id)

    # ---- consultation ----

    async def submit_consultation(
        self,
        session_id: str,
        prompt: str,
        session_context: Optional[str] = None,
        on_event: Optional[EventCallback] = None,
    ) -> List[AdvisorResponse]:
        """Ask the session's panel a new question.

        Partial failures are recorded on the round and returned through
        `session.current_round.errors`; only a total failure raises.
        """
        session = self.get_session(session_id)
        if not prompt or not prompt.strip():
            raise ConsultationError("Prompt cannot be empty", session_id, ErrorKind.PERSONA_ERROR)

        analysis = self.analyzer.analyze(prompt, session.question_context())
        consultation_round = session.start_round(prompt)
        consultation_round.analysis = analysis

        try:
            result = await self.orchestrator.dispatch_all_detailed(
                session.advisors, prompt, session_context, on_event,
            )
        except ConsultationError as e:
            self._merge_errors(consultation_round, e.errors)
            raise

        # A retry may have landed on this round while the dispatch was in flight
        for response in result.responses:
            if consultation_round.response_for(response.advisor_id) is None:
                consultation_round.replace_response(response)
        self._merge_errors(consultation_round, result.errors)
        return list(result.responses)

    @staticmethod
    def _merge_errors(consultation_round: ConsultationRound, errors: List[ConsultationError]):
        for error in errors:
            if consultation_round.response_for(error.advisor_id) is None:
                consultation_round.record_error(error)

    async def retry_advisor(
        self,
        session_id: str,
        advisor_id: str,
        prompt: Optional[str] = None,
        session_context: Optional[str] = None,
    ) -> AdvisorResponse:
        """Re-ask one advisor; on success its response replaces the previous one.

        A prompt that differs from the current round's question opens a new
        round, so one round never mixes answers to different questions.
        """
        session = self.get_session(session_id)
        advisor = session.find_advisor(advisor_id)
        if advisor is None:
            raise AdvisorNotFoundError(advisor_id)

        consultation_round = session.current_round
        prompt = prompt or (consultation_round.prompt if consultation_round else None)
        if not prompt or not prompt.strip():
            raise ConsultationError("No prompt to retry with", advisor_id, ErrorKind.PERSONA_ERROR)
        if consultation_round is None or prompt != consultation_round.prompt:
            analysis = self.analyzer.analyze(prompt, session.question_context())
            consultation_round = session.start_round(prompt)
            consultation_round.analysis = analysis

        try:
            response = await self.orchestrator.dispatch_one(advisor, prompt, session_context)
        except ConsultationError as e:
            consultation_round.record_error(e)
            raise

        consultation_round.replace_response(response)
        return response

    # ---- summaries ----

    async def summarize_responses(self, responses: List[AdvisorResponse], original_prompt: str) -> str:
        return await self.synthesizer.summarize(responses, original_prompt)

    async def summarize_session(self, session_id: str) -> str:
        session = self.get_session(session_id)
        consultation_round = session.current_round
        if consultation_round is None:
            raise ConsultationError("Nothing to summarize yet", session_id, ErrorKind.PERSONA_ERROR)
        summary = await self.synthesizer.summarize(consultation_round.responses, consultation_round.prompt)
        consultation_round.summary = summary
        return summary

    # ---- config ----

    def get_service_config(self) -> ServiceConfig:
        return self.orchestrator.get_config()

    def update_service_config(self, **changes: Any) -> ServiceConfig:
        return self.orchestrator.update_config(**changes)


def build_service(rng: Optional[random.Random] = None) -> AdvisoryService:
    """Compose an AdvisoryService from YAML config and environment overrides."""
    config = resolve_service_config()
    responder_id = resolve_responder_id()
    responder_config = get_responder_config()

    options = {}
    if responder_id != "template":
        options = {
            "temperature": float(responder_config.get("temperature", 0.4)),
            "max_tokens": int(responder_config.get("max_tokens", 600)),
        }
    responder = resolve_responder(
        responder_id,
        rng=rng,
        latency_ms=get_responder_latency(),
        fallback=resolve_responder_fallback(),
        **options,
    )
    logger.info("Using responder %s (%s) with %s", responder_id, type(responder).__name__, config.to_dict())

    return AdvisoryService(
        orchestrator=ConsultationOrchestrator(responder, config),
        synthesizer=SummarySynthesizer(
            latency_ms=get_summary_latency(), timeout_ms=config.timeout_ms,
        ),
    )
