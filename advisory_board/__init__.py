"""Advisory board: consult a panel of expert personas and synthesize their advice."""

from .council import (
    ConsultationOrchestrator,
    DispatchResult,
    QuestionAnalyzer,
    SummarySynthesizer,
    analyze_question,
)
from .errors import ConsultationError, ErrorKind, classify_error
from .models import (
    Advisor,
    AdvisorResponse,
    PersonaConfig,
    QuestionAnalysis,
    QuestionContext,
    ServiceConfig,
)
from .providers import (
    FallbackResponder,
    OpenRouterResponder,
    PersonaResponder,
    TemplateResponder,
    resolve_responder,
)
from .service import AdvisoryService, AdvisorNotFoundError, SessionNotFoundError, build_service

__all__ = [
    "Advisor",
    "AdvisorNotFoundError",
    "AdvisorResponse",
    "AdvisoryService",
    "ConsultationError",
    "ConsultationOrchestrator",
    "DispatchResult",
    "ErrorKind",
    "FallbackResponder",
    "OpenRouterResponder",
    "PersonaConfig",
    "PersonaResponder",
    "QuestionAnalysis",
    "QuestionAnalyzer",
    "QuestionContext",
    "ServiceConfig",
    "SessionNotFoundError",
    "SummarySynthesizer",
    "TemplateResponder",
    "analyze_question",
    "build_service",
    "classify_error",
    "resolve_responder",
]
