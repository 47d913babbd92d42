"""Consultation pipeline for the advisory board.

- Stage 0: Question analysis (domain, type, keywords, confidence, ...)
- Stage 1: Concurrent dispatch to every selected advisor with timeout/retry
- Stage 2: Synthesis of a consensus summary from the advisor responses
"""

from .analyzer import QuestionAnalyzer, analyze_question, MULTI_DOMAIN
from .dispatch import ConsultationOrchestrator, DispatchResult, build_persona_config, get_domain_tone
from .synthesis import SummarySynthesizer, infer_domain

__all__ = [
    "QuestionAnalyzer",
    "analyze_question",
    "MULTI_DOMAIN",
    "ConsultationOrchestrator",
    "DispatchResult",
    "build_persona_config",
    "get_domain_tone",
    "SummarySynthesizer",
    "infer_domain",
]
