"""Data model for advisory board consultations."""

from dataclasses import dataclass, field, asdict, fields, replace
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional


@dataclass(frozen=True)
class Advisor:
    """An expert identity questions are addressed to."""
    id: str
    name: str
    expertise: str
    background: str
    domain: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PersonaConfig:
    """Derived, read-only presentation of an Advisor for one response."""
    name: str
    expertise: str
    background: str
    tone: str
    specialization: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AdvisorResponse:
    advisor_id: str
    content: str
    persona: PersonaConfig
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "advisor_id": self.advisor_id,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "persona": self.persona.to_dict(),
        }


@dataclass
class QuestionContext:
    session_id: Optional[str] = None
    previous_questions: List[str] = field(default_factory=list)
    user_intent: Optional[str] = None
    follow_up_indicators: List[str] = field(default_factory=list)
    related_topics: List[str] = field(default_factory=list)


@dataclass
class QuestionAnalysis:
    type: str
    domain: str
    keywords: List[str]
    confidence: float
    complexity: str
    sentiment: str
    urgency: str
    context: Optional[QuestionContext] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ServiceConfig:
    """Dispatch policy shared by every call of one orchestrator.

    Times are in milliseconds.
    """
    timeout_ms: int = 30000
    retry_attempts: int = 3
    retry_delay_ms: int = 1000

    def updated(self, **changes: Any) -> "ServiceConfig":
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown service config field(s): {', '.join(sorted(unknown))}")
        new = replace(self, **{k: v for k, v in changes.items() if v is not None})
        new.validate()
        return new

    def validate(self):
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
        if self.retry_attempts < 1:
            raise ValueError("retry_attempts must be at least 1")
        if self.retry_delay_ms < 0:
            raise ValueError("retry_delay_ms cannot be negative")

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)
