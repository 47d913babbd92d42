"""In-memory consultation sessions.

A session owns its advisors and one round per submitted question. Nothing is
persisted; a session lives as long as the store holding it.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional

from .errors import ConsultationError
from .models import Advisor, AdvisorResponse, QuestionAnalysis, QuestionContext


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ConsultationRound:
    """One question and everything the panel produced for it."""
    prompt: str
    responses: List[AdvisorResponse] = field(default_factory=list)
    errors: List[ConsultationError] = field(default_factory=list)
    analysis: Optional[QuestionAnalysis] = None
    summary: Optional[str] = None
    timestamp: datetime = field(default_factory=_now)

    def response_for(self, advisor_id: str) -> Optional[AdvisorResponse]:
        for response in self.responses:
            if response.advisor_id == advisor_id:
                return response
        return None

    def replace_response(self, response: AdvisorResponse):
        """Keep exactly one response per advisor: replace in place or append."""
        for i, existing in enumerate(self.responses):
            if existing.advisor_id == response.advisor_id:
                self.responses[i] = response
                break
        else:
            self.responses.append(response)
        self.errors = [e for e in self.errors if e.advisor_id != response.advisor_id]
        # The panel changed, so any earlier summary is stale
        self.summary = None

    def record_error(self, error: ConsultationError):
        self.errors = [e for e in self.errors if e.advisor_id != error.advisor_id]
        self.errors.append(error)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prompt": self.prompt,
            "timestamp": self.timestamp.isoformat(),
            "responses": [r.to_dict() for r in self.responses],
            "errors": [e.to_dict() for e in self.errors],
            "analysis": self.analysis.to_dict() if self.analysis else None,
            "summary": self.summary,
        }


@dataclass
class ConsultationSession:
    id: str
    advisors: List[Advisor]
    rounds: List[ConsultationRound] = field(default_factory=list)
    created_at: datetime = field(default_factory=_now)

    @property
    def current_round(self) -> Optional[ConsultationRound]:
        return self.rounds[-1] if self.rounds else None

    @property
    def prompt(self) -> Optional[str]:
        return self.current_round.prompt if self.current_round else None

    @property
    def responses(self) -> List[AdvisorResponse]:
        return list(self.current_round.responses) if self.current_round else []

    @property
    def previous_questions(self) -> List[str]:
        return [r.prompt for r in self.rounds]

    def find_advisor(self, advisor_id: str) -> Optional[Advisor]:
        for advisor in self.advisors:
            if advisor.id == advisor_id:
                return advisor
        return None

    def question_context(self) -> QuestionContext:
        return QuestionContext(session_id=self.id, previous_questions=self.previous_questions)

    def start_round(self, prompt: str) -> ConsultationRound:
        consultation_round = ConsultationRound(prompt=prompt)
        self.rounds.append(consultation_round)
        return consultation_round

    def to_dict(self, include_rounds: bool = True) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "advisors": [a.to_dict() for a in self.advisors],
            "round_count": len(self.rounds),
        }
        if include_rounds:
            data["rounds"] = [r.to_dict() for r in self.rounds]
        return data


class SessionStore:
    """Holds sessions in a dict keyed by session id."""

    def __init__(self):
        self._sessions: Dict[str, ConsultationSession] = {}

    def create(self, advisors: List[Advisor]) -> ConsultationSession:
        if not advisors:
            raise ValueError("No advisors provided for session initialization")
        session = ConsultationSession(id=f"session_{uuid.uuid4().hex}", advisors=list(advisors))
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> Optional[ConsultationSession]:
        return self._sessions.get(session_id)

    def list(self) -> List[ConsultationSession]:
        # Newest first
        return list(reversed(list(self._sessions.values())))

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None
