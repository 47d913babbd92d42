"""Error taxonomy for consultations and the responders behind them."""

import asyncio
from enum import Enum
from typing import List, Optional

import httpx

# Sentinel advisor ids for errors that are not scoped to one advisor
BATCH_ADVISOR_ID = "multiple"
SUMMARY_ADVISOR_ID = "summary"


class ErrorKind(str, Enum):
    TIMEOUT = "TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    PERSONA_ERROR = "PERSONA_ERROR"
    UNKNOWN = "UNKNOWN"


class ConsultationError(Exception):
    """Raised by the consultation core, scoped to an advisor or a sentinel id."""

    def __init__(
        self,
        message: str,
        advisor_id: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        errors: Optional[List["ConsultationError"]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.advisor_id = advisor_id
        self.kind = ErrorKind(kind)
        # Per-advisor causes of a batch-level failure
        self.errors = list(errors or [])

    def to_dict(self):
        return {"advisor_id": self.advisor_id, "kind": self.kind.value, "message": self.message}

    def __repr__(self):
        return f"ConsultationError({self.kind.value}, advisor_id={self.advisor_id!r}, {self.message!r})"


class PersonaResponderError(Exception):
    """Base for errors raised by PersonaResponder implementations."""
    kind = ErrorKind.UNKNOWN


class ResponderTimeoutError(PersonaResponderError):
    kind = ErrorKind.TIMEOUT


class ResponderNetworkError(PersonaResponderError):
    kind = ErrorKind.NETWORK_ERROR


class PersonaInputError(PersonaResponderError):
    """Invalid input to response generation, e.g. an empty prompt."""
    kind = ErrorKind.PERSONA_ERROR


def _sniff_message(message: str) -> ErrorKind:
    message = message.lower()
    if "timeout" in message or "timed out" in message:
        return ErrorKind.TIMEOUT
    if "network" in message or "fetch" in message or "connection" in message:
        return ErrorKind.NETWORK_ERROR
    if "persona" in message:
        return ErrorKind.PERSONA_ERROR
    return ErrorKind.UNKNOWN


def classify_error(error: BaseException) -> ErrorKind:
    """Map an exception from a responder call to an ErrorKind.

    Typed errors carry their own kind; message sniffing is the last resort for
    opaque exceptions.
    """
    if isinstance(error, ConsultationError):
        return error.kind
    if isinstance(error, PersonaResponderError):
        return error.kind
    if isinstance(error, (asyncio.TimeoutError, httpx.TimeoutException)):
        return ErrorKind.TIMEOUT
    if isinstance(error, (httpx.TransportError, httpx.HTTPStatusError)):
        return ErrorKind.NETWORK_ERROR
    return _sniff_message(str(error))
