"""Configuration for the advisory board service."""

import os
from typing import Optional
from dotenv import load_dotenv

from .config_loader import get_service_config, get_responder_config
from .models import ServiceConfig

load_dotenv()


def _env_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value not in (None, "") else None


def resolve_service_config() -> ServiceConfig:
    """YAML service policy with ADVISORY_* environment overrides applied."""
    return get_service_config().updated(
        timeout_ms=_env_int("ADVISORY_TIMEOUT_MS"),
        retry_attempts=_env_int("ADVISORY_RETRY_ATTEMPTS"),
        retry_delay_ms=_env_int("ADVISORY_RETRY_DELAY_MS"),
    )


def resolve_responder_id() -> str:
    return os.getenv("ADVISORY_RESPONDER") or get_responder_config().get("id", "template")


def resolve_responder_fallback() -> Optional[str]:
    return os.getenv("ADVISORY_RESPONDER_FALLBACK") or get_responder_config().get("fallback")
