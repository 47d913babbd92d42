"""OpenRouter responder: persona answers from a remote chat-completions model."""

import os
import logging
from typing import Dict, Any, Optional

import httpx
from dotenv import load_dotenv

from ..council.utils import strip_placeholder_images
from ..errors import PersonaInputError, ResponderNetworkError, ResponderTimeoutError
from ..models import Advisor, PersonaConfig
from .base import PersonaResponder, build_persona_messages, validate_prompt

logger = logging.getLogger(__name__)

load_dotenv()

OPENROUTER_BASE_URL = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY", "")
DEFAULT_MODEL = "openai/gpt-4o-mini"


class OpenRouterResponder(PersonaResponder):
    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = 0.4,
        max_tokens: int = 600,
        connection_timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.model = model
        self.api_key = api_key if api_key is not None else OPENROUTER_API_KEY
        self.base_url = (base_url or OPENROUTER_BASE_URL).rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.connection_timeout = connection_timeout
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
            "X-Title": "Advisory Board",
        }

    def _payload(self, prompt: str, persona: PersonaConfig, session_context: Optional[str]) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": build_persona_messages(prompt, persona, session_context),
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    async def respond(
        self,
        advisor: Advisor,
        prompt: str,
        persona: PersonaConfig,
        session_context: Optional[str] = None,
    ) -> str:
        prompt = validate_prompt(prompt)
        payload = self._payload(prompt, persona, session_context)

        # The orchestrator owns the overall deadline; only bound the connect phase here
        timeout_config = httpx.Timeout(None, connect=self.connection_timeout)
        try:
            async with httpx.AsyncClient(timeout=timeout_config, transport=self.transport) as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    headers=self._headers(),
                    json=payload,
                )
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            raise ResponderTimeoutError(f"Request to {self.model} timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            logger.warning("HTTP error querying %s for %s: %s", self.model, advisor.id, e)
            logger.debug("Response: %s", e.response.text[:500])
            raise ResponderNetworkError(
                f"{self.model} returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise ResponderNetworkError(f"Connection to {self.model} failed: {e}") from e

        try:
            choice = data["choices"][0]["message"]
        except (KeyError, IndexError, TypeError) as e:
            raise ResponderNetworkError(f"Malformed completion from {self.model}") from e

        content = choice.get("content") or choice.get("reasoning_content") or ""
        content = strip_placeholder_images(content)
        if not content:
            raise PersonaInputError(f"Empty persona response from {self.model} for {advisor.name}")
        return content
