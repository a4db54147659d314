"""
Completion Gateway - forwards a conversation to one chat-completion provider.

Every provider failure is returned as a ProviderResult, never raised:
- ConfigurationMissing: no credential configured (no request is made)
- UpstreamRejected: the provider answered with an error status
- UpstreamUnreachable: the request could not be completed

A reachable provider that returns no text yields a fixed fallback message
instead of a failure. Calls are never retried, the returned text is never
rewritten, and no client-side timeout is set.
"""

import time
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import httpx
import openai

from app import config
from app.errors import ErrorKind
from app.models.chat import ChatTurn, ProviderResult
from app.logging_config import get_logger, log_with_context

logger = get_logger("chat")

EMPTY_CONTENT_MESSAGE = "No content returned. Try rephrasing your question."
DEFAULT_REJECTION_DETAIL = "Failed to get response from AI."
UNREACHABLE_DETAIL = "Server error while communicating with AI."


def assemble_messages(system_prompt: Optional[str], user_prompt: str,
                      prior_turns: Optional[Sequence[ChatTurn]] = None) -> List[dict]:
    """Order: system turn (if any), prior turns as given, then the user turn."""
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    for turn in prior_turns or []:
        messages.append(turn.to_message())
    messages.append({"role": "user", "content": user_prompt})
    return messages


class CompletionGateway(ABC):
    """Provider-agnostic interface for sending one conversation."""

    provider_name = "unknown"

    def __init__(self, model: str, api_key: Optional[str] = None):
        self.model = model
        self.api_key = api_key

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def missing_configuration_detail(self) -> str:
        return "Completion provider credential is not set."

    def send(self, system_prompt: Optional[str], user_prompt: str,
             prior_turns: Optional[Sequence[ChatTurn]] = None) -> ProviderResult:
        """Send one conversation and normalize the outcome."""
        if not self.is_configured:
            log_with_context(logger, "ERROR", self.missing_configuration_detail,
                             context={"provider": self.provider_name})
            return ProviderResult.failure(ErrorKind.CONFIGURATION_MISSING, self.missing_configuration_detail)

        messages = assemble_messages(system_prompt, user_prompt, prior_turns)
        start_time = time.time()
        result = self._complete(messages)
        duration_ms = (time.time() - start_time) * 1000

        if result.success:
            log_with_context(logger, "INFO", "Completion received from {}".format(self.model),
                             context={"provider": self.provider_name},
                             extra_data={"duration_ms": round(duration_ms, 2), "turns": len(messages)})
        else:
            log_with_context(logger, "WARNING",
                             "Completion failed ({}): {}".format(result.error_kind.value, result.detail),
                             context={"provider": self.provider_name},
                             extra_data={"duration_ms": round(duration_ms, 2),
                                         "upstream_status": result.upstream_status})
        return result

    @abstractmethod
    def _complete(self, messages: List[dict]) -> ProviderResult:
        """Perform the provider call for already-assembled messages."""


def _error_detail(payload) -> str:
    """Pull the provider's own error message out of an error body, if it has one."""
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
    return DEFAULT_REJECTION_DETAIL


def _sdk_error_detail(error: "openai.APIStatusError") -> str:
    body = error.body
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return _error_detail(body)


def _first_content(payload) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message") or {}
    content = message.get("content") if isinstance(message, dict) else None
    return content if isinstance(content, str) and content else None


class OpenRouterGateway(CompletionGateway):
    """Calls an OpenAI-compatible /chat/completions endpoint over HTTP (OpenRouter by default)."""

    provider_name = "openrouter"

    def __init__(self, api_key: Optional[str] = None, model: str = None, base_url: str = None,
                 referer: str = None, title: str = None, temperature: float = None,
                 max_tokens: Optional[int] = None, client: httpx.Client = None):
        super().__init__(model=model or config.OPENROUTER_MODEL, api_key=api_key)
        self.base_url = (base_url or config.OPENROUTER_BASE_URL).rstrip("/")
        self.referer = referer or config.FRONTEND_URL
        self.title = title or config.CHAT_APP_TITLE
        self.temperature = config.COMPLETION_TEMPERATURE if temperature is None else temperature
        self.max_tokens = max_tokens
        self.client = client or httpx.Client(timeout=None)

    @property
    def missing_configuration_detail(self) -> str:
        return "OPENROUTER_API_KEY is not set."

    def _complete(self, messages: List[dict]) -> ProviderResult:
        body = {"model": self.model, "messages": messages, "temperature": self.temperature}
        if self.max_tokens:
            body["max_tokens"] = self.max_tokens

        try:
            response = self.client.post(
                f"{self.base_url}/chat/completions",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                    "HTTP-Referer": self.referer,
                    "X-Title": self.title,
                },
                json=body,
            )
        except httpx.RequestError as e:
            log_with_context(logger, "ERROR", "OpenRouter request failed: {}".format(e),
                             context={"provider": self.provider_name})
            return ProviderResult.failure(ErrorKind.UPSTREAM_UNREACHABLE, UNREACHABLE_DETAIL)

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not response.is_success:
            return ProviderResult.failure(ErrorKind.UPSTREAM_REJECTED, _error_detail(payload),
                                          upstream_status=response.status_code)

        content = _first_content(payload)
        return ProviderResult.ok(content or EMPTY_CONTENT_MESSAGE, model=self.model)


class OpenAIGateway(CompletionGateway):
    """Calls the OpenAI Chat Completions API through the official SDK."""

    provider_name = "openai"

    def __init__(self, api_key: Optional[str] = None, model: str = None, temperature: float = None,
                 max_tokens: Optional[int] = None, client: "openai.OpenAI" = None):
        super().__init__(model=model or config.OPENAI_MODEL, api_key=api_key)
        self.temperature = config.COMPLETION_TEMPERATURE if temperature is None else temperature
        self.max_tokens = max_tokens or config.OPENAI_DEFAULT_MAX_TOKENS
        self._client = client

    @property
    def missing_configuration_detail(self) -> str:
        return "OPENAI_API_KEY is not set."

    @property
    def client(self) -> "openai.OpenAI":
        # The SDK refuses to construct without a key, so build on first use.
        if self._client is None:
            self._client = openai.OpenAI(api_key=self.api_key, timeout=None, max_retries=0)
        return self._client

    def _complete(self, messages: List[dict]) -> ProviderResult:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except openai.APIStatusError as e:
            return ProviderResult.failure(ErrorKind.UPSTREAM_REJECTED, _sdk_error_detail(e),
                                          upstream_status=e.status_code)
        except openai.APIConnectionError as e:
            log_with_context(logger, "ERROR", "OpenAI request failed: {}".format(e),
                             context={"provider": self.provider_name})
            return ProviderResult.failure(ErrorKind.UPSTREAM_UNREACHABLE, UNREACHABLE_DETAIL)
        except openai.OpenAIError as e:
            log_with_context(logger, "ERROR", "OpenAI response could not be used: {}".format(e),
                             context={"provider": self.provider_name})
            return ProviderResult.failure(ErrorKind.UPSTREAM_REJECTED, str(e) or DEFAULT_REJECTION_DETAIL)

        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None
        return ProviderResult.ok(content or EMPTY_CONTENT_MESSAGE, model=self.model)


def build_gateway(provider: str = None) -> CompletionGateway:
    """Create the gateway for the configured provider."""
    provider = (provider or config.COMPLETION_PROVIDER).lower()
    if provider == "openai":
        return OpenAIGateway(api_key=config.OPENAI_API_KEY, max_tokens=config.COMPLETION_MAX_TOKENS)
    if provider == "openrouter":
        return OpenRouterGateway(api_key=config.OPENROUTER_API_KEY, max_tokens=config.COMPLETION_MAX_TOKENS)
    raise ValueError("Unknown COMPLETION_PROVIDER: {}".format(provider))
