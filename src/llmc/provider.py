from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from llmc.errors import InvalidArgumentError
from llmc.sessions.models import Message

if TYPE_CHECKING:
    from llmc.app_config import RuntimeEnv, Settings

SUPPORTED_PROVIDERS = ("anthropic", "gemini", "openai")


@runtime_checkable
class ConversationalResponder(Protocol):
    """The only view the session core has of an LLM provider."""

    @property
    def model(self) -> str: ...

    async def chat(self, message: str) -> str:
        """Send a single message without history and return the reply text."""
        ...

    async def chat_with_history(
        self,
        system_prompt: str | None,
        history: list[Message],
        new_message: str,
    ) -> str:
        """Send ``new_message`` after ``history`` (oldest first) and return the reply text."""
        ...


def create_responder(settings: Settings, env: RuntimeEnv) -> ConversationalResponder:
    """Factory: build the responder for ``settings.model`` (``provider:model``)."""
    name = settings.provider_name.strip().lower()
    if not env.provider_api_key:
        raise InvalidArgumentError(f"{env.provider_env_var} environment variable is required.")

    kwargs = {
        "api_key": env.provider_api_key,
        "model": settings.model_name,
        "max_tokens": settings.max_tokens,
        "temperature": settings.temperature,
        "base_url": settings.base_url_for(name),
    }
    if name == "anthropic":
        from llmc.providers.anthropic_provider import AnthropicProvider
        return AnthropicProvider(**kwargs)
    if name == "openai":
        from llmc.providers.openai_provider import OpenAIProvider
        return OpenAIProvider(**kwargs)
    if name == "gemini":
        from llmc.providers.openai_provider import GeminiProvider
        return GeminiProvider(**kwargs)
    raise InvalidArgumentError(
        f"unsupported provider: {settings.provider_name} (supported: {', '.join(SUPPORTED_PROVIDERS)})"
    )
