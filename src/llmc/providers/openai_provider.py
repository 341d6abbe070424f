import openai
from loguru import logger
from tenacity import retry

from llmc.errors import UpstreamError
from llmc.providers.common import default_retry_kwargs, history_to_dicts
from llmc.sessions.models import Message

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"

_RETRYABLE = (
    openai.RateLimitError,
    openai.APIConnectionError,
    openai.APITimeoutError,
)


def _to_openai_messages(system_prompt: str | None, messages: list[dict]) -> list[dict]:
    """Prepend the system prompt as a ``system`` message when one is set."""
    out: list[dict] = []
    if system_prompt:
        out.append({"role": "system", "content": system_prompt})
    for msg in messages:
        out.append({"role": msg["role"], "content": msg["content"]})
    return out


class OpenAIProvider:
    _provider_label = "openai"

    def __init__(
        self,
        api_key: str,
        model: str,
        *,
        max_tokens: int = 4096,
        temperature: float = 1.0,
        base_url: str | None = None,
    ):
        self._client = openai.AsyncOpenAI(api_key=api_key, base_url=base_url)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    @property
    def model(self) -> str:
        return self._model

    async def chat(self, message: str) -> str:
        return await self._send(_to_openai_messages(None, [{"role": "user", "content": message}]))

    async def chat_with_history(
        self,
        system_prompt: str | None,
        history: list[Message],
        new_message: str,
    ) -> str:
        return await self._send(_to_openai_messages(system_prompt, history_to_dicts(history, new_message)))

    async def _send(self, messages: list[dict]) -> str:
        try:
            return await self._create_completion(messages)
        except openai.OpenAIError as ex:
            raise UpstreamError(f"{self._provider_label} request failed: {ex}") from ex

    @retry(**default_retry_kwargs(_RETRYABLE))
    async def _create_completion(self, messages: list[dict]) -> str:
        logger.debug(f"API request: model={self._model}, max_tokens={self._max_tokens}, messages={len(messages)}")
        response = await self._client.chat.completions.create(
            model=self._model,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            messages=messages,
        )
        choice = response.choices[0] if response.choices else None
        text = (choice.message.content if choice is not None else None) or ""
        logger.debug(
            f"API response: finish_reason={choice.finish_reason if choice else None}, len={len(text)}"
        )
        if not text:
            raise UpstreamError(f"{self._provider_label} returned an empty response")
        return text


class GeminiProvider(OpenAIProvider):
    """Gemini through Google's OpenAI-compatible endpoint."""

    _provider_label = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str,
        *,
        max_tokens: int = 4096,
        temperature: float = 1.0,
        base_url: str | None = None,
    ):
        super().__init__(
            api_key,
            model,
            max_tokens=max_tokens,
            temperature=temperature,
            base_url=base_url or GEMINI_OPENAI_BASE_URL,
        )
