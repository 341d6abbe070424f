import anthropic
from loguru import logger
from tenacity import retry

from llmc.errors import UpstreamError
from llmc.providers.common import default_retry_kwargs, history_to_dicts
from llmc.sessions.models import Message

_RETRYABLE = (
    anthropic.RateLimitError,
    anthropic.APIConnectionError,
    anthropic.APITimeoutError,
)


class AnthropicProvider:
    def __init__(
        self,
        api_key: str,
        model: str,
        *,
        max_tokens: int = 4096,
        temperature: float = 1.0,
        base_url: str | None = None,
    ):
        self._client = anthropic.AsyncAnthropic(api_key=api_key, base_url=base_url)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    @property
    def model(self) -> str:
        return self._model

    async def chat(self, message: str) -> str:
        return await self._send(None, [{"role": "user", "content": message}])

    async def chat_with_history(
        self,
        system_prompt: str | None,
        history: list[Message],
        new_message: str,
    ) -> str:
        return await self._send(system_prompt, history_to_dicts(history, new_message))

    async def _send(self, system_prompt: str | None, messages: list[dict]) -> str:
        try:
            return await self._create_message(system_prompt, messages)
        except anthropic.AnthropicError as ex:
            raise UpstreamError(f"anthropic request failed: {ex}") from ex

    @retry(**default_retry_kwargs(_RETRYABLE))
    async def _create_message(self, system_prompt: str | None, messages: list[dict]) -> str:
        logger.debug(f"API request: model={self._model}, max_tokens={self._max_tokens}, messages={len(messages)}")
        kwargs: dict = {
            "model": self._model,
            "max_tokens": self._max_tokens,
            "temperature": self._temperature,
            "messages": messages,
        }
        if system_prompt:
            kwargs["system"] = system_prompt
        response = await self._client.messages.create(**kwargs)

        usage = response.usage
        logger.debug(
            f"API response: stop_reason={response.stop_reason}, "
            f"input_tokens={usage.input_tokens}, output_tokens={usage.output_tokens}"
        )
        text = "".join(block.text for block in response.content if block.type == "text")
        if not text:
            raise UpstreamError("anthropic returned an empty response")
        return text
