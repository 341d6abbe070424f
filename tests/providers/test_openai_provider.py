import asyncio
import unittest
from types import SimpleNamespace

import openai

from llmc.errors import UpstreamError
from llmc.providers.openai_provider import (
    GEMINI_OPENAI_BASE_URL,
    GeminiProvider,
    OpenAIProvider,
    _to_openai_messages,
)
from llmc.sessions.models import Message
from tests.sessions.base import NOW


class _FakeCompletions:
    def __init__(self, response=None, error: Exception | None = None):
        self._response = response
        self._error = error
        self.calls: list[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self._error is not None:
            raise self._error
        return self._response


class _FakeClient:
    def __init__(self, response=None, error: Exception | None = None):
        self.chat = SimpleNamespace(completions=_FakeCompletions(response, error))


def _completion(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(finish_reason="stop", message=SimpleNamespace(content=content))],
    )


def _make(cls, response=None, error: Exception | None = None):
    provider = cls.__new__(cls)
    provider._client = _FakeClient(response, error)
    provider._model = "gpt-4.1"
    provider._max_tokens = 256
    provider._temperature = 1.0
    return provider


class ToOpenAIMessagesTests(unittest.TestCase):
    def test_system_prompt_becomes_system_message(self) -> None:
        result = _to_openai_messages("You are helpful.", [{"role": "user", "content": "hello"}])
        self.assertEqual(
            [{"role": "system", "content": "You are helpful."}, {"role": "user", "content": "hello"}],
            result,
        )

    def test_no_system_message_when_prompt_is_empty(self) -> None:
        for prompt in (None, ""):
            with self.subTest(prompt=prompt):
                result = _to_openai_messages(prompt, [{"role": "user", "content": "hello"}])
                self.assertEqual([{"role": "user", "content": "hello"}], result)


class OpenAIProviderTests(unittest.TestCase):
    def test_chat_with_history(self) -> None:
        provider = _make(OpenAIProvider, _completion("Paris"))
        history = [
            Message(role="user", content="Capital of France?", created_at=NOW),
            Message(role="assistant", content="Paris.", created_at=NOW),
        ]

        result = asyncio.run(provider.chat_with_history("Answer briefly.", history, "And Spain?"))

        self.assertEqual("Paris", result)
        call = provider._client.chat.completions.calls[0]
        self.assertEqual("gpt-4.1", call["model"])
        self.assertEqual(256, call["max_tokens"])
        self.assertEqual(
            ["system", "user", "assistant", "user"],
            [m["role"] for m in call["messages"]],
        )
        self.assertEqual("And Spain?", call["messages"][-1]["content"])

    def test_chat_sends_only_the_message(self) -> None:
        provider = _make(OpenAIProvider, _completion("pong"))
        self.assertEqual("pong", asyncio.run(provider.chat("ping")))
        self.assertEqual(
            [{"role": "user", "content": "ping"}],
            provider._client.chat.completions.calls[0]["messages"],
        )

    def test_empty_reply_is_upstream_error(self) -> None:
        for response in (_completion(None), _completion(""), SimpleNamespace(choices=[])):
            with self.subTest(response=response):
                provider = _make(OpenAIProvider, response)
                with self.assertRaises(UpstreamError):
                    asyncio.run(provider.chat("q"))

    def test_sdk_error_is_wrapped_with_provider_label(self) -> None:
        provider = _make(GeminiProvider, error=openai.OpenAIError("bad key"))
        with self.assertRaises(UpstreamError) as ctx:
            asyncio.run(provider.chat("q"))
        self.assertIn("gemini request failed: bad key", str(ctx.exception))


class GeminiProviderTests(unittest.TestCase):
    def test_defaults_to_openai_compatible_endpoint(self) -> None:
        provider = GeminiProvider("key", "gemini-2.5-flash")
        self.assertEqual(GEMINI_OPENAI_BASE_URL, str(provider._client.base_url))
        self.assertEqual("gemini-2.5-flash", provider.model)

    def test_custom_base_url_wins(self) -> None:
        provider = GeminiProvider("key", "gemini-2.5-flash", base_url="http://localhost:9000/v1/")
        self.assertEqual("http://localhost:9000/v1/", str(provider._client.base_url))


if __name__ == "__main__":
    unittest.main()
