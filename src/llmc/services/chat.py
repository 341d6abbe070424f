from __future__ import annotations

import asyncio
from collections.abc import Callable

from loguru import logger

from llmc.commands.router import CommandRouter
from llmc.errors import LlmcError
from llmc.provider import ConversationalResponder
from llmc.providers.common import waiting_spinner
from llmc.services.session_controller import SessionController
from llmc.sessions.models import Message, Session, utc_now
from llmc.sessions.store import SessionStore

_HELP_LINES = [
    "",
    "Available commands:",
    "  /help, /h     - Show this help message",
    "  /info, /i     - Show session information",
    "  /clear, /c    - Clear screen",
    "  /exit, /quit  - Exit interactive mode",
    "  Ctrl+D        - Exit interactive mode",
    "",
]


class ChatService:
    """Run conversation turns against a responder and persist them to a session."""

    _USER_PROMPT = "You> "

    def __init__(
        self,
        store: SessionStore,
        responder: ConversationalResponder,
        *,
        out: Callable[[str], None] = print,
        err: Callable[[str], None] = print,
        read_line: Callable[[str], str] = input,
    ):
        self._store = store
        self._responder = responder
        self._out = out
        self._err = err
        self._read_line = read_line
        self._controller = SessionController()

    async def single_shot(self, message: str) -> str:
        with waiting_spinner():
            return await self._responder.chat(message)

    async def send_turn(self, session: Session, message: str) -> str:
        """Send one user turn with the full history, then append both sides and persist.

        The session is left untouched when the responder fails.
        """
        history = list(session.messages)
        user_message = Message(role="user", content=message, created_at=utc_now())
        with waiting_spinner():
            reply = await self._responder.chat_with_history(session.system_prompt, history, message)
        session.append(user_message)
        session.add_message("assistant", reply)
        self._store.persist(session)
        logger.debug(f"Session {session.short_id} now has {session.message_count} messages")
        return reply

    async def interactive(self, session: Session) -> None:
        self._print_banner(session)
        state = {"running": True}

        async def on_help() -> None:
            for line in _HELP_LINES:
                self._err(line)

        async def on_info() -> None:
            self._err("")
            for line in self._controller.format_info(session):
                self._err(line)
            self._err("")

        async def on_clear() -> None:
            self._out("\033[H\033[2J")

        async def on_exit() -> None:
            self._err("Goodbye!")
            state["running"] = False

        def on_unknown(command: str) -> None:
            self._err(f"Unknown command: {command} (type '/help' for available commands)")

        router = CommandRouter(
            on_help=on_help,
            on_info=on_info,
            on_clear=on_clear,
            on_exit=on_exit,
            on_unknown=on_unknown,
        )

        while state["running"]:
            try:
                user_input = self._read_line(self._USER_PROMPT)
            except (EOFError, KeyboardInterrupt):
                self._err("\nGoodbye!")
                break

            trimmed = user_input.strip()
            if not trimmed:
                continue
            if await router.try_handle(trimmed):
                continue

            try:
                reply = await self.send_turn(session, trimmed)
            except (KeyboardInterrupt, asyncio.CancelledError):
                # asyncio.run delivers Ctrl+C to the running turn as a cancellation.
                logger.debug(f"Turn interrupted for session {session.short_id}")
                self._err("\nGoodbye!")
                break
            except (LlmcError, OSError) as ex:
                logger.debug(f"Turn failed for session {session.short_id}: {ex!r}")
                self._err(f"Error: {ex}")
                continue
            self._out(f"\nAssistant> {reply}\n")

    def _print_banner(self, session: Session) -> None:
        self._err("")
        self._err(f"=== Interactive Session [{session.short_id}] ===")
        self._err(f"Model: {session.model}")
        if session.system_prompt:
            self._err(f"System Prompt: {session.system_prompt}")
        self._err("Type '/help' for commands, '/exit' or 'Ctrl+D' to quit")
        self._err("===================================")
        self._err("")
