from __future__ import annotations

from collections.abc import Awaitable, Callable


class CommandRouter:
    """Dispatch slash commands typed in the interactive loop."""

    def __init__(
        self,
        *,
        on_help: Callable[[], Awaitable[None]],
        on_info: Callable[[], Awaitable[None]],
        on_clear: Callable[[], Awaitable[None]],
        on_exit: Callable[[], Awaitable[None]],
        on_unknown: Callable[[str], None],
    ) -> None:
        self._on_help = on_help
        self._on_info = on_info
        self._on_clear = on_clear
        self._on_exit = on_exit
        self._on_unknown = on_unknown

    async def try_handle(self, user_message: str) -> bool:
        command = user_message.strip().lower()
        if not command.startswith("/"):
            return False

        if command in ("/help", "/h"):
            await self._on_help()
            return True
        if command in ("/info", "/i"):
            await self._on_info()
            return True
        if command in ("/clear", "/c"):
            await self._on_clear()
            return True
        if command in ("/exit", "/quit", "/q"):
            await self._on_exit()
            return True

        self._on_unknown(command)
        return True
