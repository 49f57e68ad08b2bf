"""
Messages pushed from the server to the client.
"""

from typing import Awaitable, Callable

from .json import JSON, make_notification

# window/showMessage types
MESSAGE_ERROR = 1
MESSAGE_WARNING = 2
MESSAGE_INFO = 3
MESSAGE_LOG = 4


class ClientApi:
    """Sends notifications to the client through `send`."""

    def __init__(self, send: Callable[[JSON], Awaitable[None]]):
        self._send = send

    async def show_message(self, type: int, message: str) -> None:
        await self._send(
            make_notification(
                'window/showMessage', {'type': type, 'message': message}
            )
        )

    async def show_error_message(self, message: str) -> None:
        await self.show_message(MESSAGE_ERROR, message)
