"""
Async helpers for driving an lsprename server in tests.
"""

import asyncio
import sys
from typing import Any, cast

from .json import JSON, read_message, write_message


def log(who: str, msg: str) -> None:
    print(f"[{who}] {msg}", file=sys.stderr, flush=True)


class LspTestEndpoint:
    """Client side of an LSP conversation with a server subprocess."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        process: asyncio.subprocess.Process | None = None,
        name: str = "client",
    ):
        self.reader = reader
        self.writer = writer
        self.process = process
        self.name = name
        self._next_id = 1
        # Notifications read while waiting for responses
        self.notifications: list[JSON] = []

    @staticmethod
    async def spawn(
        *args: str, name: str = "client", env: dict[str, str] | None = None
    ) -> 'LspTestEndpoint':
        """Launch `python -m lsprename args...` and connect to it."""
        process = await asyncio.create_subprocess_exec(
            sys.executable,
            '-m',
            'lsprename',
            *args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            env=env,
        )
        return LspTestEndpoint(
            reader=cast(asyncio.StreamReader, process.stdout),
            writer=cast(asyncio.StreamWriter, process.stdin),
            process=process,
            name=name,
        )

    async def notify(self, method: str, params: JSON) -> None:
        await write_message(
            self.writer,
            {'jsonrpc': '2.0', 'method': method, 'params': params},
        )

    async def request(self, method: str, params: JSON | None = None) -> int:
        """Send a request and return its id."""
        req_id = self._next_id
        self._next_id += 1
        msg: JSON = {'jsonrpc': '2.0', 'id': req_id, 'method': method}
        if params is not None:
            msg['params'] = params
        await write_message(self.writer, msg)
        return req_id

    async def read_response(self, req_id: int) -> JSON:
        """Read messages until the response with the given id arrives."""
        while True:
            msg = await read_message(self.reader)
            if not msg:
                raise EOFError(f"EOF while waiting for response to id={req_id}")

            if 'id' not in msg:
                self.notifications.append(msg)
                continue

            if msg['id'] == req_id:
                return msg

            log(self.name, f"Skipping response: id={msg['id']}")

    async def read_notification(self, method: str) -> JSON:
        """Return params of the next notification with the given method."""
        for i, msg in enumerate(self.notifications):
            if msg.get('method') == method:
                return self.notifications.pop(i)['params']
        while True:
            msg = await read_message(self.reader)
            if not msg:
                raise EOFError(f"EOF while waiting for notification {method}")
            if 'id' not in msg and msg.get('method') == method:
                return msg['params']
            log(self.name, f"Skipping message: {msg}")

    async def call(self, method: str, params: JSON | None = None) -> Any:
        """Request and return the result, failing on error responses."""
        response = await self.read_response(await self.request(method, params))
        assert 'error' not in response, f"{method} failed: {response['error']}"
        return response['result']

    async def initialize(self) -> JSON:
        """Send initialize and initialized; return the initialize result."""
        result = await self.call(
            'initialize', {'rootUri': None, 'capabilities': {}}
        )
        await self.notify('initialized', {})
        return result

    async def open(self, uri: str, text: str, version: int = 1) -> None:
        await self.notify(
            'textDocument/didOpen',
            {
                'textDocument': {
                    'uri': uri,
                    'languageId': 'php',
                    'version': version,
                    'text': text,
                }
            },
        )

    async def shutdown(self) -> None:
        """Send shutdown and exit, then wait for the server to stop."""
        await self.call('shutdown')
        await self.notify('exit', {})
        self.writer.close()
        if self.process is not None:
            await asyncio.wait_for(self.process.wait(), timeout=10)
