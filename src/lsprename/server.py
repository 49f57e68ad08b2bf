"""
A language server answering rename requests over stdio.
"""

import argparse
import asyncio
import json
import sys
import traceback
from typing import Any, Awaitable, Callable

from . import __version__
from .client import ClientApi
from .handler import RenameHandler
from .json import (
    INTERNAL_ERROR,
    JSON,
    METHOD_NOT_FOUND,
    make_error,
    make_response,
    read_message,
    write_message,
)
from .preset import load_preset
from .renamer import ChainRenamer
from .stdio import open_stdio
from .util import debug, event, log, warn
from .workspace import Workspace, WorkspaceTextDocumentLocator

INVALID_REQUEST = -32600

# TextDocumentSyncKind.Full
SYNC_FULL = 1


def log_message(direction: str, message: JSON, method: str) -> None:
    """
    Log a JSONRPC message to stderr with extra indications
    """
    id = message.get("id")
    prefix = method
    if id is not None:
        prefix += f"[{id}]"
    event(f"{direction} {prefix} {json.dumps(message, ensure_ascii=False)}")


class LanguageServer:
    """
    Read client messages, keep the workspace in sync and dispatch
    requests to the registered handlers.

    Each request runs as its own task so a handler that yields lets
    other requests and notifications through.
    """

    def __init__(self, workspace: Workspace, name: str = 'lsprename'):
        self.workspace = workspace
        self.name = name
        self.handlers: list[Any] = []
        self.request_methods: dict[str, Callable[[JSON], Awaitable[Any]]] = {}
        self.shutting_down = False
        self.writer: asyncio.StreamWriter | None = None
        self.inflight: set[asyncio.Task] = set()

    def register(self, handler) -> None:
        self.handlers.append(handler)
        self.request_methods.update(handler.methods())

    def capabilities(self) -> JSON:
        caps: JSON = {
            'textDocumentSync': {'openClose': True, 'change': SYNC_FULL},
        }
        for handler in self.handlers:
            handler.register_capabilities(caps)
        return caps

    async def send(self, message: JSON) -> None:
        if self.writer is None:
            raise RuntimeError("Server is not connected")
        log_message("<--", message, message.get('method') or 'response')
        await write_message(self.writer, message)

    async def on_request(self, req_id: Any, method: str, params: JSON) -> None:
        if method == 'initialize':
            result = {
                'capabilities': self.capabilities(),
                'serverInfo': {'name': self.name, 'version': __version__},
            }
            await self.send(make_response(req_id, result))
            return

        if method == 'shutdown':
            self.shutting_down = True
            await self.send(make_response(req_id, None))
            return

        if self.shutting_down:
            await self.send(
                make_error(req_id, INVALID_REQUEST, "Server is shutting down")
            )
            return

        fn = self.request_methods.get(method)
        if fn is None:
            debug(f"No handler for {method}")
            await self.send(
                make_error(req_id, METHOD_NOT_FOUND, f"Unhandled method {method}")
            )
            return

        try:
            result = await fn(params)
        except Exception as e:
            warn(f"Request {method}[{req_id}] failed: {e}")
            debug(traceback.format_exc())
            await self.send(make_error(req_id, INTERNAL_ERROR, str(e)))
            return
        await self.send(make_response(req_id, result))

    async def on_notification(self, method: str, params: JSON) -> None:
        text_doc = params.get('textDocument', {})
        uri = text_doc.get('uri')

        if method == 'textDocument/didOpen':
            self.workspace.open(
                uri,
                text_doc.get('text', ''),
                text_doc.get('version', 0),
                text_doc.get('languageId', ''),
            )
        elif method == 'textDocument/didChange':
            self.workspace.apply_changes(
                uri, params.get('contentChanges', []), text_doc.get('version', 0)
            )
        elif method == 'textDocument/didClose':
            self.workspace.close(uri)
        else:
            debug(f"Ignoring notification {method}")

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self.inflight.add(task)
        task.add_done_callback(self.inflight.discard)

    async def serve(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        """Process messages until `exit` or end of input."""
        self.writer = writer
        while True:
            msg = await read_message(reader)
            if msg is None:
                log("Client closed the connection")
                break

            method = msg.get("method")
            req_id = msg.get("id")
            if method is None:
                warn(f"Unexpected response from client with id={req_id}")
                continue

            log_message("-->", msg, method)
            params = msg.get("params") or {}

            if method == 'exit':
                break
            if req_id is None:
                try:
                    await self.on_notification(method, params)
                except Exception as e:
                    warn(f"Error handling {method}: {e}")
                    debug(traceback.format_exc())
            else:
                self._spawn(self.on_request(req_id, method, params))

        if self.inflight:
            await asyncio.gather(*self.inflight)


def build_server(opts: argparse.Namespace) -> LanguageServer:
    """Wire the workspace, the preset's renamers and the rename handler."""
    workspace = Workspace()
    locator = WorkspaceTextDocumentLocator(workspace)
    server = LanguageServer(workspace)

    renamers = load_preset(opts.preset, workspace, locator)
    log(f"Renamers: {', '.join(type(r).__name__ for r in renamers)}")

    server.register(
        RenameHandler(
            workspace,
            locator,
            ChainRenamer(renamers),
            ClientApi(server.send),
            yield_every=opts.yield_every,
        )
    )
    return server


async def run_server(opts: argparse.Namespace) -> None:
    server = build_server(opts)
    reader, writer = await open_stdio(use_thread=sys.platform == 'win32')
    await server.serve(reader, writer)
    log("Exiting")
