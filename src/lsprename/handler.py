"""
textDocument/prepareRename and textDocument/rename.
"""

import asyncio
from typing import Any, Awaitable, Callable

from .client import ClientApi
from .json import JSON
from .model import (
    FailureKind,
    LocatedTextEdit,
    LocatedTextEditsMap,
    OverlappingEditsError,
    Position,
    RenameFailure,
)
from .position import LineIndex, byte_range_to_lsp, position_to_byte_offset
from .renamer import Renamer
from .util import debug, info, trace
from .workspace import TextDocumentLocator, Workspace

# Number of edits consumed between two voluntary yields to the event loop
RENAME_YIELD_EVERY = 10


def empty_workspace_edit() -> JSON:
    return {'documentChanges': []}


class RenameHandler:
    """
    Drive a renamer and turn its edits into a versioned WorkspaceEdit.

    Rename failures never become protocol errors: the client is shown the
    reason and receives an empty edit.
    """

    def __init__(
        self,
        workspace: Workspace,
        locator: TextDocumentLocator,
        renamer: Renamer,
        client: ClientApi,
        yield_every: int = RENAME_YIELD_EVERY,
    ):
        if yield_every < 1:
            raise ValueError("yield_every must be positive")
        self.workspace = workspace
        self.locator = locator
        self.renamer = renamer
        self.client = client
        self.yield_every = yield_every

    def methods(self) -> dict[str, Callable[[JSON], Awaitable[Any]]]:
        return {
            'textDocument/prepareRename': self.prepare_rename,
            'textDocument/rename': self.rename,
        }

    def register_capabilities(self, capabilities: JSON) -> None:
        capabilities['renameProvider'] = {'prepareProvider': True}

    async def prepare_rename(self, params: JSON) -> JSON | None:
        document = self.locator.get(params['textDocument']['uri'])
        offset = position_to_byte_offset(
            Position.from_lsp(params['position']), document.text
        )
        byte_range = self.renamer.rename_range(document, offset)
        if byte_range is None:
            debug(f"Nothing to rename at {document.uri}@{offset}")
            return None
        return byte_range_to_lsp(byte_range, document.text)

    async def rename(self, params: JSON) -> JSON:
        document = self.locator.get(params['textDocument']['uri'])
        offset = position_to_byte_offset(
            Position.from_lsp(params['position']), document.text
        )

        located_edits: list[LocatedTextEdit] = []
        for step in self.renamer.rename(document, offset, params['newName']):
            if isinstance(step, RenameFailure):
                return await self._fail(step)
            trace(f"Edit {step.document_uri} {step.range.start}..{step.range.end}")
            located_edits.append(step)
            await self._tick(len(located_edits))

        edits_map = LocatedTextEditsMap()
        try:
            for count, located in enumerate(located_edits, 1):
                edits_map.add(located)
                await self._tick(count)
        except OverlappingEditsError as e:
            return await self._fail(
                RenameFailure(str(e), FailureKind.CONFLICTING_EDITS)
            )

        debug(
            f"Rename produced {edits_map.edit_count()} edits "
            f"in {len(edits_map)} documents"
        )
        return await self._to_workspace_edit(edits_map)

    def document_version(self, uri: str) -> int:
        return self.workspace.get(uri).version if self.workspace.has(uri) else 0

    async def _tick(self, count: int) -> None:
        if count % self.yield_every == 0:
            await asyncio.sleep(0)

    async def _fail(self, failure: RenameFailure) -> JSON:
        info(f"Rename failed ({failure.kind.value}): {failure.message}")
        await self.client.show_error_message(failure.message)
        return empty_workspace_edit()

    async def _to_workspace_edit(self, edits_map: LocatedTextEditsMap) -> JSON:
        document_changes = []
        converted = 0
        for uri, edits in edits_map:
            # Re-fetch: the edits may target documents other than the one
            # the cursor is in.
            index = LineIndex(self.locator.get(uri).text)
            lsp_edits = []
            for edit in edits:
                lsp_edits.append(index.edit_to_lsp(edit))
                converted += 1
                await self._tick(converted)
            document_changes.append(
                {
                    'textDocument': {
                        'uri': uri,
                        'version': self.document_version(uri),
                    },
                    'edits': lsp_edits,
                }
            )
        return {'documentChanges': document_changes}
