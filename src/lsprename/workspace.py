"""
Session document store and document lookup.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator
from urllib.parse import unquote, urlparse

from .json import JSON
from .model import Position, TextDocument
from .position import position_to_byte_offset
from .util import debug


class DocumentNotFound(LookupError):
    def __init__(self, uri: str):
        super().__init__(f"Document not found: {uri}")
        self.uri = uri


class Workspace:
    """
    Documents the client currently has open, with their versions.

    Fed by textDocument/didOpen, didChange and didClose.  Iteration
    follows the order in which documents were opened.
    """

    def __init__(self):
        self._documents: dict[str, TextDocument] = {}

    def has(self, uri: str) -> bool:
        return uri in self._documents

    def get(self, uri: str) -> TextDocument:
        try:
            return self._documents[uri]
        except KeyError:
            raise DocumentNotFound(uri) from None

    def open(self, uri: str, text: str, version: int = 0, language_id: str = '') -> None:
        debug(f"Opened {uri} at version {version}")
        self._documents[uri] = TextDocument(uri, text, language_id, version)

    def update(self, uri: str, text: str, version: int) -> None:
        doc = self.get(uri)
        self._documents[uri] = TextDocument(uri, text, doc.language_id, version)

    def apply_changes(self, uri: str, changes: list[JSON], version: int) -> None:
        """
        Apply textDocument/didChange content changes in order.  Changes
        without a range replace the whole text.
        """
        text = self.get(uri).text
        for change in changes:
            if 'range' not in change:
                text = change['text']
                continue
            start = position_to_byte_offset(
                Position.from_lsp(change['range']['start']), text
            )
            end = position_to_byte_offset(
                Position.from_lsp(change['range']['end']), text
            )
            data = text.encode('utf-8')
            text = (data[:start] + change['text'].encode('utf-8') + data[end:]).decode('utf-8')
        self.update(uri, text, version)

    def close(self, uri: str) -> None:
        debug(f"Closed {uri}")
        self._documents.pop(uri, None)

    def __iter__(self) -> Iterator[TextDocument]:
        return iter(list(self._documents.values()))

    def __len__(self) -> int:
        return len(self._documents)


class TextDocumentLocator(ABC):
    """Fetches the current content of a document by URI."""

    @abstractmethod
    def get(self, uri: str) -> TextDocument:
        """Return a fresh snapshot or raise DocumentNotFound."""


def uri_to_path(uri: str) -> Path:
    parsed = urlparse(uri)
    if parsed.scheme != 'file':
        raise DocumentNotFound(uri)
    return Path(unquote(parsed.path))


class WorkspaceTextDocumentLocator(TextDocumentLocator):
    """
    Prefer the open document; fall back to reading file:// URIs from
    disk so edits can target files the client has not opened.
    """

    def __init__(self, workspace: Workspace):
        self.workspace = workspace

    def get(self, uri: str) -> TextDocument:
        if self.workspace.has(uri):
            return self.workspace.get(uri)
        path = uri_to_path(uri)
        try:
            text = path.read_text(encoding='utf-8')
        except (FileNotFoundError, IsADirectoryError):
            raise DocumentNotFound(uri) from None
        return TextDocument(uri, text)
