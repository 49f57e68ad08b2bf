"""
Rename a bare name (function, class, member, constant) everywhere it is
referenced.
"""

from abc import ABC, abstractmethod
from typing import Iterator

from ..model import (
    ByteRange,
    FailureKind,
    LocatedRange,
    LocatedTextEdit,
    RenameFailure,
    RenameStep,
    TextDocument,
)
from ..renamer import Renamer
from ..workspace import Workspace
from .lexer import IDENTIFIER, is_identifier, is_reserved, token_at, tokenize


class ReferenceFinder(ABC):
    """Locates every occurrence of the symbol under an offset."""

    @abstractmethod
    def find_references(
        self, document: TextDocument, offset: int
    ) -> Iterator[LocatedRange]:
        """Yield occurrences lazily, the one under the cursor's document first."""


class WorkspaceReferenceFinder(ReferenceFinder):
    """
    Whole-word, case-insensitive matches of the name under the cursor:
    first in the cursor's document, then in every other open document
    in the order they were opened.
    """

    def __init__(self, workspace: Workspace):
        self.workspace = workspace

    def find_references(
        self, document: TextDocument, offset: int
    ) -> Iterator[LocatedRange]:
        tokens = list(tokenize(document.text.encode('utf-8')))
        target = token_at(tokens, offset, IDENTIFIER)
        if target is None:
            return

        yield from _matches(document.uri, tokens, target.value)
        for other in self.workspace:
            if other.uri == document.uri:
                continue
            yield from _matches(
                other.uri, tokenize(other.text.encode('utf-8')), target.value
            )


def _matches(uri, tokens, value: bytes) -> Iterator[LocatedRange]:
    # Function and class names are case-insensitive
    value = value.lower()
    for token in tokens:
        if token.kind == IDENTIFIER and token.value.lower() == value:
            yield LocatedRange(uri, ByteRange(token.start, token.end))


class ReferenceRenamer(Renamer):
    def __init__(self, finder: ReferenceFinder):
        self.finder = finder

    def rename_range(self, document: TextDocument, offset: int) -> ByteRange | None:
        token = token_at(list(tokenize(document.text.encode('utf-8'))), offset, IDENTIFIER)
        if token is None or is_reserved(token.name):
            return None
        return ByteRange(token.start, token.end)

    def rename(
        self, document: TextDocument, offset: int, new_name: str
    ) -> Iterator[RenameStep]:
        token = token_at(list(tokenize(document.text.encode('utf-8'))), offset, IDENTIFIER)
        if token is None:
            yield RenameFailure("Cursor is not on a name")
            return
        if is_reserved(token.name):
            yield RenameFailure(f'"{token.name}" is a reserved word')
            return
        if not is_identifier(new_name) or is_reserved(new_name):
            yield RenameFailure(
                f'"{new_name}" is not a valid identifier',
                FailureKind.INVALID_NAME,
            )
            return

        for location in self.finder.find_references(document, offset):
            yield LocatedTextEdit(location.document_uri, location.range, new_name)
