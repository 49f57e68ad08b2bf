"""
The renamer contract and the chain that combines registered renamers.
"""

from abc import ABC, abstractmethod
from typing import Iterator

from .model import (
    ByteRange,
    FailureKind,
    RenameFailure,
    RenameStep,
    TextDocument,
)
from .util import debug


class Renamer(ABC):
    """
    One way of renaming one kind of construct.

    Edit streams are lazy and single pass.  A RenameFailure item ends the
    stream; nothing follows it.
    """

    @abstractmethod
    def rename_range(self, document: TextDocument, offset: int) -> ByteRange | None:
        """
        Return the span that would be renamed at offset, or None if this
        renamer does not apply there.  Must not have side effects.
        """

    @abstractmethod
    def rename(
        self, document: TextDocument, offset: int, new_name: str
    ) -> Iterator[RenameStep]:
        """Yield the edits renaming the symbol at offset to new_name."""


class ChainRenamer(Renamer):
    """
    Delegate to the first registered renamer that applies.

    Renamers are expected to be mutually exclusive by construct kind, so
    results are never merged.
    """

    def __init__(self, renamers: list[Renamer]):
        self.renamers = renamers

    def rename_range(self, document: TextDocument, offset: int) -> ByteRange | None:
        for renamer in self.renamers:
            byte_range = renamer.rename_range(document, offset)
            if byte_range is not None:
                return byte_range
        return None

    def rename(
        self, document: TextDocument, offset: int, new_name: str
    ) -> Iterator[RenameStep]:
        failure: RenameFailure | None = None

        for renamer in self.renamers:
            if renamer.rename_range(document, offset) is None:
                continue

            steps = renamer.rename(document, offset, new_name)
            first = next(steps, None)
            if first is None:
                debug(f"{type(renamer).__name__} produced no edits")
                continue
            if isinstance(first, RenameFailure):
                debug(f"{type(renamer).__name__} declined: {first}")
                failure = first
                continue

            debug(f"Renaming with {type(renamer).__name__}")
            yield first
            yield from steps
            return

        yield failure or RenameFailure(
            f"Could not find a renamer for the symbol at offset {offset}",
            FailureKind.NO_RENAMER,
        )
