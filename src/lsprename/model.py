"""
Value types shared by renamers, the rename handler and the server.
"""

from bisect import bisect_right
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator

from .json import JSON


@dataclass(frozen=True)
class Position:
    """An LSP position: zero-based line and UTF-16 character."""

    line: int
    character: int

    @classmethod
    def from_lsp(cls, obj: JSON) -> 'Position':
        return cls(line=int(obj['line']), character=int(obj['character']))

    def to_lsp(self) -> JSON:
        return {'line': self.line, 'character': self.character}


@dataclass(frozen=True)
class ByteRange:
    """Half-open [start, end) range of byte offsets."""

    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid byte range {self.start}..{self.end}")

    def overlaps(self, other: 'ByteRange') -> bool:
        # Two insertions at the same point conflict, as does an insertion
        # strictly inside a replaced span.
        if self == other:
            return True
        return self.start < other.end and other.start < self.end


@dataclass(frozen=True)
class TextDocument:
    """A snapshot of a document's content."""

    uri: str
    text: str
    language_id: str = ''
    version: int = 0


@dataclass(frozen=True)
class TextEdit:
    range: ByteRange
    replacement: str


@dataclass(frozen=True)
class LocatedTextEdit:
    """A text edit together with the document it applies to."""

    document_uri: str
    range: ByteRange
    replacement: str

    def text_edit(self) -> TextEdit:
        return TextEdit(self.range, self.replacement)


@dataclass(frozen=True)
class LocatedRange:
    """A byte range inside a given document."""

    document_uri: str
    range: ByteRange


class FailureKind(Enum):
    NOT_RENAMABLE = "not-renamable"
    INVALID_NAME = "invalid-name"
    NO_RENAMER = "no-renamer"
    CONFLICTING_EDITS = "conflicting-edits"


@dataclass(frozen=True)
class RenameFailure:
    """
    Why a rename cannot proceed.

    Renamers yield one of these into their edit stream instead of raising;
    it ends the stream.
    """

    message: str
    kind: FailureKind = FailureKind.NOT_RENAMABLE

    def __str__(self) -> str:
        return self.message


RenameStep = LocatedTextEdit | RenameFailure


class OverlappingEditsError(ValueError):
    """Two edits for the same document describe overlapping ranges."""

    def __init__(self, uri: str, first: TextEdit, second: TextEdit):
        super().__init__(
            f"Overlapping edits in {uri}: "
            f"{first.range.start}..{first.range.end} and "
            f"{second.range.start}..{second.range.end}"
        )
        self.uri = uri
        self.first = first
        self.second = second


def _range_key(edit: TextEdit) -> tuple[int, int]:
    return (edit.range.start, edit.range.end)


@dataclass
class LocatedTextEditsMap:
    """
    Located edits grouped per document.

    Documents keep the order in which they were first seen; edits keep
    the order in which they were added.  Re-adding an identical edit is a
    no-op, any other overlap is an error.
    """

    edits: dict[str, list[TextEdit]] = field(default_factory=dict)
    # Per document, the same edits sorted by range.  Accepted ranges never
    # overlap, so a new edit can only collide with its sorted neighbours.
    _by_range: dict[str, list[TextEdit]] = field(
        default_factory=dict, repr=False, compare=False
    )

    @classmethod
    def from_located_edits(
        cls, located: Iterable[LocatedTextEdit]
    ) -> 'LocatedTextEditsMap':
        result = cls()
        for edit in located:
            result.add(edit)
        return result

    def add(self, located: LocatedTextEdit) -> None:
        edit = located.text_edit()
        uri = located.document_uri
        ordered = self._by_range.setdefault(uri, [])
        i = bisect_right(ordered, _range_key(edit), key=_range_key)
        for other in ordered[max(i - 1, 0) : i + 1]:
            if other == edit:
                return
            if other.range.overlaps(edit.range):
                raise OverlappingEditsError(uri, other, edit)
        ordered.insert(i, edit)
        self.edits.setdefault(uri, []).append(edit)

    def __iter__(self) -> Iterator[tuple[str, list[TextEdit]]]:
        return iter(self.edits.items())

    def __len__(self) -> int:
        return len(self.edits)

    def uris(self) -> list[str]:
        return list(self.edits)

    def edit_count(self) -> int:
        return sum(len(edits) for edits in self.edits.values())
