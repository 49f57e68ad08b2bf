"""
Conversions between LSP positions and byte offsets.

LSP positions count lines and UTF-16 code units; byte offsets index the
UTF-8 encoding of the document text.  Every conversion is pure and
converts against the text it is given, so callers must pass the same
snapshot for a round trip.
"""

import re
from bisect import bisect_right
from typing import Iterable

from .json import JSON
from .model import ByteRange, Position, TextEdit

_LINE = re.compile(r'.*?(?:\r\n|\r|\n)|.+\Z', re.DOTALL)
_EOL_BYTES = re.compile(rb'\r\n|\r|\n')


def _split_lines(text: str) -> list[str]:
    """Split text into lines, each keeping its terminator."""
    return _LINE.findall(text)


def _strip_eol(line: str) -> str:
    return line.rstrip('\r\n')


def _column_to_bytes(line: str, character: int) -> int:
    """Byte length of the prefix of line spanning `character` UTF-16 units.
    Columns past the end of the line clamp to the line length."""
    units = 0
    nbytes = 0
    for c in line:
        width = 2 if ord(c) > 0xFFFF else 1
        if units + width > character:
            break
        units += width
        nbytes += len(c.encode('utf-8'))
    return nbytes


def position_to_byte_offset(position: Position, text: str) -> int:
    """
    Convert an LSP position to a byte offset into text.

    A line past the end of the document maps to the end of the document.
    """
    if position.line < 0 or position.character < 0:
        raise ValueError(f"Invalid position {position}")

    offset = 0
    for lineno, line in enumerate(_split_lines(text)):
        if lineno == position.line:
            return offset + _column_to_bytes(_strip_eol(line), position.character)
        offset += len(line.encode('utf-8'))
    return offset


class LineIndex:
    """
    Byte offset to position lookups against one text snapshot.

    Line starts are found once.  A line holding non-ASCII text gets a
    column table the first time an offset lands on it, so converting
    many offsets costs a bisect each instead of a scan of the document.
    """

    def __init__(self, text: str):
        self.data = text.encode('utf-8')
        self.line_starts = [0] + [m.end() for m in _EOL_BYTES.finditer(self.data)]
        self._columns: dict[int, tuple[list[int], list[int]] | None] = {}

    def position(self, offset: int) -> Position:
        """
        Offsets past the end clamp to the end of the document; an offset
        inside a multibyte character resolves to the start of that
        character.
        """
        if offset < 0:
            raise ValueError(f"Invalid byte offset {offset}")
        offset = min(offset, len(self.data))

        line = bisect_right(self.line_starts, offset) - 1
        start = self.line_starts[line]
        # Between the \r and \n of a CRLF the line has already ended
        if offset > start and self.data[offset - 1 : offset + 1] == b'\r\n':
            return Position(line + 1, 0)
        return Position(line, self._column(line, offset - start))

    def range_to_lsp(self, byte_range: ByteRange) -> JSON:
        return {
            'start': self.position(byte_range.start).to_lsp(),
            'end': self.position(byte_range.end).to_lsp(),
        }

    def edit_to_lsp(self, edit: TextEdit) -> JSON:
        return {'range': self.range_to_lsp(edit.range), 'newText': edit.replacement}

    def _column(self, line: int, nbytes: int) -> int:
        if line not in self._columns:
            start = self.line_starts[line]
            end = (
                self.line_starts[line + 1]
                if line + 1 < len(self.line_starts)
                else len(self.data)
            )
            self._columns[line] = _column_table(self.data[start:end])
        table = self._columns[line]
        if table is None:
            return nbytes
        byte_starts, units = table
        return units[bisect_right(byte_starts, nbytes) - 1]


def _column_table(line: bytes) -> tuple[list[int], list[int]] | None:
    """Byte start and UTF-16 column of every character, None for ASCII."""
    if line.isascii():
        return None
    byte_starts = [0]
    units = [0]
    for c in line.decode('utf-8'):
        byte_starts.append(byte_starts[-1] + len(c.encode('utf-8')))
        units.append(units[-1] + (2 if ord(c) > 0xFFFF else 1))
    return byte_starts, units


def byte_offset_to_position(offset: int, text: str) -> Position:
    """Convert a byte offset into text to an LSP position."""
    return LineIndex(text).position(offset)


def byte_range_to_lsp(byte_range: ByteRange, text: str) -> JSON:
    return LineIndex(text).range_to_lsp(byte_range)


def text_edits_to_lsp(edits: Iterable[TextEdit], text: str) -> list[JSON]:
    """Convert byte-range edits to LSP TextEdit dicts against text."""
    index = LineIndex(text)
    return [index.edit_to_lsp(e) for e in edits]
