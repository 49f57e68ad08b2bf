"""Rename `$variables` within their scope."""

from typing import Iterator

from ..model import ByteRange, FailureKind, LocatedTextEdit, RenameFailure, RenameStep, TextDocument
from ..renamer import Renamer
from .lexer import VARIABLE, Span, Token, is_identifier, scan_scopes, token_at, tokenize


class VariableRenamer(Renamer):
    """
    Renames every occurrence of a variable inside the innermost function
    or class body enclosing the cursor, or at file level outside all of
    them.  Closures share a variable with the scope their `use` clause
    captures it from.
    """

    def rename_range(self, document: TextDocument, offset: int) -> ByteRange | None:
        token = token_at(list(tokenize(document.text.encode('utf-8'))), offset, VARIABLE)
        if token is None or token.value == b'$this':
            return None
        return ByteRange(token.start, token.end)

    def rename(
        self, document: TextDocument, offset: int, new_name: str
    ) -> Iterator[RenameStep]:
        tokens = list(tokenize(document.text.encode('utf-8')))
        target = token_at(tokens, offset, VARIABLE)
        if target is None:
            yield RenameFailure("Cursor is not on a variable")
            return
        if target.value == b'$this':
            yield RenameFailure("Cannot rename $this")
            return

        name = new_name[1:] if new_name.startswith('$') else new_name
        if not is_identifier(name) or name == 'this':
            yield RenameFailure(
                f'"{new_name}" is not a valid variable name',
                FailureKind.INVALID_NAME,
            )
            return

        for token in _occurrences(tokens, target):
            yield LocatedTextEdit(
                document.uri, ByteRange(token.start, token.end), '$' + name
            )


def _occurrences(tokens: list[Token], target: Token) -> Iterator[Token]:
    scopes = scan_scopes(tokens)

    # A closure capturing the name shares it with the scope it captures from
    linked: dict[Span | None, set[Span | None]] = {}
    for token in tokens:
        closure = scopes.captures.get(token.start)
        if closure is not None and token.value == target.value:
            outer = scopes.enclosing(closure)
            linked.setdefault(outer, set()).add(closure)
            linked.setdefault(closure, set()).add(outer)

    shared = {scopes.of(target)}
    pending = list(shared)
    while pending:
        for scope in linked.get(pending.pop(), ()):
            if scope not in shared:
                shared.add(scope)
                pending.append(scope)

    for token in tokens:
        if token.kind == VARIABLE and token.value == target.value:
            if scopes.of(token) in shared:
                yield token
