"""
Just enough lexing of PHP-like source to find names.

Works on the UTF-8 bytes of a document so token boundaries are byte
offsets.  Comments and string literals are skipped, except for variables
interpolated into double-quoted strings.
"""

import re
from dataclasses import dataclass
from typing import Iterator

VARIABLE = 'variable'
IDENTIFIER = 'identifier'
PUNCT = 'punct'

_NAME = rb'[A-Za-z_\x80-\xff][A-Za-z0-9_\x80-\xff]*'

_TOKEN = re.compile(
    rb"""
      (?P<comment>//[^\r\n]*|\#[^\r\n]*|/\*.*?(?:\*/|\Z))
    | (?P<sq>'(?:[^'\\]|\\.)*(?:'|\Z))
    | (?P<dq>"(?:[^"\\]|\\.)*(?:"|\Z))
    | (?P<variable>\$""" + _NAME + rb""")
    | (?P<identifier>""" + _NAME + rb""")
    | (?P<punct>::|->|[{};])
    """,
    re.VERBOSE | re.DOTALL,
)

_INTERPOLATED = re.compile(rb'(?<!\\)\$' + _NAME)
_IDENTIFIER = re.compile(_NAME)

RESERVED_WORDS = frozenset(
    """
    abstract and array as break callable case catch class clone const
    continue declare default do echo else elseif empty enddeclare endfor
    endforeach endif endswitch endwhile enum eval exit extends false final
    finally fn for foreach function global goto if implements include
    include_once instanceof insteadof interface isset list match namespace
    new null or parent print private protected public readonly require
    require_once return self static switch throw trait true try unset use
    var while xor yield
    """.split()
)


@dataclass(frozen=True)
class Token:
    kind: str
    start: int
    end: int
    value: bytes

    @property
    def name(self) -> str:
        return self.value.decode('utf-8', errors='replace')


def tokenize(source: bytes) -> Iterator[Token]:
    for m in _TOKEN.finditer(source):
        kind = m.lastgroup
        if kind == 'comment' or kind == 'sq':
            continue
        if kind == 'dq':
            for v in _INTERPOLATED.finditer(source, m.start(), m.end()):
                yield Token(VARIABLE, v.start(), v.end(), v.group())
            continue
        yield Token(kind, m.start(), m.end(), m.group())


def token_at(tokens: list[Token], offset: int, kind: str) -> Token | None:
    """
    The token of the given kind under offset.  A cursor just after the
    last character of a name still counts as on it.
    """
    touching = None
    for t in tokens:
        if t.kind != kind:
            continue
        if t.start <= offset < t.end:
            return t
        if t.end == offset:
            touching = t
    return touching


def is_identifier(name: str) -> bool:
    return _IDENTIFIER.fullmatch(name.encode('utf-8')) is not None


def is_reserved(name: str) -> bool:
    return name.lower() in RESERVED_WORDS


# Keywords whose following brace block is a variable scope of its own
_SCOPE_KEYWORDS = frozenset((b'function', b'class', b'trait', b'interface', b'enum'))

Span = tuple[int, int]


@dataclass(frozen=True)
class Scopes:
    """
    Variable scopes of a document.

    `spans` are the function and class-like bodies.  A function span runs
    from its keyword to its closing brace so parameters are included.
    `captures` maps the start of each variable listed in a closure's
    `use (...)` clause to the closure's span.
    """

    spans: list[Span]
    captures: dict[int, Span]

    def innermost(self, offset: int) -> Span | None:
        return innermost_scope(self.spans, offset)

    def enclosing(self, span: Span) -> Span | None:
        """The scope directly around span, None at file level."""
        return innermost_scope([s for s in self.spans if s != span], span[0])

    def of(self, token: Token) -> Span | None:
        """
        The scope a variable belongs to.  A captured variable belongs to
        the scope it is captured from, not to the closure.
        """
        closure = self.captures.get(token.start)
        if closure is not None:
            return self.enclosing(closure)
        return self.innermost(token.start)


def scan_scopes(tokens: list[Token]) -> Scopes:
    spans: list[Span] = []
    captures: dict[int, Span] = {}
    stack: list[tuple[int | None, list[Token]]] = []
    pending: int | None = None
    pending_function = False
    in_use = False
    used: list[Token] = []
    previous: Token | None = None

    for t in tokens:
        # `Foo::class` and `$obj->function` are names, not declarations
        member = previous is not None and previous.value in (b'::', b'->')
        previous = t
        if member and t.kind == IDENTIFIER:
            continue
        if t.kind == IDENTIFIER and t.value.lower() in _SCOPE_KEYWORDS:
            pending = t.start
            pending_function = t.value.lower() == b'function'
            in_use = False
            used = []
        elif t.kind == IDENTIFIER and pending_function and t.value.lower() == b'use':
            in_use = True
        elif t.kind == VARIABLE and in_use:
            used.append(t)
        elif t.value == b';':
            pending = None
            pending_function = in_use = False
            used = []
        elif t.value == b'{':
            stack.append((pending, used))
            pending = None
            pending_function = in_use = False
            used = []
        elif t.value == b'}' and stack:
            start, captured = stack.pop()
            if start is not None:
                span = (start, t.end)
                spans.append(span)
                for v in captured:
                    captures[v.start] = span
    return Scopes(spans, captures)


def innermost_scope(scopes: list[Span], offset: int) -> Span | None:
    found = None
    for start, end in scopes:
        if start <= offset < end and (found is None or start >= found[0]):
            found = (start, end)
    return found
