"""
xmlstream.py — Incremental pull tokenizer for large XML documents.

The dictionary dumps are hundreds of megabytes once decompressed, so instead
of building a DOM the decoders pull one token at a time and only materialize
the subtree of the record they are about to return.

Tokens:
    StartElement(name, attrs)   <name attr="value">  (also for <name/>)
    EndElement(name)            </name>              (synthesized for <name/>)
    CharData(text)              text and CDATA sections, entities resolved
    Comment(text)               <!-- text -->
    ProcInst(target, text)      <?target text?>
    Directive(text)             <!DOCTYPE ...> and other <!...> markup

Entity references resolve against the predefined XML entities, numeric
character references, and the mutable ``entity`` table of the stream, which
callers fill from the document's DOCTYPE.

Usage:
    stream = XMLTokenStream(input)
    while (token := stream.next_token()) is not None:
        if isinstance(token, StartElement) and token.local == 'entry':
            element = stream.read_element(token)
"""

import codecs
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from tango_import.errors import XMLSyntaxError


PREDEFINED_ENTITIES = {
    'lt': '<',
    'gt': '>',
    'amp': '&',
    'apos': "'",
    'quot': '"',
}

NAME = re.compile(
    r'[A-Za-z_:\u00C0-\uFFFD\U00010000-\U000EFFFF]'
    r'[A-Za-z0-9_:.\-\u00B7\u00C0-\uFFFD\U00010000-\U000EFFFF]*'
)
SPACE = re.compile(r'\s*')
DECIMAL_REF = re.compile(r'#[0-9]+')
HEX_REF = re.compile(r'#x[0-9a-fA-F]+')
INTEGER = re.compile(r'[+-]?[0-9]+')
XML_ENCODING = re.compile(r'''encoding\s*=\s*["']([^"']*)["']''')

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1

# Regex matches shorter than this are re-checked after refilling the buffer
LOOKAHEAD = 256


def local_name(name: str) -> str:
    """Strip a namespace prefix: 'xml:lang' -> 'lang'."""
    return name.rpartition(':')[2]


def parse_int(text: str, what: str = 'value') -> int:
    """Parse a base-10 element value; blank text is 0."""
    value = text.strip()
    if not value:
        return 0
    if not INTEGER.fullmatch(value):
        raise ValueError(f"invalid integer in {what}: {text!r}")
    number = int(value)
    if not INT64_MIN <= number <= INT64_MAX:
        raise ValueError(f"integer out of range in {what}: {text!r}")
    return number


# ─────────────────────────────────────────────────────────────────────────────
# Tokens
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class StartElement:
    name: str
    attrs: Dict[str, str] = field(default_factory=dict)

    @property
    def local(self) -> str:
        return local_name(self.name)


@dataclass
class EndElement:
    name: str

    @property
    def local(self) -> str:
        return local_name(self.name)


@dataclass
class CharData:
    text: str


@dataclass
class Comment:
    text: str


@dataclass
class ProcInst:
    target: str
    text: str


@dataclass
class Directive:
    text: str


Token = Union[StartElement, EndElement, CharData, Comment, ProcInst, Directive]


# ─────────────────────────────────────────────────────────────────────────────
# Element subtree
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class Element:
    """
    One decoded element: local name, attributes (by local name), child
    elements in document order, and its own character data.

    Paths are '/'-separated chains of child names, e.g. 'misc/stroke_count'.
    """
    name: str
    attrs: Dict[str, str] = field(default_factory=dict)
    children: List['Element'] = field(default_factory=list)
    text: str = ''

    def find_all(self, path: str) -> List['Element']:
        nodes = [self]
        for part in path.split('/'):
            nodes = [child for node in nodes for child in node.children if child.name == part]
        return nodes

    def has(self, path: str) -> bool:
        return bool(self.find_all(path))

    def texts(self, path: str) -> List[str]:
        return [node.text for node in self.find_all(path)]

    def text_of(self, path: str, default: str = '') -> str:
        """Text of the last matching child (later occurrences win)."""
        nodes = self.find_all(path)
        return nodes[-1].text if nodes else default

    def int_of(self, path: str) -> int:
        return parse_int(self.text_of(path), f"<{path}>")

    def ints(self, path: str) -> List[int]:
        return [parse_int(text, f"<{path}>") for text in self.texts(path)]

    def attr(self, name: str, default: str = '') -> str:
        return self.attrs.get(name, default)


# ─────────────────────────────────────────────────────────────────────────────
# Tokenizer
# ─────────────────────────────────────────────────────────────────────────────

class XMLTokenStream:
    """
    Pull tokenizer over a byte (or text) stream with a ``read(size)`` method.

    The stream is consumed in chunks and only the unread tail is buffered.
    Well-formedness errors raise XMLSyntaxError; after an error the stream
    is not usable.
    """

    def __init__(self, input, chunk_size: int = 256 * 1024):
        self.input = input
        self.chunk_size = chunk_size
        self.entity: Dict[str, str] = {}
        self._decoder = codecs.getincrementaldecoder('utf-8')()
        self._buffer = ''
        self._pos = 0
        self._line = 1      # line number at the start of the buffer
        self._eof = False
        self._started = False
        self._stack: List[str] = []
        self._pending: Optional[EndElement] = None

    # ─────────────────────────────────────────────────────────────
    # Buffer primitives
    # ─────────────────────────────────────────────────────────────

    def _fill(self) -> bool:
        """Append the next chunk to the buffer. Returns False at end of input."""
        if self._eof:
            return False

        chunk = self.input.read(self.chunk_size)
        if isinstance(chunk, bytes):
            try:
                text = self._decoder.decode(chunk, final=not chunk)
            except UnicodeDecodeError as e:
                raise self._error(f"invalid UTF-8: {e.reason}") from e
        else:
            text = chunk or ''

        if not chunk:
            self._eof = True

        if not self._started and text:
            self._started = True
            if text.startswith('\ufeff'):
                text = text[1:]

        # Drop the consumed prefix
        if self._pos:
            self._line += self._buffer.count('\n', 0, self._pos)
            self._buffer = self._buffer[self._pos:]
            self._pos = 0
        self._buffer += text
        return bool(chunk)

    def _available(self) -> int:
        return len(self._buffer) - self._pos

    def _peek(self, n: int = 1) -> str:
        while self._available() < n and self._fill():
            pass
        return self._buffer[self._pos:self._pos + n]

    def _advance(self, n: int = 1):
        self._pos += n

    def _match(self, pattern) -> Optional[str]:
        """Consume a regex match at the cursor, or return None."""
        self._peek(LOOKAHEAD)
        while True:
            m = pattern.match(self._buffer, self._pos)
            if m and m.end() == len(self._buffer) and self._fill():
                continue
            if m is None:
                return None
            self._pos = m.end()
            return m.group()

    def _skip_space(self):
        self._match(SPACE)

    def _read_until(self, delim: str, consume: bool = True) -> Optional[str]:
        """
        Read up to ``delim`` and return the text before it.

        With ``consume`` the delimiter is skipped. Returns None if input ends
        first (for a non-consuming read, the remaining text is returned).
        """
        pieces = []
        while True:
            idx = self._buffer.find(delim, self._pos)
            if idx >= 0:
                pieces.append(self._buffer[self._pos:idx])
                self._pos = idx + len(delim) if consume else idx
                return ''.join(pieces)
            # Keep a partial delimiter that may straddle the chunk boundary
            keep = max(len(self._buffer) - (len(delim) - 1), self._pos)
            pieces.append(self._buffer[self._pos:keep])
            self._pos = keep
            if not self._fill():
                if consume:
                    return None
                pieces.append(self._buffer[self._pos:])
                self._pos = len(self._buffer)
                return ''.join(pieces)

    def line(self) -> int:
        """Current line number (1-based)."""
        return self._line + self._buffer.count('\n', 0, self._pos)

    def _error(self, message: str) -> XMLSyntaxError:
        return XMLSyntaxError(message, self.line())

    # ─────────────────────────────────────────────────────────────
    # Tokens
    # ─────────────────────────────────────────────────────────────

    def next_token(self) -> Optional[Token]:
        """Return the next token, or None once the document has ended."""
        if self._pending is not None:
            token, self._pending = self._pending, None
            return token

        char = self._peek()
        if not char:
            if self._stack:
                raise self._error("unexpected EOF")
            return None

        if char != '<':
            text = self._read_until('<', consume=False)
            return CharData(self._decode_text(text))

        self._advance()
        char = self._peek()
        if char == '/':
            return self._end_element()
        if char == '?':
            return self._proc_inst()
        if char == '!':
            return self._markup_declaration()
        return self._start_element()

    def _start_element(self) -> StartElement:
        name = self._match(NAME)
        if name is None:
            raise self._error(f"expected element name after <, found {self._peek()!r}")

        attrs = {}
        while True:
            self._skip_space()
            char = self._peek()
            if not char:
                raise self._error("unexpected EOF")
            if char == '>':
                self._advance()
                self._stack.append(name)
                return StartElement(name, attrs)
            if self._peek(2) == '/>':
                self._advance(2)
                self._pending = EndElement(name)
                return StartElement(name, attrs)

            attr = self._match(NAME)
            if attr is None:
                raise self._error(f"invalid character {char!r} in element <{name}>")
            self._skip_space()
            if self._peek() != '=':
                raise self._error(f"attribute name without = in element <{name}>")
            self._advance()
            self._skip_space()
            quote = self._peek()
            if quote not in ('"', "'"):
                raise self._error(f"unquoted or missing attribute value in element <{name}>")
            self._advance()
            value = self._read_until(quote)
            if value is None:
                raise self._error("unexpected EOF")
            if '<' in value:
                raise self._error("unescaped < inside quoted string")
            attrs[local_name(attr)] = self._decode_text(value)

    def _end_element(self) -> EndElement:
        self._advance()
        name = self._match(NAME)
        if name is None:
            raise self._error(f"expected element name after </, found {self._peek()!r}")
        self._skip_space()
        if self._peek() != '>':
            raise self._error(f"invalid characters between </{name} and >")
        self._advance()

        if not self._stack:
            raise self._error(f"unexpected end element </{name}>")
        open_name = self._stack.pop()
        if open_name != name:
            raise self._error(f"element <{open_name}> closed by </{name}>")
        return EndElement(name)

    def _proc_inst(self) -> ProcInst:
        self._advance()
        target = self._match(NAME)
        if target is None:
            raise self._error("expected target name after <?")
        text = self._read_until('?>')
        if text is None:
            raise self._error("unexpected EOF in processing instruction")
        text = text.strip()

        if target == 'xml':
            m = XML_ENCODING.search(text)
            if m and m.group(1).lower() not in ('utf-8', 'utf8'):
                raise self._error(f"unsupported document encoding {m.group(1)!r}")
        return ProcInst(target, text)

    def _markup_declaration(self) -> Token:
        self._advance()
        if self._peek(2) == '--':
            self._advance(2)
            text = self._read_until('-->')
            if text is None:
                raise self._error("unexpected EOF in comment")
            return Comment(text)

        if self._peek(7) == '[CDATA[':
            self._advance(7)
            text = self._read_until(']]>')
            if text is None:
                raise self._error("unexpected EOF in CDATA section")
            return CharData(_normalize_newlines(text))

        return self._directive()

    def _directive(self) -> Directive:
        """
        Read <!...> markup up to its closing '>'.

        Nested '<...>' pairs are balanced, quoted literals are opaque, and
        embedded comments are dropped.
        """
        pieces = []
        depth = 0
        quote = None
        while True:
            char = self._peek()
            if not char:
                raise self._error("unexpected EOF in directive")

            if quote is not None:
                if char == quote:
                    quote = None
            elif char in ('"', "'"):
                quote = char
            elif char == '<':
                if self._peek(4) == '<!--':
                    self._advance(4)
                    if self._read_until('-->') is None:
                        raise self._error("unexpected EOF in comment")
                    pieces.append(' ')
                    continue
                depth += 1
            elif char == '>':
                if depth == 0:
                    self._advance()
                    return Directive(''.join(pieces))
                depth -= 1

            pieces.append(char)
            self._advance()

    # ─────────────────────────────────────────────────────────────
    # Entities
    # ─────────────────────────────────────────────────────────────

    def _decode_text(self, text: str) -> str:
        text = _normalize_newlines(text)
        if '&' not in text:
            return text

        pieces = []
        pos = 0
        while True:
            amp = text.find('&', pos)
            if amp < 0:
                pieces.append(text[pos:])
                return ''.join(pieces)
            pieces.append(text[pos:amp])
            semi = text.find(';', amp + 1)
            if semi < 0:
                raise self._error(f"invalid character entity {text[amp:amp + 16]} (no semicolon)")
            pieces.append(self._resolve_entity(text[amp + 1:semi]))
            pos = semi + 1

    def _resolve_entity(self, name: str) -> str:
        if name.startswith('#'):
            if HEX_REF.fullmatch(name):
                code = int(name[2:], 16)
            elif DECIMAL_REF.fullmatch(name):
                code = int(name[1:])
            else:
                raise self._error(f"invalid character entity &{name};")
            if code == 0 or 0xD800 <= code <= 0xDFFF or code > 0x10FFFF:
                raise self._error(f"invalid character entity &{name};")
            return chr(code)

        if name in PREDEFINED_ENTITIES:
            return PREDEFINED_ENTITIES[name]
        if name in self.entity:
            return self.entity[name]
        raise self._error(f"invalid character entity &{name};")

    # ─────────────────────────────────────────────────────────────
    # Subtrees
    # ─────────────────────────────────────────────────────────────

    def read_element(self, start: StartElement) -> Element:
        """
        Consume the rest of the element opened by ``start`` and return it.

        Comments, processing instructions and directives inside the element
        are dropped; character data is joined per element.
        """
        root = Element(start.local, dict(start.attrs))
        nodes = [root]
        texts: List[List[str]] = [[]]
        while nodes:
            token = self.next_token()
            if token is None:
                raise self._error("unexpected EOF")
            if isinstance(token, StartElement):
                node = Element(token.local, token.attrs)
                nodes[-1].children.append(node)
                nodes.append(node)
                texts.append([])
            elif isinstance(token, EndElement):
                node = nodes.pop()
                node.text = ''.join(texts.pop())
            elif isinstance(token, CharData):
                texts[-1].append(token.text)
        return root


def _normalize_newlines(text: str) -> str:
    if '\r' in text:
        text = text.replace('\r\n', '\n').replace('\r', '\n')
    return text
