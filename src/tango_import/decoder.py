"""
decoder.py — Pull-based record decoder shared by the dictionary formats.

A decoder starts out unpositioned. The first ``read()`` scans the prolog:
a ``<!DOCTYPE Root [...]>`` directive has its entity declarations collected
into ``tags``, and the scan stops at the root start tag. Each ``read()``
after that returns the next record element, bound to a record type, or
None once the document is exhausted.

Custom entities are registered with the token stream as mapping to their
own names, so ``<pos>&n;</pos>`` decodes to ``"n"``. The long description
stays available in ``tags`` for whoever needs to render it.
"""

from typing import Dict, Generic, Iterator, Optional, TypeVar

from tango_import.doctype import parse_doctype_entities
from tango_import.errors import (
    DecodeError,
    InvalidRecordError,
    SchemaError,
    XMLSyntaxError,
)
from tango_import.xmlstream import Directive, Element, StartElement, XMLTokenStream


R = TypeVar('R')


class RecordDecoder(Generic[R]):
    """
    Base decoder. Subclasses set the element names and implement
    ``decode_record`` and ``validate``.

    Not thread-safe: one decoder owns one input stream.
    """

    root_element: str = ''
    record_element: str = ''
    # Record kind used in error messages ("decoding entry: ...")
    record_name: str = 'entry'
    # Parse custom entities from the DOCTYPE directive
    parse_entities: bool = True

    def __init__(self, input, chunk_size: int = 256 * 1024):
        self.tags: Dict[str, str] = {}
        self.xml = XMLTokenStream(input, chunk_size=chunk_size)
        self._positioned = False

    @property
    def doctype_prefix(self) -> str:
        return f"DOCTYPE {self.root_element} ["

    def read(self) -> Optional[R]:
        """Return the next record, or None at end of input."""
        if not self._positioned:
            self._position()

        while True:
            token = self.xml.next_token()
            if token is None:
                return None
            if isinstance(token, StartElement):
                record = self.handle_start(token)
                if record is not None:
                    return record

    def __iter__(self) -> Iterator[R]:
        while True:
            record = self.read()
            if record is None:
                return
            yield record

    def _position(self):
        """Scan the prolog up to the root element."""
        while True:
            token = self.xml.next_token()
            if token is None:
                raise SchemaError(f"invalid schema: root `{self.root_element}` element not found",
                                  source=self.root_element)
            if isinstance(token, Directive):
                if self.parse_entities and token.text.startswith(self.doctype_prefix):
                    self._register_entities(token.text[len(self.doctype_prefix):])
            elif isinstance(token, StartElement) and token.local == self.root_element:
                self._positioned = True
                return

    def _register_entities(self, text: str):
        self.tags = parse_doctype_entities(text)
        # Short codes stand for themselves; descriptions stay in self.tags
        self.xml.entity = {name: name for name in self.tags}

    def handle_start(self, start: StartElement) -> Optional[R]:
        """Decode ``start`` if it is a record element; other elements are passed over."""
        if start.local != self.record_element:
            return None

        element = self.read_subtree(start, self.record_name)
        try:
            record = self.decode_record(element)
        except ValueError as e:
            raise DecodeError(f"decoding {self.record_name}: {e}", source=self.record_element) from e
        self.validate(record)
        return record

    def read_subtree(self, start: StartElement, what: str) -> Element:
        try:
            return self.xml.read_element(start)
        except XMLSyntaxError as e:
            raise DecodeError(f"decoding {what}: {e}", source=start.local) from e

    def decode_record(self, element: Element) -> R:
        raise NotImplementedError

    def validate(self, record: R):
        """Raise InvalidRecordError if ``record`` lacks its identifier."""
        raise NotImplementedError

    def invalid(self, message: str) -> InvalidRecordError:
        return InvalidRecordError(f"invalid {self.record_name}: {message}", source=self.record_element)
