"""
doctype.py — Extract <!ENTITY> declarations from a DOCTYPE internal subset.

JMdict and JMnedict declare their tag vocabulary as custom entities:

    <!DOCTYPE JMdict [
    <!ENTITY bra "Brazilian">
    <!ENTITY uK "word usually written using kanji alone">
    ...
    ]>

Only inline quoted entities are collected. Anything else (comments, element
and attribute declarations, SYSTEM entities) is text that is skipped over.
"""

from typing import Dict


ENTITY_MARKER = "<!ENTITY "

# Scanner states
SKIP_LEADING_SPACE = 'skip-space'
READ_NAME = 'name'
SKIP_TO_QUOTE = 'skip-to-quote'
INVALID = 'invalid'
# Inside a quoted value the state is the quote character itself
QUOTES = ('"', "'")


def _scan_declaration(text: str, start: int):
    """
    Run the declaration state machine from ``start``.

    Returns (end, valid): ``end`` is the index just past the consumed span,
    which for a valid declaration is just past the closing quote and for an
    invalid one just past the next '>'.
    """
    state = SKIP_LEADING_SPACE
    pos = start
    while pos < len(text):
        char = text[pos]
        pos += 1
        if state == SKIP_LEADING_SPACE:
            if not char.isspace():
                state = READ_NAME
        elif state == READ_NAME:
            if char.isspace():
                state = SKIP_TO_QUOTE
        elif state == SKIP_TO_QUOTE:
            if not char.isspace():
                state = char if char in QUOTES else INVALID
        elif state in QUOTES:
            if char == state:
                return pos, True
        elif char == '>':
            return pos, False
    return pos, False


def parse_doctype_entities(text: str) -> Dict[str, str]:
    """
    Parse entity declarations into a {name: value} mapping.

    Declarations without an inline quoted value are skipped without affecting
    their neighbours, and a later declaration of the same name replaces an
    earlier one. Returns an empty dict when there are no declarations.
    """
    entities = {}
    pos = 0
    while pos < len(text):
        marker = text.find(ENTITY_MARKER, pos)
        if marker < 0:
            break

        start = marker + len(ENTITY_MARKER)
        end, valid = _scan_declaration(text, start)
        if valid:
            # Span without the closing quote: `name "value`
            declaration = text[start:end - 1].strip()
            parts = declaration.split(' ', 1)
            if len(parts) == 2:
                name = parts[0].strip()
                value = parts[1].strip()[1:].strip()
                if name and value:
                    entities[name] = value

        pos = end

    return entities
