"""Unit tests for the XMLTokenStream pull tokenizer.

Covers token kinds, entity resolution, well-formedness errors, chunk
boundaries and subtree reading.
"""
import io

import pytest

from tango_import.errors import XMLSyntaxError
from tango_import.xmlstream import (
    CharData,
    Comment,
    Directive,
    Element,
    EndElement,
    ProcInst,
    StartElement,
    XMLTokenStream,
    parse_int,
)


def tokens(text: str, chunk_size: int = 256 * 1024, entity=None):
    stream = XMLTokenStream(io.BytesIO(text.encode('utf-8')), chunk_size=chunk_size)
    if entity:
        stream.entity = entity
    result = []
    while True:
        token = stream.next_token()
        if token is None:
            return result
        result.append(token)


class TestTokens:
    """Token kinds produced by next_token()."""

    def test_elements_and_text(self):
        assert tokens('<a><b>text</b></a>') == [
            StartElement('a'),
            StartElement('b'),
            CharData('text'),
            EndElement('b'),
            EndElement('a'),
        ]

    def test_self_closing_element(self):
        assert tokens('<a><re_nokanji/></a>') == [
            StartElement('a'),
            StartElement('re_nokanji'),
            EndElement('re_nokanji'),
            EndElement('a'),
        ]

    def test_attributes(self):
        result = tokens('<gloss g_type="expl" xml:lang=\'dut\'>x</gloss>')
        assert result[0] == StartElement('gloss', {'g_type': 'expl', 'lang': 'dut'})

    def test_local_name(self):
        start = tokens('<ns:item/>')[0]
        assert start.name == 'ns:item'
        assert start.local == 'item'

    def test_comment(self):
        assert tokens('<a><!-- note --></a>')[1] == Comment(' note ')

    def test_processing_instruction(self):
        assert tokens('<?xml version="1.0" encoding="UTF-8"?><a/>')[0] == \
            ProcInst('xml', 'version="1.0" encoding="UTF-8"')

    def test_cdata_section(self):
        assert tokens('<a><![CDATA[<raw> & text]]></a>')[1] == CharData('<raw> & text')

    def test_directive_with_internal_subset(self):
        text = '<!DOCTYPE JMdict [\n<!ENTITY n "noun">\n<!ELEMENT a (#PCDATA)>\n]><JMdict/>'
        directive = tokens(text)[0]
        assert isinstance(directive, Directive)
        assert directive.text.startswith('DOCTYPE JMdict [')
        assert '<!ENTITY n "noun">' in directive.text
        assert directive.text.endswith(']')

    def test_directive_quoted_brackets(self):
        directive = tokens('<!DOCTYPE r [<!ENTITY w ">x<">]><r/>')[0]
        assert directive.text == 'DOCTYPE r [<!ENTITY w ">x<">]'

    def test_directive_drops_comments(self):
        directive = tokens('<!DOCTYPE r [<!-- a > b --><!ENTITY n "noun">]><r/>')[0]
        assert directive.text == 'DOCTYPE r [ <!ENTITY n "noun">]'

    def test_byte_order_mark_skipped(self):
        assert tokens('\ufeff<a/>')[0] == StartElement('a')

    def test_newlines_normalized(self):
        assert tokens('<a>one\r\ntwo\rthree</a>')[1] == CharData('one\ntwo\nthree')

    def test_end_of_input_repeats(self):
        stream = XMLTokenStream(io.BytesIO(b'<a/>'))
        while stream.next_token() is not None:
            pass
        assert stream.next_token() is None
        assert stream.next_token() is None


class TestEntities:
    """Entity and character reference resolution."""

    def test_predefined_entities(self):
        assert tokens('<a>&lt;&gt;&amp;&apos;&quot;</a>')[1] == CharData('<>&\'"')

    def test_character_references(self):
        assert tokens('<a>&#65;&#x3042;</a>')[1] == CharData('Aあ')

    def test_entities_in_attributes(self):
        assert tokens('<a t="x&amp;y"/>')[0].attrs == {'t': 'x&y'}

    def test_custom_entity_table(self):
        assert tokens('<pos>&n;</pos>', entity={'n': 'n'})[1] == CharData('n')

    def test_unknown_entity_is_error(self):
        with pytest.raises(XMLSyntaxError) as exc_info:
            tokens('<pos>&n;</pos>')
        assert "invalid character entity &n;" in str(exc_info.value)

    def test_invalid_character_reference(self):
        with pytest.raises(XMLSyntaxError):
            tokens('<a>&#xD800;</a>')


class TestSyntaxErrors:
    """Well-formedness violations."""

    def test_mismatched_end_tag(self):
        with pytest.raises(XMLSyntaxError) as exc_info:
            tokens('<a><b></a>')
        assert "element <b> closed by </a>" in str(exc_info.value)

    def test_unexpected_end_tag(self):
        with pytest.raises(XMLSyntaxError) as exc_info:
            tokens('</a>')
        assert "unexpected end element </a>" in str(exc_info.value)

    def test_unexpected_eof_with_open_elements(self):
        with pytest.raises(XMLSyntaxError) as exc_info:
            tokens('<a><b>text')
        assert "unexpected EOF" in str(exc_info.value)

    def test_unquoted_attribute(self):
        with pytest.raises(XMLSyntaxError):
            tokens('<a t=x/>')

    def test_less_than_in_attribute(self):
        with pytest.raises(XMLSyntaxError):
            tokens('<a t="<"/>')

    def test_unterminated_comment(self):
        with pytest.raises(XMLSyntaxError):
            tokens('<a><!-- never closed')

    def test_non_utf8_declaration_rejected(self):
        with pytest.raises(XMLSyntaxError) as exc_info:
            tokens('<?xml version="1.0" encoding="Shift_JIS"?><a/>')
        assert "unsupported document encoding" in str(exc_info.value)

    def test_error_reports_line(self):
        with pytest.raises(XMLSyntaxError) as exc_info:
            tokens('<a>\n<b>\n</c>')
        assert exc_info.value.line == 3
        assert str(exc_info.value).startswith("XML syntax error on line 3: ")


class TestChunkBoundaries:
    """Tokens split across refills produce the same result."""

    DOCUMENT = (
        '<?xml version="1.0"?>\n'
        '<!DOCTYPE JMdict [\n<!ENTITY n "noun (common)">\n]>\n'
        '<JMdict><entry><ent_seq>1000</ent_seq><gloss xml:lang="eng">日本語 &amp; more</gloss>'
        '<pos>&n;</pos><![CDATA[raw]]><!-- c --></entry></JMdict>\n'
    )

    @pytest.mark.parametrize('chunk_size', [1, 2, 3, 7, 64])
    def test_small_chunks_match_single_read(self, chunk_size):
        expected = tokens(self.DOCUMENT, entity={'n': 'n'})
        assert tokens(self.DOCUMENT, chunk_size=chunk_size, entity={'n': 'n'}) == expected

    def test_multibyte_characters_split_across_chunks(self):
        assert tokens('<a>日本</a>', chunk_size=1)[1] == CharData('日本')


class TestReadElement:
    """Subtree reading and Element helpers."""

    def read(self, text: str) -> Element:
        stream = XMLTokenStream(io.BytesIO(text.encode('utf-8')))
        start = stream.next_token()
        return stream.read_element(start)

    def test_builds_tree(self):
        element = self.read('<entry><ent_seq>5</ent_seq><k_ele><keb>漢字</keb></k_ele></entry>')
        assert element.name == 'entry'
        assert element.text_of('ent_seq') == '5'
        assert element.texts('k_ele/keb') == ['漢字']

    def test_comments_and_instructions_dropped(self):
        element = self.read('<a>x<!-- note -->y<?pi z?></a>')
        assert element.text == 'xy'
        assert element.children == []

    def test_last_occurrence_wins(self):
        element = self.read('<a><v>1</v><v>2</v></a>')
        assert element.text_of('v') == '2'
        assert element.int_of('v') == 2
        assert element.ints('v') == [1, 2]

    def test_missing_path(self):
        element = self.read('<a/>')
        assert element.text_of('v') == ''
        assert element.int_of('v') == 0
        assert element.texts('v') == []
        assert not element.has('v')

    def test_attributes_by_local_name(self):
        element = self.read('<a><gloss xml:lang="ger">Wort</gloss></a>')
        assert element.find_all('gloss')[0].attr('lang') == 'ger'

    def test_eof_inside_subtree(self):
        stream = XMLTokenStream(io.BytesIO(b'<a><b>'))
        start = stream.next_token()
        with pytest.raises(XMLSyntaxError):
            stream.read_element(start)


class TestParseInt:
    """Integer element values."""

    def test_plain_and_signed(self):
        assert parse_int('1000') == 1000
        assert parse_int(' -5 ') == -5
        assert parse_int('+7') == 7

    def test_blank_is_zero(self):
        assert parse_int('') == 0
        assert parse_int('   ') == 0

    def test_not_a_number(self):
        with pytest.raises(ValueError):
            parse_int('12a')

    def test_out_of_range(self):
        with pytest.raises(ValueError):
            parse_int(str(1 << 63))
