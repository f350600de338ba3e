"""
kanjidic.py — KANJIDIC2 character entries.

The document starts with a <header> describing the database version and
creation date; it is captured into ``KanjiDecoder.info`` instead of being
returned as a record. Every <character> after it becomes a Character.

Usage:
    with kanjidic.load() as input:
        decoder = kanjidic.KanjiDecoder(input)
        for character in decoder:
            ...
        print(decoder.info.database_version)
"""

from dataclasses import dataclass, field
from typing import List, Optional

from tango_import.config import DEFAULT_KANJI_FILE
from tango_import.decoder import RecordDecoder
from tango_import.files import ArchiveReader, open_gzip
from tango_import.xmlstream import Element, StartElement


@dataclass
class KanjiInfo:
    file_version: str = ''
    database_version: str = ''
    date_of_creation: str = ''


@dataclass
class Codepoint:
    type: str = ''
    text: str = ''


@dataclass
class Radical:
    type: str = ''
    text: str = ''


@dataclass
class Variant:
    type: str = ''
    text: str = ''


@dataclass
class Reference:
    type: str = ''
    text: str = ''
    # Morohashi volume and page, only for dr_type="moro"
    volume: str = ''
    page: str = ''


@dataclass
class QueryCode:
    type: str = ''
    text: str = ''
    skip_misclass: str = ''


@dataclass
class CharacterReading:
    type: str = ''
    text: str = ''


@dataclass
class CharacterMeaning:
    lang: str = ''
    text: str = ''


@dataclass
class ReadingMeaningGroup:
    reading: List[CharacterReading] = field(default_factory=list)
    meaning: List[CharacterMeaning] = field(default_factory=list)


@dataclass
class Character:
    literal: str = ''
    grade: int = 0
    strokes: List[int] = field(default_factory=list)
    frequency: int = 0
    jlpt: int = 0
    reading_meanings: List[ReadingMeaningGroup] = field(default_factory=list)
    radical_name: List[str] = field(default_factory=list)
    codepoint: List[Codepoint] = field(default_factory=list)
    radical: List[Radical] = field(default_factory=list)
    variant: List[Variant] = field(default_factory=list)
    reference: List[Reference] = field(default_factory=list)
    query_code: List[QueryCode] = field(default_factory=list)
    nanori: List[str] = field(default_factory=list)


def decode_info(element: Element) -> KanjiInfo:
    return KanjiInfo(
        file_version=element.text_of('file_version'),
        database_version=element.text_of('database_version'),
        date_of_creation=element.text_of('date_of_creation'),
    )


def decode_character(element: Element) -> Character:
    """Bind a <character> element. Raises ValueError on malformed numbers."""
    return Character(
        literal=element.text_of('literal'),
        grade=element.int_of('misc/grade'),
        strokes=element.ints('misc/stroke_count'),
        frequency=element.int_of('misc/freq'),
        jlpt=element.int_of('misc/jlpt'),
        reading_meanings=[
            ReadingMeaningGroup(
                reading=[CharacterReading(type=r.attr('r_type'), text=r.text) for r in group.find_all('reading')],
                meaning=[CharacterMeaning(lang=m.attr('m_lang'), text=m.text) for m in group.find_all('meaning')],
            )
            for group in element.find_all('reading_meaning/rmgroup')
        ],
        radical_name=element.texts('misc/rad_name'),
        codepoint=[Codepoint(type=cp.attr('cp_type'), text=cp.text)
                   for cp in element.find_all('codepoint/cp_value')],
        radical=[Radical(type=rad.attr('rad_type'), text=rad.text)
                 for rad in element.find_all('radical/rad_value')],
        variant=[Variant(type=var.attr('var_type'), text=var.text)
                 for var in element.find_all('misc/variant')],
        reference=[
            Reference(type=ref.attr('dr_type'), text=ref.text, volume=ref.attr('m_vol'), page=ref.attr('m_page'))
            for ref in element.find_all('dic_number/dic_ref')
        ],
        query_code=[
            QueryCode(type=q.attr('qc_type'), text=q.text, skip_misclass=q.attr('skip_misclass'))
            for q in element.find_all('query_code/q_code')
        ],
        nanori=element.texts('reading_meaning/nanori'),
    )


class KanjiDecoder(RecordDecoder[Character]):
    root_element = 'kanjidic2'
    record_element = 'character'
    record_name = 'character'
    header_element = 'header'
    parse_entities = False

    def __init__(self, input, chunk_size: int = 256 * 1024):
        super().__init__(input, chunk_size=chunk_size)
        self.info = KanjiInfo()

    def handle_start(self, start: StartElement) -> Optional[Character]:
        if start.local == self.header_element:
            element = self.read_subtree(start, 'header')
            self.info = decode_info(element)
            return None
        return super().handle_start(start)

    def decode_record(self, element: Element) -> Character:
        return decode_character(element)

    def validate(self, record: Character):
        if not record.literal:
            raise self.invalid("missing literal")


def load(path: str = DEFAULT_KANJI_FILE) -> ArchiveReader:
    return open_gzip(path)
