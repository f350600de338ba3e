"""
jmdict.py — JMdict dictionary entries.

Each <entry> becomes an Entry with its kanji spellings (k_ele), readings
(r_ele) and senses. Tag-valued fields (pos, misc, ke_inf, ...) hold the
short entity codes; their descriptions are in ``JMdictDecoder.tags``.

Usage:
    with jmdict.load() as input:
        decoder = jmdict.JMdictDecoder(input)
        entries = list(decoder)
"""

from dataclasses import dataclass, field
from typing import List

from tango_import.config import DEFAULT_ENTRIES_FILE
from tango_import.decoder import RecordDecoder
from tango_import.files import ArchiveReader, open_gzip
from tango_import.xmlstream import Element


def _list():
    return field(default_factory=list)


@dataclass
class EntryKanji:
    text: str = ''
    info: List[str] = _list()
    priority: List[str] = _list()


@dataclass
class EntryReading:
    text: str = ''
    info: List[str] = _list()
    priority: List[str] = _list()
    restriction: List[str] = _list()
    # Set when <re_nokanji/> is present: the reading is not a true reading of the kanji
    no_kanji: bool = False


@dataclass
class Glossary:
    text: str = ''
    lang: str = ''
    type: str = ''


@dataclass
class SenseSource:
    """Source language of a loanword (<lsource>)."""
    text: str = ''
    lang: str = ''
    type: str = ''
    wasei: bool = False


@dataclass
class EntrySense:
    glossary: List[Glossary] = _list()
    info: List[str] = _list()
    part_of_speech: List[str] = _list()
    stag_kanji: List[str] = _list()
    stag_reading: List[str] = _list()
    field: List[str] = _list()
    misc: List[str] = _list()
    dialect: List[str] = _list()
    antonym: List[str] = _list()
    xref: List[str] = _list()
    source: List[SenseSource] = _list()


@dataclass
class Entry:
    sequence: int = 0
    kanji: List[EntryKanji] = _list()
    reading: List[EntryReading] = _list()
    sense: List[EntrySense] = _list()


def decode_entry(element: Element) -> Entry:
    """Bind an <entry> element. Raises ValueError on a malformed ent_seq."""
    return Entry(
        sequence=element.int_of('ent_seq'),
        kanji=[
            EntryKanji(
                text=k_ele.text_of('keb'),
                info=k_ele.texts('ke_inf'),
                priority=k_ele.texts('ke_pri'),
            )
            for k_ele in element.find_all('k_ele')
        ],
        reading=[
            EntryReading(
                text=r_ele.text_of('reb'),
                info=r_ele.texts('re_inf'),
                priority=r_ele.texts('re_pri'),
                restriction=r_ele.texts('re_restr'),
                no_kanji=r_ele.has('re_nokanji'),
            )
            for r_ele in element.find_all('r_ele')
        ],
        sense=[_decode_sense(sense) for sense in element.find_all('sense')],
    )


def _decode_sense(sense: Element) -> EntrySense:
    return EntrySense(
        glossary=[
            Glossary(text=gloss.text, lang=gloss.attr('lang'), type=gloss.attr('g_type'))
            for gloss in sense.find_all('gloss')
        ],
        info=sense.texts('s_inf'),
        part_of_speech=sense.texts('pos'),
        stag_kanji=sense.texts('stagk'),
        stag_reading=sense.texts('stagr'),
        field=sense.texts('field'),
        misc=sense.texts('misc'),
        dialect=sense.texts('dial'),
        antonym=sense.texts('ant'),
        xref=sense.texts('xref'),
        source=[
            SenseSource(
                text=lsource.text,
                lang=lsource.attr('lang'),
                type=lsource.attr('ls_type'),
                wasei=bool(lsource.attr('ls_wasei')),
            )
            for lsource in sense.find_all('lsource')
        ],
    )


class JMdictDecoder(RecordDecoder[Entry]):
    root_element = 'JMdict'
    record_element = 'entry'
    record_name = 'entry'

    def decode_record(self, element: Element) -> Entry:
        return decode_entry(element)

    def validate(self, record: Entry):
        if record.sequence == 0:
            raise self.invalid("missing sequence")


def load(path: str = DEFAULT_ENTRIES_FILE) -> ArchiveReader:
    """Open the gzip-compressed JMdict file (searched upward from the working directory)."""
    return open_gzip(path)
