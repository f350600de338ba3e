"""
jmnedict.py — JMnedict proper-name entries.
"""

from dataclasses import dataclass, field
from typing import List

from tango_import.config import DEFAULT_NAMES_FILE
from tango_import.decoder import RecordDecoder
from tango_import.files import ArchiveReader, open_gzip
from tango_import.xmlstream import Element


@dataclass
class NameSense:
    type: List[str] = field(default_factory=list)
    xref: List[str] = field(default_factory=list)
    translation: List[str] = field(default_factory=list)


@dataclass
class Name:
    sequence: int = 0
    kanji: List[str] = field(default_factory=list)
    reading: List[str] = field(default_factory=list)
    sense: List[NameSense] = field(default_factory=list)


def decode_name(element: Element) -> Name:
    return Name(
        sequence=element.int_of('ent_seq'),
        kanji=element.texts('k_ele/keb'),
        reading=element.texts('r_ele/reb'),
        sense=[
            NameSense(
                type=trans.texts('name_type'),
                xref=trans.texts('xref'),
                translation=trans.texts('trans_det'),
            )
            for trans in element.find_all('trans')
        ],
    )


class JMnedictDecoder(RecordDecoder[Name]):
    root_element = 'JMnedict'
    record_element = 'entry'
    record_name = 'entry'

    def decode_record(self, element: Element) -> Name:
        return decode_name(element)

    def validate(self, record: Name):
        if record.sequence == 0:
            raise self.invalid("missing sequence")


def load(path: str = DEFAULT_NAMES_FILE) -> ArchiveReader:
    return open_gzip(path)
