"""
frequency.py — Parse tab-separated frequency lists.

Two line formats:

  Frequency entry (13 fields): key followed by three metric groups, one per
  corpus (blog, twitter, news), each with
      raw count, frequency per million, contextual diversity count,
      contextual diversity percentage

      の	783900	52752.36	346504	52.1601	588537	...

  Frequency pair (2 fields): count followed by key

      21086758	の

Decimal metrics are validated but kept as text so the source formatting
(e.g. "52.1601") survives unchanged.
"""

import re
from contextlib import closing
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, TypeVar

from tango_import.config import (
    DEFAULT_FREQUENCY_INFO_FILE,
    DEFAULT_FREQUENCY_PAIRS_FILE,
    FREQUENCY_CHAR_FILE,
    FREQUENCY_PAIRS_FILES,
    FREQUENCY_WORD_FILE,
)
from tango_import.errors import FormatError, TangoImportError, with_context
from tango_import.files import ZipArchive, iter_text_lines, open_zip


ENTRY_FIELDS = 13
PAIR_FIELDS = 2

# Column headers appear as a first line in the entry files
ENTRY_HEADER_MARKER = "BlogFreqPm"

CORPORA = ('blog', 'twitter', 'news')

DECIMAL = re.compile(r'[0-9]+(\.[0-9]+)?')
INTEGER = re.compile(r'[+-]?[0-9]+')

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1


@dataclass
class FrequencyMetrics:
    # Raw frequency count
    freq: int = 0
    # Frequency per million, decimal text
    freq_pm: str = ''
    # Contextual diversity
    cd: int = 0
    # Contextual diversity percentage, decimal text
    cd_pc: str = ''


@dataclass
class FrequencyEntry:
    key: str
    blog: FrequencyMetrics
    twitter: FrequencyMetrics
    news: FrequencyMetrics


@dataclass
class FrequencyPair:
    key: str
    count: int


def _parse_integer(value: str, column: str) -> int:
    if INTEGER.fullmatch(value):
        number = int(value)
        if INT64_MIN <= number <= INT64_MAX:
            return number
    raise ValueError(f"invalid integer for {column}: {value!r}")


def _parse_decimal(value: str, column: str) -> str:
    if not DECIMAL.fullmatch(value):
        raise ValueError(f"invalid decimal for {column}: {value!r}")
    return value


def _parse_metrics(fields: List[str], index: int, corpus: str) -> FrequencyMetrics:
    return FrequencyMetrics(
        freq=_parse_integer(fields[index], f"{corpus} freq"),
        freq_pm=_parse_decimal(fields[index + 1], f"{corpus} freq_pm"),
        cd=_parse_integer(fields[index + 2], f"{corpus} cd"),
        cd_pc=_parse_decimal(fields[index + 3], f"{corpus} cd_pc"),
    )


def parse_entry(line: str) -> Optional[FrequencyEntry]:
    """
    Parse a 13-field frequency entry line.

    Returns None for blank lines and for rows with a blank key, which occur
    in the source files as placeholders. Raises FormatError otherwise.
    """
    line = line.rstrip()
    if not line:
        return None

    fields = line.split('\t')
    if len(fields) != ENTRY_FIELDS:
        raise FormatError("parsing frequency entry: invalid line")

    if not fields[0].strip():
        return None

    try:
        blog, twitter, news = (
            _parse_metrics(fields, 1 + 4 * n, corpus) for n, corpus in enumerate(CORPORA)
        )
    except ValueError as e:
        raise FormatError(f"parsing frequency entry: {e}") from e

    return FrequencyEntry(key=fields[0], blog=blog, twitter=twitter, news=news)


def parse_pair(line: str) -> Optional[FrequencyPair]:
    """
    Parse a 2-field "count<TAB>key" line.

    Surrounding whitespace (tabs included) is trimmed before splitting, so
    "\\t1234\\ttest\\t" is a valid pair.
    """
    line = line.strip()
    if not line:
        return None

    fields = line.split('\t')
    if len(fields) != PAIR_FIELDS:
        raise FormatError("parsing pair frequency: invalid line")

    try:
        count = _parse_integer(fields[0], "count")
    except ValueError as e:
        raise FormatError(f"parsing pair frequency: {e}") from e
    return FrequencyPair(key=fields[1], count=count)


# ─────────────────────────────────────────────────────────────────────────────
# Zip loaders
# ─────────────────────────────────────────────────────────────────────────────

T = TypeVar('T')


def _read_list(archive: ZipArchive, entry_name: str, label: str,
               parse: Callable[[str], Optional[T]], skip_marker: Optional[str] = None) -> List[T]:
    """Parse every line of one archive entry, prefixing errors with the list label."""
    items = []
    try:
        with archive.open_entry_by_name(entry_name) as input, closing(iter_text_lines(input)) as lines:
            for line_num, line in enumerate(lines, 1):
                if skip_marker and skip_marker in line:
                    continue
                try:
                    item = parse(line)
                except FormatError as e:
                    e.source = f"{entry_name}:{line_num}"
                    raise
                if item is not None:
                    items.append(item)
    except TangoImportError as e:
        raise with_context(e, f"loading {label} entries") from e
    return items


def load_entries(path: str = DEFAULT_FREQUENCY_INFO_FILE,
                 word_file: str = FREQUENCY_WORD_FILE,
                 char_file: str = FREQUENCY_CHAR_FILE) -> Tuple[List[FrequencyEntry], List[FrequencyEntry]]:
    """Load (words, chars) frequency entries from the frequency info zip."""
    with open_zip(path) as archive:
        words = _read_list(archive, word_file, "word", parse_entry, ENTRY_HEADER_MARKER)
        chars = _read_list(archive, char_file, "char", parse_entry, ENTRY_HEADER_MARKER)
    return words, chars


def load_pairs(path: str = DEFAULT_FREQUENCY_PAIRS_FILE,
               files: Optional[dict] = None) -> Tuple[List[FrequencyPair], List[FrequencyPair], List[FrequencyPair]]:
    """Load the (jparser, mecab, kanji) count lists from the novel analysis zip."""
    files = files or FREQUENCY_PAIRS_FILES
    with open_zip(path) as archive:
        jparser = _read_list(archive, files["jparser"], "jparser", parse_pair)
        mecab = _read_list(archive, files["mecab"], "mecab", parse_pair)
        kanji = _read_list(archive, files["kanji"], "kanji", parse_pair)
    return jparser, mecab, kanji
