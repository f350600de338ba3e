"""
config.py — Source file locations.

Paths are relative and resolved by searching upward from the working
directory (see files.find). An optional YAML file can override any field:

    entries_file: vendor/data/entries/JMdict_e.gz
    frequency_pairs_files:
      jparser: word_freq_report_jp.txt
"""

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Dict

import yaml

from tango_import.errors import FormatError


DEFAULT_ENTRIES_FILE = "vendor/data/entries/JMdict.gz"
DEFAULT_NAMES_FILE = "vendor/data/entries/JMnedict.xml.gz"
DEFAULT_KANJI_FILE = "vendor/data/kanji/kanjidic2.xml.gz"
DEFAULT_FREQUENCY_INFO_FILE = "vendor/data/frequency/Jap.Freq.2.zip"
DEFAULT_FREQUENCY_PAIRS_FILE = "vendor/data/frequency/Innocent_Novel_Analysis_120526.zip"

# Entries of the frequency info zip
FREQUENCY_WORD_FILE = "Jap.Freq.2.txt"
FREQUENCY_CHAR_FILE = "Jap.Char.Freq.2.txt"

# Entries of the novel analysis zip, by list name
FREQUENCY_PAIRS_FILES = {
    "jparser": "word_freq_report.txt",
    "mecab": "word_freq_report_mecab.txt",
    "kanji": "kanji_freq_report.txt",
}


@dataclass(frozen=True)
class ImportConfig:
    entries_file: str = DEFAULT_ENTRIES_FILE
    names_file: str = DEFAULT_NAMES_FILE
    kanji_file: str = DEFAULT_KANJI_FILE
    frequency_info_file: str = DEFAULT_FREQUENCY_INFO_FILE
    frequency_pairs_file: str = DEFAULT_FREQUENCY_PAIRS_FILE
    frequency_word_file: str = FREQUENCY_WORD_FILE
    frequency_char_file: str = FREQUENCY_CHAR_FILE
    frequency_pairs_files: Dict[str, str] = field(default_factory=lambda: dict(FREQUENCY_PAIRS_FILES))


def load_config(config_file: Path) -> ImportConfig:
    """
    Read overrides from a YAML mapping.

    Unknown keys and values of the wrong shape raise FormatError so that a
    typo does not silently fall back to a default path.
    """
    with open(config_file, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise FormatError(f"invalid config file: {e}", source=str(config_file)) from e

    if data is None:
        return ImportConfig()
    if not isinstance(data, dict):
        raise FormatError("invalid config file: expected a mapping", source=str(config_file))

    known = {f.name for f in fields(ImportConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise FormatError(f"invalid config file: unknown keys {', '.join(map(str, unknown))}",
                          source=str(config_file))

    defaults = ImportConfig()
    overrides = {}
    for key, value in data.items():
        if key == 'frequency_pairs_files':
            if not isinstance(value, dict) or not set(value) <= set(FREQUENCY_PAIRS_FILES):
                raise FormatError(
                    f"invalid config file: `{key}` must map {', '.join(FREQUENCY_PAIRS_FILES)} to file names",
                    source=str(config_file))
            overrides[key] = {**defaults.frequency_pairs_files, **{k: str(v) for k, v in value.items()}}
        elif isinstance(value, str) and value:
            overrides[key] = value
        else:
            raise FormatError(f"invalid config file: `{key}` must be a non-empty string",
                              source=str(config_file))

    return replace(defaults, **overrides)
