#!/usr/bin/env python3
"""
tango-import - Decode the Japanese dictionary sources into JSONL.

Runs four stages, each skipped when its output already exists:

  entries    JMdict            -> entries.jsonl, entries-tags.json
  names      JMnedict          -> names.jsonl, names-tags.json
  kanji      KANJIDIC2         -> kanji.jsonl, kanji-info.json
  frequency  frequency lists   -> frequency.jsonl

Source archives are located by searching upward from the working directory
(default locations under vendor/data/, overridable with --config).

Usage:
    tango-import --output data/import [--config import.yaml] [--no-progress]
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from tango_import import frequency, jmdict, jmnedict, kanjidic
from tango_import.config import ImportConfig, load_config
from tango_import.decoder import RecordDecoder
from tango_import.errors import TangoImportError
from tango_import.progress_display import MB, StageProgress
from tango_import.sink import JsonlWriter, write_json


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


class StageError(Exception):
    """A stage failed; the message is already prefixed with the stage name."""


def decode_all(
    decoder: RecordDecoder,
    stream,
    output_path: Path,
    label: str,
    show_progress: bool,
    finish: Optional[Callable[[], None]] = None
) -> int:
    """
    Drain ``decoder`` into a JSONL file.

    ``finish`` runs after the last record but before the JSONL file is
    committed; if it raises, the stage leaves no output and is retried on
    the next run.
    """
    with StageProgress(label, stream=stream, enabled=show_progress) as progress, \
            JsonlWriter(output_path) as out:
        for record in decoder:
            out.write(record)
            progress.update(out.count)
        if finish is not None:
            finish()
    logger.info(f"  {out.count:,} {label} in {progress.elapsed:.1f}s "
                f"({stream.total_decompressed / MB:,.1f} MB decompressed)")
    return out.count


def import_entries(config: ImportConfig, output_dir: Path, show_progress: bool = True):
    with jmdict.load(config.entries_file) as input:
        decoder = jmdict.JMdictDecoder(input)
        decode_all(decoder, input, output_dir / 'entries.jsonl', 'entries', show_progress,
                   finish=lambda: write_json(decoder.tags, output_dir / 'entries-tags.json'))


def import_names(config: ImportConfig, output_dir: Path, show_progress: bool = True):
    with jmnedict.load(config.names_file) as input:
        decoder = jmnedict.JMnedictDecoder(input)
        decode_all(decoder, input, output_dir / 'names.jsonl', 'names', show_progress,
                   finish=lambda: write_json(decoder.tags, output_dir / 'names-tags.json'))


def import_kanji(config: ImportConfig, output_dir: Path, show_progress: bool = True):
    with kanjidic.load(config.kanji_file) as input:
        decoder = kanjidic.KanjiDecoder(input)
        decode_all(decoder, input, output_dir / 'kanji.jsonl', 'kanji', show_progress,
                   finish=lambda: write_json(decoder.info, output_dir / 'kanji-info.json'))


def import_frequency(config: ImportConfig, output_dir: Path, show_progress: bool = True):
    words, chars = frequency.load_entries(
        config.frequency_info_file,
        word_file=config.frequency_word_file,
        char_file=config.frequency_char_file,
    )
    jparser, mecab, kanji = frequency.load_pairs(config.frequency_pairs_file, config.frequency_pairs_files)

    lists = [('word', words), ('char', chars), ('jparser', jparser), ('mecab', mecab), ('kanji', kanji)]
    with JsonlWriter(output_dir / 'frequency.jsonl') as out:
        for name, items in lists:
            logger.info(f"  {name}: {len(items):,} rows")
            for item in items:
                out.write(item, list=name)


Stage = Tuple[str, str, Callable[[ImportConfig, Path, bool], None]]

STAGES: List[Stage] = [
    ('entries', 'entries.jsonl', import_entries),
    ('names', 'names.jsonl', import_names),
    ('kanji', 'kanji.jsonl', import_kanji),
    ('frequency', 'frequency.jsonl', import_frequency),
]


def run_stages(config: ImportConfig, output_dir: Path, show_progress: bool = True) -> int:
    """Run every stage whose output is missing. Returns the number of stages run."""
    output_dir.mkdir(parents=True, exist_ok=True)
    ran = 0
    for name, output_name, run in STAGES:
        output_path = output_dir / output_name
        if output_path.exists():
            logger.info(f"Skipping {name}: {output_path} exists")
            continue

        logger.info(f"Importing {name}...")
        try:
            run(config, output_dir, show_progress)
        except (TangoImportError, OSError) as e:
            raise StageError(f"importing {name}: {e}") from e
        ran += 1
    return ran


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for tango-import CLI."""
    parser = argparse.ArgumentParser(
        description='Decode JMdict, JMnedict, KANJIDIC2 and frequency lists into JSONL'
    )
    parser.add_argument('--output', type=Path, required=True,
                        help='Output directory for the JSONL files')
    parser.add_argument('--config', type=Path,
                        help='YAML file overriding source archive locations')
    parser.add_argument('--no-progress', action='store_true',
                        help='Disable the live progress panel')
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config) if args.config else ImportConfig()
    except (TangoImportError, OSError) as e:
        logger.error(f"loading config: {e}")
        return 2

    logger.info("tango-import")
    logger.info(f"  Output: {args.output}")

    try:
        ran = run_stages(config, args.output, show_progress=not args.no_progress)
    except StageError as e:
        logger.error(str(e))
        return 2

    logger.info(f"Import complete ({ran} stages run)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
