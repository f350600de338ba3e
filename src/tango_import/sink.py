"""
sink.py — Write decoded records to disk.

Records are dataclasses; orjson serializes them natively, so each record is
one sorted-key JSON object per line.
"""

import logging
from pathlib import Path
from typing import Any, Iterable

import orjson


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


class JsonlWriter:
    """
    Append records to a JSONL file as they are decoded.

    The file is written under a temporary name and renamed on a clean exit,
    so an interrupted stage never leaves a partial output behind.

    Usage:
        with JsonlWriter(output_dir / 'entries.jsonl') as out:
            for entry in decoder:
                out.write(entry)
    """

    def __init__(self, output_path: Path):
        self.output_path = Path(output_path)
        self.partial_path = self.output_path.with_name(self.output_path.name + '.partial')
        self.count = 0
        self._file = None

    def __enter__(self):
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.partial_path, 'wb')
        return self

    def write(self, record: Any, **extra):
        """Write one record; ``extra`` keys are merged into the JSON object."""
        if extra:
            data = orjson.loads(orjson.dumps(record))
            data.update(extra)
            record = data
        self._file.write(orjson.dumps(record, option=orjson.OPT_SORT_KEYS) + b'\n')
        self.count += 1

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._file.close()
        if exc_type is None:
            self.partial_path.replace(self.output_path)
            logger.info(f"Written: {self.output_path} ({self.count:,} records)")
        else:
            self.partial_path.unlink(missing_ok=True)
        return False


def write_jsonl(records: Iterable[Any], output_path: Path) -> int:
    """Write records to JSONL format using orjson. Returns the record count."""
    with JsonlWriter(output_path) as out:
        for record in records:
            out.write(record)
    return out.count


def write_json(data: Any, output_path: Path) -> None:
    """Write a single JSON document (tag tables, header info)."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'wb') as f:
        f.write(orjson.dumps(data, option=orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2) + b'\n')
    logger.info(f"Written: {output_path}")
