"""
files.py — Locate and open the compressed source archives.

Source files live under a ``vendor/`` directory somewhere above the working
directory, so lookups walk upward from the current directory until the
relative path resolves.

Usage:
    from tango_import.files import open_gzip, open_zip

    with open_gzip('vendor/data/entries/JMdict.gz') as input:
        head = input.read(1024)

    with open_zip('vendor/data/frequency/Jap.Freq.2.zip') as archive:
        with archive.open_entry_by_name('Jap.Freq.2.txt') as entry:
            for line in iter_text_lines(entry):
                ...
"""

import io
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Iterator, Optional

from tango_import.errors import FormatError, NotFoundError


GZIP_MAGIC = b'\x1f\x8b'
BOM = '\ufeff'

# Errors that mean "not at this level, try the parent directory"
_ABSENT_ERRORS = (FileNotFoundError, NotADirectoryError, IsADirectoryError)


def find(relative_path: str, start: Optional[Path] = None) -> BinaryIO:
    """
    Open ``relative_path`` relative to the first ancestor directory that has it.

    The search begins at ``start`` (default: working directory) and continues
    up to the filesystem root. Raises NotFoundError when no ancestor contains
    the file; any other OS error is raised as-is.
    """
    current = Path.cwd() if start is None else Path(start)
    while True:
        try:
            return open(current / relative_path, 'rb')
        except _ABSENT_ERRORS:
            parent = current.parent
            if parent == current:
                raise NotFoundError.for_path(relative_path) from None
            current = parent


class ArchiveReader:
    """Streaming gzip decompressor that owns the file underneath it."""

    def __init__(self, file: BinaryIO, name: str = '', chunk_size: int = 256 * 1024):
        self.name = name
        self.chunk_size = chunk_size
        self.file = file
        # wbits=31 selects the gzip container; multi-member files are handled in _fill
        self.decompressor = zlib.decompressobj(wbits=31)
        self.buffer = b''
        self.total_compressed = 0
        self.total_decompressed = 0
        self.closed = False

    def read(self, size: int = -1) -> bytes:
        """Read decompressed data; returns b'' at end of stream."""
        if size is None or size < 0:
            while self._fill():
                pass
            result = self.buffer
            self.buffer = b''
            return result

        while len(self.buffer) < size and self._fill():
            pass

        result = self.buffer[:size]
        self.buffer = self.buffer[size:]
        return result

    def _fill(self) -> bool:
        """Decompress one chunk into the buffer. Returns False at end of input."""
        if self.closed:
            raise ValueError("read from closed archive")

        if self.decompressor.eof:
            # Concatenated gzip members continue with the unused tail
            compressed = self.decompressor.unused_data
            if not compressed:
                compressed = self.file.read(self.chunk_size)
                if not compressed:
                    return False
                self.total_compressed += len(compressed)
            self.decompressor = zlib.decompressobj(wbits=31)
        else:
            compressed = self.file.read(self.chunk_size)
            if not compressed:
                raise FormatError(f"`{self.name}`: unexpected end of gzip stream", source=self.name)
            self.total_compressed += len(compressed)

        try:
            decompressed = self.decompressor.decompress(compressed)
        except zlib.error as e:
            raise FormatError(f"`{self.name}`: invalid gzip data: {e}", source=self.name) from e
        self.buffer += decompressed
        self.total_decompressed += len(decompressed)
        return True

    def close(self):
        """Release the decompressor, then the file. Safe to call twice."""
        if self.closed:
            return
        self.closed = True
        self.decompressor = None
        self.buffer = b''
        self.file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def open_gzip(relative_path: str) -> ArchiveReader:
    """Find a gzip file and return a decompressing reader over it."""
    file = find(relative_path)
    try:
        magic = file.read(len(GZIP_MAGIC))
        if magic != GZIP_MAGIC:
            raise FormatError(f"`{relative_path}` is not a valid gzip file", source=relative_path)
        file.seek(0)
    except BaseException:
        file.close()
        raise
    return ArchiveReader(file, name=relative_path)


class ZipArchive:
    """Open zip archive with lookup of members by base name."""

    def __init__(self, file: BinaryIO, name: str = ''):
        self.name = name
        self.file = file
        try:
            self.zip = zipfile.ZipFile(file)
        except zipfile.BadZipFile as e:
            raise FormatError(f"`{name}` is not a valid zip file", source=name) from e
        self.closed = False

    def open_entry_by_name(self, name: str) -> BinaryIO:
        """Open the first member whose base name equals ``name``."""
        for info in self.zip.infolist():
            if not info.is_dir() and PurePosixPath(info.filename).name == name:
                return self.zip.open(info)
        raise NotFoundError.for_path(name)

    def close(self):
        """Close the zip directory, then the file. Safe to call twice."""
        if self.closed:
            return
        self.closed = True
        try:
            self.zip.close()
        finally:
            self.file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def open_zip(relative_path: str) -> ZipArchive:
    """Find a zip file and parse its central directory."""
    file = find(relative_path)
    try:
        return ZipArchive(file, name=relative_path)
    except BaseException:
        file.close()
        raise


def iter_text_lines(stream: BinaryIO) -> Iterator[str]:
    """Yield UTF-8 lines without terminators, dropping a leading byte-order mark."""
    # Split on \n only; a lone \r inside a row is data
    text = io.TextIOWrapper(stream, encoding='utf-8', newline='\n')
    try:
        for line_num, line in enumerate(text, 1):
            if line_num == 1 and line.startswith(BOM):
                line = line[1:]
            yield line.rstrip('\r\n')
    except UnicodeDecodeError as e:
        raise FormatError(f"invalid UTF-8 text: {e}") from e
    finally:
        text.detach()
