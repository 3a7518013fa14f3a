"""
Location of the minidump payload inside a possibly wrapped dump file.

Crash reports are sometimes uploaded inside a larger container, so the
locator tolerates an unknown prefix: when the file does not start with the
minidump signature, the payload is carved into a temporary file starting at
the first signature found and decoding proceeds on that file.
"""

import asyncio
import contextlib
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Generator

from .domain import DumpDecoder, dump_name
from .exceptions import DumpDecodeError, NotADumpFile, TruncatedFile

MINIDUMP_SIGNATURE = (0x4D444D50).to_bytes(4, "big")


def _read_head(path: Path) -> bytes:
    with open(path, "rb") as f:
        return f.read(len(MINIDUMP_SIGNATURE))


def _find_signature(path: Path) -> int:
    with open(path, "rb") as f:
        return f.read().find(MINIDUMP_SIGNATURE)


def _copy_from(source: Path, offset: int, target: Path):
    with open(source, "rb") as src, open(target, "wb") as dst:
        src.seek(offset)
        shutil.copyfileobj(src, dst)


class DumpLocator:
    """Finds and decodes the minidump payload of a file."""

    def __init__(self, decoder: DumpDecoder, work_dir: Path, max_carve_depth: int = 3):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.decoder = decoder
        self.work_dir = Path(work_dir)
        self.max_carve_depth = max_carve_depth

    @contextlib.contextmanager
    def _carved_file(self, source: Path) -> Generator[Path, None, None]:
        """Provides a fresh carved file path and always removes it."""
        fd, name = tempfile.mkstemp(
            prefix=dump_name(source, "_"),
            suffix="_temp.dmp",
            dir=self.work_dir,
        )
        os.close(fd)
        carved = Path(name)
        try:
            yield carved
        finally:
            carved.unlink(missing_ok=True)

    async def _decode(self, path: Path) -> str:
        raw = await self.decoder.decode(path)
        text = raw.decode("utf-8", errors="replace") if raw else ""
        if not text:
            raise DumpDecodeError(f"Dump decoder produced no output for {path}")
        return text

    async def _locate(self, path: Path, depth: int) -> str:
        head = await asyncio.to_thread(_read_head, path)
        if len(head) < len(MINIDUMP_SIGNATURE):
            raise TruncatedFile(f"Not a minidump file (file too short): {path}")

        if head == MINIDUMP_SIGNATURE:
            return await self._decode(path)

        offset = await asyncio.to_thread(_find_signature, path)
        if offset < 0:
            raise NotADumpFile(
                f"Not a minidump file (MDMP header not found): {path}"
            )
        if depth >= self.max_carve_depth:
            raise NotADumpFile(
                f"Gave up carving {path} after {depth} nested attempts"
            )

        self.logger.info(
            f"Minidump signature found at offset {offset} of {path.name}, "
            f"carving payload..."
        )
        with self._carved_file(path) as carved:
            await asyncio.to_thread(_copy_from, path, offset, carved)
            return await self._locate(carved, depth + 1)

    async def locate(self, path: Path) -> str:
        """
        Returns the decoded textual summary of the dump at path.

        Args:
            path: The dump file, possibly wrapped in a larger container.

        Raises:
            TruncatedFile: If the file is shorter than the signature.
            NotADumpFile: If no signature exists anywhere in the file.
            DumpDecodeError: If the decoder fails on the located payload.
        """
        return await self._locate(Path(path), 0)
