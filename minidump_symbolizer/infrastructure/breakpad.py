"""
Infrastructure adapters running the Breakpad command line tools.

minidump_dump decodes a minidump into a textual summary and
minidump_stackwalk produces a symbolized stack trace from a minidump and a
list of symbol directories.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Sequence, Tuple

from ..application.domain import DumpDecoder, StackWalker
from ..application.exceptions import (
    ConfigurationError,
    DumpDecodeError,
    StackWalkError,
)


async def _run_tool(args: Sequence[str]) -> Tuple[int, bytes, bytes]:
    """Run a command to completion and capture both output streams."""
    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise ConfigurationError(
            f"Breakpad tool {args[0]!r} not found. Check the "
            f"symbolizer.minidump_dump and symbolizer.minidump_stackwalk "
            f"settings."
        ) from e
    stdout, stderr = await proc.communicate()
    return proc.returncode, stdout, stderr


class BreakpadDumpDecoder(DumpDecoder):
    """An adapter that implements the DumpDecoder port with minidump_dump."""

    def __init__(self, executable: str):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.executable = executable

    async def decode(self, path: Path) -> bytes:
        """
        Decode a minidump into its textual summary.

        minidump_dump exits non-zero on some valid dumps that merely contain
        streams it does not understand, so only an empty output counts as a
        failure.

        Raises:
            DumpDecodeError: If the tool printed nothing.
        """
        self.logger.info(f"Decoding {Path(path).name}...")
        try:
            code, stdout, stderr = await _run_tool([self.executable, str(path)])
        except OSError as e:
            raise DumpDecodeError(f"Could not run {self.executable}: {e}") from e
        if not stdout:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise DumpDecodeError(
                f"{self.executable} failed on {path} (code {code}): {message}"
            )
        return stdout


class BreakpadStackWalker(StackWalker):
    """An adapter that implements the StackWalker port with minidump_stackwalk."""

    def __init__(self, executable: str, machine_readable: bool = False):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.executable = executable
        self.machine_readable = machine_readable

    def _command(self, path: Path, search_dirs: List[Path]) -> List[str]:
        args = [self.executable]
        if self.machine_readable:
            args.append("-m")
        args.append(str(path))
        args.extend(str(directory) for directory in search_dirs)
        return args

    async def walk(self, path: Path, search_dirs: List[Path]) -> bytes:
        """
        Walk the stacks of a minidump.

        Raises:
            StackWalkError: If the engine exits with a non-zero status.
        """
        self.logger.info(f"Walking stacks of {Path(path).name}...")
        try:
            code, stdout, stderr = await _run_tool(
                self._command(path, search_dirs)
            )
        except OSError as e:
            raise StackWalkError(f"Could not run {self.executable}: {e}") from e
        if code != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise StackWalkError(
                f"{self.executable} failed on {path} (code {code}): {message}"
            )
        return stdout
