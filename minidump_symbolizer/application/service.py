"""
The core application service, containing the symbolization pipeline.

This module defines the orchestrator (SymbolizerService) that turns a crash
dump into a symbolized stack trace by sequencing the locator, the module
extractor, the symbol fetcher and the stack walker.
"""

import logging
import time
from pathlib import Path
from typing import Sequence

from tqdm.contrib.logging import logging_redirect_tqdm

from .domain import StackWalker, dump_name
from .extractor import extract_modules
from .fetcher import SymbolFetcher
from .locator import DumpLocator

logger = logging.getLogger(__name__)


class SymbolizerService:
    """Orchestrates the extraction of a stack trace from a crash dump."""

    def __init__(
        self,
        locator: DumpLocator,
        fetcher: SymbolFetcher,
        walker: StackWalker,
        mirrors: Sequence[str],
        work_dir: Path,
    ):
        """Initializes the service with its collaborators."""
        self.locator = locator
        self.fetcher = fetcher
        self.walker = walker
        self.mirrors = list(mirrors)
        self.work_dir = Path(work_dir)

    def cache_dir_for(self, dump_file: Path) -> Path:
        return self.work_dir / dump_name(dump_file, "_cache")

    async def walk(self, dump_file: Path, cache_dir: Path) -> str:
        """Runs the stack walker over dump_file using cache_dir for symbols."""
        raw = await self.walker.walk(dump_file, [cache_dir])
        return raw.decode("utf-8", errors="replace")

    async def run(self, dump_file: Path) -> str:
        """
        Executes the sequential steps for symbolizing one dump.

        Any failure propagates immediately; there is no retry at this layer.

        Args:
            dump_file: The crash dump, possibly wrapped in a container file.

        Returns:
            The stack trace produced by the stack walker.
        """
        dump_file = Path(dump_file)
        self.work_dir.mkdir(parents=True, exist_ok=True)
        started = time.monotonic()

        def checkpoint(step: int, detail):
            logger.info(
                f"step {step} {detail} ({time.monotonic() - started:.3f}s)"
            )

        checkpoint(1, dump_file)

        # Step 1: Locate and decode (path -> decoded text)
        raw_content = await self.locator.locate(dump_file)
        checkpoint(2, f"{len(raw_content)} characters decoded")

        # Step 2: Extract (decoded text -> modules)
        modules = extract_modules(raw_content)
        checkpoint(3, f"{len(modules)} modules")

        # Step 3: Fetch symbols (modules -> cache directory)
        cache_dir = self.cache_dir_for(dump_file)
        with logging_redirect_tqdm():
            await self.fetcher.fetch(cache_dir, self.mirrors, modules)
        checkpoint(4, cache_dir)

        # Step 4: Walk (dump + cache directory -> trace)
        content = await self.walk(dump_file, cache_dir)
        checkpoint(5, f"{len(content)} characters of stack trace")

        return content
