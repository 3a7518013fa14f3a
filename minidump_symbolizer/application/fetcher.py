"""
Multi-mirror symbol acquisition into a persistent on-disk cache.

Mirrors are tried in priority order, one full pass per mirror. A pass skips
modules that cannot have symbols and modules already resolved in the cache,
then downloads the rest concurrently under a bounded semaphore.
"""

import asyncio
import logging
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Sequence, Set

from tqdm.asyncio import tqdm_asyncio

from .domain import FetchReport, Module, SymbolDownloader
from .exceptions import SymbolFetchError


def _is_resolved(target: Path) -> bool:
    # A populated parent directory counts as resolved, even if the file
    # inside it is not the one we would download.
    return target.exists() or target.parent.exists()


class SymbolFetcher:
    """Downloads symbol files for a set of modules from ranked mirrors."""

    def __init__(
        self,
        downloader: SymbolDownloader,
        concurrent_downloads: int,
        force: bool = False,
        quiet: bool = False,
    ):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.downloader = downloader
        self.concurrent_downloads = concurrent_downloads
        self.force = force
        self.quiet = quiet
        self._locks: Dict[Path, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def _fetch_one(
        self,
        mirror: str,
        module: Module,
        target: Path,
        semaphore: asyncio.Semaphore,
        errors: List[SymbolFetchError],
        resolved: Set[Path],
        report: FetchReport,
    ):
        """Fetch a single module, recording a failure in errors."""
        async with semaphore, self._locks[target]:
            # Once a download failed, modules not yet dispatched are dropped.
            if errors:
                return
            if target in resolved or (not self.force and _is_resolved(target)):
                report.skipped += 1
                return

            url = f"{mirror.rstrip('/')}/{module.url_path()}"
            try:
                found = await self.downloader.download(url, target)
            except SymbolFetchError as e:
                errors.append(e)
                return
            if found:
                resolved.add(target)

        if found:
            report.downloaded += 1
        else:
            self.logger.debug(f"No symbols for {module.name} on {mirror}")
            report.missed += 1

    async def _fetch_from_mirror(
        self,
        cache_dir: Path,
        mirror: str,
        modules: Sequence[Module],
        resolved: Set[Path],
    ) -> FetchReport:
        report = FetchReport()
        pending = []
        for module in modules:
            if module.is_unsymbolized:
                report.skipped += 1
                continue
            if not module.has_safe_name:
                self.logger.warning(
                    f"Skipping module with unusable name {module.name!r}"
                )
                report.skipped += 1
                continue
            target = module.cache_path(cache_dir)
            if target in resolved or (not self.force and _is_resolved(target)):
                report.skipped += 1
                continue
            pending.append((module, target))

        if not pending:
            self.logger.info(f"Nothing to fetch from {mirror}.")
            return report

        self.logger.info(
            f"Fetching {len(pending)} symbol files from {mirror} with a "
            f"concurrency limit of {self.concurrent_downloads}..."
        )

        semaphore = asyncio.Semaphore(self.concurrent_downloads)
        errors: List[SymbolFetchError] = []
        tasks = [
            asyncio.create_task(
                self._fetch_one(
                    mirror, module, target, semaphore, errors, resolved, report
                )
            )
            for module, target in pending
        ]
        await tqdm_asyncio.gather(
            *tasks, desc=mirror, unit="symbol", disable=self.quiet
        )

        if errors:
            raise errors[0]
        return report

    async def fetch(
        self, cache_dir: Path, mirrors: Sequence[str], modules: List[Module]
    ) -> FetchReport:
        """
        Populates cache_dir with symbol files for modules.

        Each mirror pass finishes before the next one starts, so later mirrors
        only top up what earlier mirrors missed.

        Args:
            cache_dir: Root of the '<name>/<debug id>/<file>.sym' tree.
            mirrors: Symbol server base URLs in priority order.
            modules: Modules extracted from the dump, duplicates allowed.

        Returns:
            The combined tally over all mirror passes.

        Raises:
            SymbolFetchError: If a download fails for a reason other than
                              the symbol being absent from the server.
        """
        total = FetchReport()
        resolved: Set[Path] = set()
        for mirror in mirrors:
            total.merge(
                await self._fetch_from_mirror(
                    Path(cache_dir), mirror, modules, resolved
                )
            )
        self.logger.info(
            f"Symbols downloaded: {total.downloaded}, missing: {total.missed}, "
            f"skipped: {total.skipped}"
        )
        return total
