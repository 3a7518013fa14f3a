"""HTTP implementation of the SymbolDownloader port."""

import asyncio
import contextlib
import logging
import time
from pathlib import Path
from typing import Generator, List

import httpx

from ..application.domain import SymbolDownloader
from ..application.exceptions import SymbolFetchError

from .decorators import retrying_on_network_error


class _Claimed(Exception):
    """The part file belongs to a download still running elsewhere."""


class HttpSymbolDownloader(SymbolDownloader):
    """A downloader that fetches symbol files via HTTP atomically."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        timeout: float,
        chunk_size: int,
        retry_attempts: int = 1,
        stale_part_seconds: float = 600,
    ):
        """Initializes the downloader adapter."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.client = client
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.retry_attempts = retry_attempts
        self.stale_part_seconds = stale_part_seconds

    def _claim(self, part_path: Path):
        """Exclusively create the part file, replacing a stale leftover."""
        for _ in range(2):
            try:
                part_path.open("xb").close()
                return
            except FileExistsError:
                pass
            try:
                age = time.time() - part_path.stat().st_mtime
            except FileNotFoundError:
                continue
            if age < self.stale_part_seconds:
                raise _Claimed(part_path)
            self.logger.warning(
                f"Replacing stale partial download {part_path.name}"
            )
            part_path.unlink(missing_ok=True)
        raise _Claimed(part_path)

    @contextlib.contextmanager
    def _atomic_target(self, destination: Path) -> Generator[Path, None, None]:
        """Provides a claimed '.part' path and ensures cleanup."""
        created: List[Path] = []
        parent = destination.parent
        while not parent.exists():
            created.append(parent)
            parent = parent.parent
        part_path = destination.with_name(destination.name + ".part")
        claimed = False
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            self._claim(part_path)
            claimed = True
            yield part_path
        except BaseException:
            # A part file held by another run is not ours to remove.
            if claimed:
                part_path.unlink(missing_ok=True)
            # An empty directory would make every later run skip the module.
            for directory in created:
                with contextlib.suppress(OSError):
                    directory.rmdir()
            raise

    async def _stream_chunks(self, response: httpx.Response, target_file: Path):
        """Write the response body to a file chunk by chunk."""
        with open(target_file, "wb") as f:
            async for chunk in response.aiter_bytes(self.chunk_size):
                await asyncio.to_thread(f.write, chunk)

    async def _execute_atomic_download(self, url: str, destination: Path) -> bool:
        """Orchestrate a single atomic download attempt."""
        async with self.client.stream(
            "GET", url, timeout=self.timeout, follow_redirects=True
        ) as response:
            if response.status_code >= 400:
                self.logger.debug(
                    f"No symbols at {url} (HTTP {response.status_code})"
                )
                return False
            response.raise_for_status()

            self.logger.debug(f"Downloading {url}...")
            with self._atomic_target(destination) as part_path:
                await self._stream_chunks(response, part_path)
                part_path.replace(destination)

        self.logger.info(f"Fetched {destination.name} from {url}")
        return True

    async def download(self, url: str, destination: Path) -> bool:
        """
        Fetch url into destination, reporting whether the server had it.

        This is the public method that fulfills the SymbolDownloader port
        contract. Nothing is written unless the server answers with a success
        status, and the final file only appears once it is complete.

        Args:
            url: The full symbol file URL on one mirror.
            destination: The final path of the symbol file in the cache.

        Returns:
            True if the file was downloaded, False if the server answered
            with an error status or another run is already downloading it.

        Raises:
            SymbolFetchError: For transport failures and local write errors.
        """
        try:
            async for attempt in retrying_on_network_error(self.retry_attempts):
                with attempt:
                    return await self._execute_atomic_download(url, destination)
        except _Claimed:
            self.logger.info(
                f"{destination.name} is already being downloaded elsewhere."
            )
            return False
        except httpx.HTTPError as e:
            raise SymbolFetchError(f"Failed to download {url}: {e}") from e
        except OSError as e:
            raise SymbolFetchError(
                f"Failed to write {destination} from {url}: {e}"
            ) from e
