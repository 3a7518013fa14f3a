"""
Dependency Injection container for the minidump_symbolizer component.

This container uses the `dependency-injector` library to wire together all
the components of the application, such as services and infrastructure adapters,
based on the application's configuration.
"""

from dependency_injector import containers, providers
import httpx

from ..application.domain import DumpDecoder, StackWalker, SymbolDownloader
from ..application.fetcher import SymbolFetcher
from ..application.locator import DumpLocator
from ..application.service import SymbolizerService
from ..settings import settings as default_settings

from .breakpad import BreakpadDumpDecoder, BreakpadStackWalker
from .config_models import load_settings
from .downloader import HttpSymbolDownloader


class Container(containers.DeclarativeContainer):
    """DI container for wiring the application components."""

    cli_args = providers.Configuration()

    config = providers.Object(default_settings)

    symbolizer = providers.Singleton(
        load_settings,
        config=config,
        overrides=cli_args,
    )

    http_client = providers.Singleton(httpx.AsyncClient)

    downloader: providers.Factory[SymbolDownloader] = providers.Factory(
        HttpSymbolDownloader,
        client=http_client,
        timeout=symbolizer.provided.timeout,
        chunk_size=symbolizer.provided.chunk_size,
        retry_attempts=symbolizer.provided.retry_attempts,
        stale_part_seconds=symbolizer.provided.stale_part_seconds,
    )

    decoder: providers.Factory[DumpDecoder] = providers.Factory(
        BreakpadDumpDecoder,
        executable=symbolizer.provided.minidump_dump,
    )

    walker: providers.Factory[StackWalker] = providers.Factory(
        BreakpadStackWalker,
        executable=symbolizer.provided.minidump_stackwalk,
        machine_readable=symbolizer.provided.machine_readable,
    )

    locator = providers.Factory(
        DumpLocator,
        decoder=decoder,
        work_dir=symbolizer.provided.work_dir,
        max_carve_depth=symbolizer.provided.max_carve_depth,
    )

    fetcher = providers.Factory(
        SymbolFetcher,
        downloader=downloader,
        concurrent_downloads=symbolizer.provided.concurrent_downloads,
        force=symbolizer.provided.force,
        quiet=symbolizer.provided.quiet,
    )

    symbolizer_service = providers.Factory(
        SymbolizerService,
        locator=locator,
        fetcher=fetcher,
        walker=walker,
        mirrors=symbolizer.provided.mirrors,
        work_dir=symbolizer.provided.work_dir,
    )
