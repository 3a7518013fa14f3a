import asyncio
import re

import pytest

from minidump_symbolizer.application.domain import Module, dump_name
from minidump_symbolizer.application.exceptions import NotADumpFile, SymbolFetchError
from minidump_symbolizer.application.fetcher import SymbolFetcher
from minidump_symbolizer.application.locator import DumpLocator
from minidump_symbolizer.application.service import SymbolizerService

from conftest import MIRROR_1, MIRROR_2, FakeDecoder, FakeDownloader, FakeWalker

FOO = Module("foo.pdb", "ABCDEF01")


def build_service(work_dir, downloader, walker, decoder=None):
    decoder = decoder or FakeDecoder()
    return SymbolizerService(
        locator=DumpLocator(decoder, work_dir),
        fetcher=SymbolFetcher(downloader, concurrent_downloads=4, quiet=True),
        walker=walker,
        mirrors=[MIRROR_1, MIRROR_2],
        work_dir=work_dir,
    )


def test_dump_name():
    assert dump_name("/tmp/crash.dmp") == "crash"
    assert dump_name("/tmp/report.2024.dmp", "_cache") == "report_cache"


def test_dump_name_without_stem():
    assert re.fullmatch(r"[A-Za-z0-9]{5}\d{14}_cache", dump_name("/tmp/.dmp", "_cache"))


def test_run_produces_stack_trace(tmp_path):
    work_dir = tmp_path / "work"
    dump = tmp_path / "crash.dmp"
    dump.write_bytes(b"MDMPpayload")
    downloader = FakeDownloader(
        available={f"{MIRROR_2}/{FOO.url_path()}": b"MODULE windows x86_64 ABCDEF01 foo.pdb\n"}
    )
    walker = FakeWalker()

    trace = asyncio.run(build_service(work_dir, downloader, walker).run(dump))

    cache_dir = work_dir / "crash_cache"
    assert trace == "Thread 0 (crashed)\n 0  foo!main\n"
    assert walker.calls == [(dump, [cache_dir])]
    assert FOO.cache_path(cache_dir).exists()
    assert downloader.requests == [
        f"{MIRROR_1}/{FOO.url_path()}",
        f"{MIRROR_2}/{FOO.url_path()}",
    ]


def test_run_walks_the_original_wrapped_file(tmp_path):
    work_dir = tmp_path / "work"
    dump = tmp_path / "bundle.bin"
    dump.write_bytes(b"PK\x03\x04wrapperMDMPpayload")
    walker = FakeWalker()

    asyncio.run(build_service(work_dir, FakeDownloader(), walker).run(dump))

    assert walker.calls[0][0] == dump
    assert [path.name for path in work_dir.iterdir()] == []


def test_run_stops_at_first_failure(tmp_path):
    dump = tmp_path / "notes.txt"
    dump.write_bytes(b"plain text")
    downloader = FakeDownloader()
    walker = FakeWalker()

    with pytest.raises(NotADumpFile):
        asyncio.run(build_service(tmp_path / "work", downloader, walker).run(dump))

    assert downloader.requests == []
    assert walker.calls == []


def test_run_propagates_fetch_errors(tmp_path):
    dump = tmp_path / "crash.dmp"
    dump.write_bytes(b"MDMPpayload")
    downloader = FakeDownloader(failing={f"{MIRROR_1}/{FOO.url_path()}"})
    walker = FakeWalker()

    with pytest.raises(SymbolFetchError):
        asyncio.run(build_service(tmp_path / "work", downloader, walker).run(dump))

    assert walker.calls == []
