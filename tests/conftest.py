import asyncio
from pathlib import Path

import pytest

from minidump_symbolizer.application.domain import (
    DumpDecoder,
    StackWalker,
    SymbolDownloader,
)
from minidump_symbolizer.application.exceptions import SymbolFetchError

MIRROR_1 = "https://symbols.example.com/try"
MIRROR_2 = "https://mirror.example.org"

SUMMARY = """MDRawHeader
  signature            = 0x504d444d
  version              = 0xa793
  stream_count         = 14

MDRawModule
  base_of_image                   = 0x7ff6a1b20000
  size_of_image                   = 0x8a5e000
  (code_file)                     = "C:\\\\Program Files\\\\App\\\\app.exe"
  (code_identifier)               = "64A3F0C28A5E000"
  (cv_record).cv_signature        = 0x53445352
  (debug_file)                    = "foo.pdb"
  (debug_identifier)              = "ABCDEF01"
  (version)                       = "25.1.0.0"

MDRawModule
  base_of_image                   = 0x7ffc30a10000
  size_of_image                   = 0x2f000
  (code_file)                     = "/usr/lib/bar"
  (debug_file)                    = "/usr/lib/bar"
  (debug_identifier)              = "00000000"
"""


class FakeDecoder(DumpDecoder):
    """Records the path and bytes of every file it is asked to decode."""

    def __init__(self, output: bytes = SUMMARY.encode(), error=None):
        self.output = output
        self.error = error
        self.calls = []

    async def decode(self, path):
        path = Path(path)
        self.calls.append((path, path.read_bytes()))
        if self.error:
            raise self.error
        return self.output


class FakeWalker(StackWalker):
    def __init__(self, output: bytes = b"Thread 0 (crashed)\n 0  foo!main\n"):
        self.output = output
        self.calls = []

    async def walk(self, path, search_dirs):
        self.calls.append((Path(path), list(search_dirs)))
        return self.output


class FakeDownloader(SymbolDownloader):
    """Serves symbol files from a dict keyed by URL."""

    def __init__(self, available=None, failing=(), delays=None):
        self.available = dict(available or {})
        self.failing = set(failing)
        self.delays = dict(delays or {})
        self.requests = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def download(self, url, destination):
        self.requests.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(url, 0.01))
            if url in self.failing:
                raise SymbolFetchError(f"failed to download {url} (code 500)")
            if url not in self.available:
                return False
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(self.available[url])
            return True
        finally:
            self.in_flight -= 1


@pytest.fixture
def work_dir(tmp_path):
    path = tmp_path / "work"
    path.mkdir()
    return path
