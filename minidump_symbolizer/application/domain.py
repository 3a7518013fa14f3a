"""
This module defines the core domain models for the application.

These classes represent the pure, technology-agnostic entities and data
structures that the application's business logic operates on.
"""

import dataclasses
import random
import re
import string
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import List
from urllib.parse import quote

_UNSYMBOLIZED_ID = re.compile(r"^0+$")
_PDB_SUFFIX = re.compile(r"(\.pdb)?$")


def dump_name(path: Path, suffix: str = "") -> str:
    """
    The text before the first '.' of the file's base name, plus suffix.

    Names such as '.dmp' have nothing before the dot and get a random id
    with a timestamp instead.
    """
    stem = Path(path).name.split(".")[0]
    if not stem:
        uid = "".join(random.choices(string.ascii_letters + string.digits, k=5))
        stem = f"{uid}{datetime.now():%Y%m%d%H%M%S}"
    return stem + suffix


# --- Domain Models ---

@dataclasses.dataclass(frozen=True)
class Module:
    """A binary referenced by a dump, identified by name and debug id."""

    name: str
    debug_id: str

    @property
    def symbol_file_name(self) -> str:
        """The module name with '.pdb' replaced by (or '.sym' appended)."""
        return _PDB_SUFFIX.sub(".sym", self.name, count=1)

    @property
    def is_unsymbolized(self) -> bool:
        """All-zero ids denote modules no symbol server will have."""
        return bool(_UNSYMBOLIZED_ID.match(self.debug_id))

    @property
    def has_safe_name(self) -> bool:
        """Whether the name can be used as a single cache path segment."""
        return self.name not in ("", ".", "..") and not any(
            separator in self.name for separator in ("/", "\\")
        )

    def cache_path(self, root: Path) -> Path:
        if not self.has_safe_name:
            raise ValueError(f"Module name {self.name!r} is not a file name")
        return Path(root) / self.name / self.debug_id / self.symbol_file_name

    def url_path(self) -> str:
        return "/".join(
            [
                quote(self.name, safe=""),
                self.debug_id,
                quote(self.symbol_file_name, safe=""),
            ]
        )


@dataclasses.dataclass
class FetchReport:
    """Per-run tally of what the symbol fetcher did."""

    downloaded: int = 0
    missed: int = 0
    skipped: int = 0

    def merge(self, other: "FetchReport"):
        self.downloaded += other.downloaded
        self.missed += other.missed
        self.skipped += other.skipped


# --- Ports (Interfaces) ---

class DumpDecoder(ABC):
    """A port for the external minidump decoder."""

    @abstractmethod
    async def decode(self, path: Path) -> bytes:
        """Returns the textual summary of a minidump as raw bytes."""
        pass


class StackWalker(ABC):
    """A port for the external stack-walking engine."""

    @abstractmethod
    async def walk(self, path: Path, search_dirs: List[Path]) -> bytes:
        """Walks the stacks of a minidump using the given symbol dirs."""
        pass


class SymbolDownloader(ABC):
    """A port for fetching one symbol file from a symbol server."""

    @abstractmethod
    async def download(self, url: str, destination: Path) -> bool:
        """
        Downloads url to destination.

        Returns True on a hit and False when the server does not have the
        file. Raises SymbolFetchError for any other failure.
        """
        pass
