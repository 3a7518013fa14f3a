"""Extraction of (module, debug id) pairs from a decoded minidump summary."""

import re
from typing import List

from .domain import Module

_MODULE_RECORD = re.compile(
    r'\(debug_file\)\s+= "(?:.+/)?([^"]+)"\s+'
    r'\(debug_identifier\)\s+= "([0-9A-F]+)"',
    re.MULTILINE,
)


def extract_modules(decoded_text: str) -> List[Module]:
    """
    Returns every module record found in the decoded dump text.

    Records are kept in order of appearance, duplicates included. Text
    without any record yields an empty list.
    """
    return [
        Module(name=match.group(1), debug_id=match.group(2))
        for match in _MODULE_RECORD.finditer(decoded_text)
    ]
