"""
Payslip filename parsing.

Files are named `<identifier>-<MM>-<YYYY>.pdf`, where the identifier is the
employee's CPF. `_` is accepted as the separator too.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Pattern


@dataclass(frozen=True)
class FilenameMatch:
    identifier: str
    month: int
    year: int


@lru_cache(maxsize=8)
def filename_pattern(identifier_length: int) -> Pattern:
    return re.compile(rf"^(\d{{{identifier_length}}})[-_](\d{{2}})[-_](\d{{4}})\.pdf$", re.IGNORECASE)


def match_filename(name: str, identifier_length: int) -> Optional[FilenameMatch]:
    """Parse a payslip filename; None when it does not follow the pattern."""
    match = filename_pattern(identifier_length).match((name or "").strip())
    if not match:
        return None
    identifier, month, year = match.groups()
    return FilenameMatch(identifier=identifier, month=int(month), year=int(year))
