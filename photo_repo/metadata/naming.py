"""
Filename analysis: derives a capture date and free-text tags from an entry name.

Supported name shapes:
  - "2021-05-04 12.30.00_vacation_.jpg"  -> date 2021-05-04, tags {"vacation"}
  - "100_1213 _baby nipples_.JPG"       -> no date, tags {"baby nipples"}
  - "IMAG0042_beach_.jpg"               -> no date, tags {"beach"}
"""
from dataclasses import dataclass, field
import datetime
from typing import Optional, Set

from .. import config


@dataclass
class NameInfo:
    date: Optional[datetime.date] = None
    tags: Set[str] = field(default_factory=set)


def extract_tags(name: str) -> Set[str]:
    """Returns every _tag_ found in name, lowercased."""
    if not name or not name.strip():
        return set()
    return {match.lower() for match in config.TAG_PATTERN.findall(name)}


def parse_entry_name(name: str) -> NameInfo:
    """
    Analyzes a file name (no directory part).
    The date is left unset when the name does not start with a valid ISO date;
    callers fall back to the file's creation time.
    """
    # Serial numbers and camera counters carry no meaning
    rest = config.SERIAL_PREFIX.sub('', name, count=1)
    rest = config.IMAG_PREFIX.sub('', rest, count=1)

    m = config.ISO_DATE.match(rest)
    if m:
        parsed = _parse_date(*m.groups())
        if parsed is not None:
            rest = rest[m.end():]
            # Time of day is not stored, just cut it off
            rest = config.TIME_TOKEN.sub('', rest, count=1)
            return NameInfo(date=parsed, tags=extract_tags(rest))

    return NameInfo(date=None, tags=extract_tags(rest))


def _parse_date(year: str, month: str, day: str) -> Optional[datetime.date]:
    try:
        return datetime.date(int(year), int(month), int(day))
    except ValueError:
        # e.g. "2021-13-45": looks like a date but isn't one
        return None
