"""
Parser for the text report printed by ``vssadmin list shadows``.

A report looks like this (one block per shadow copy)::

    Contents of shadow copy set ID: {a2b6...}
       Contained 1 shadow copies at creation time: 1/15/2024 10:23:45 AM
          Shadow Copy ID: {6a1b...}
             Original Volume: (C:)\\?\\Volume{0f3e...}\\
             Shadow Copy Volume: \\?\\GLOBALROOT\\Device\\HarddiskVolumeShadowCopy1
             Originating Machine: WKS01
             Service Machine: WKS01
             Provider: 'Microsoft Software Shadow Copy provider 1.0'
             Type: ClientAccessibleWriters
             Attributes: Persistent, Client-accessible, No auto release, ...

Kept free of I/O so it can be tested against captured reports.
"""

import re
from datetime import datetime, timezone
from typing import List, Optional

from ...core.exceptions import RecordMalformedError
from .base_discovery import RecordOrDefect, build_record


BLOCK_PATTERN = re.compile(r"shadow copies at (creation time: .+?)Provider", re.DOTALL)

FIELD_LABELS = {
    "created_at": "creation time",
    "snapshot_id": "Shadow Copy ID",
    "device_volume_path": "Shadow Copy Volume",
    "originating_host": "Originating Machine",
    "servicing_host": "Service Machine",
}

NO_ITEMS_MARKER = "No items found that satisfy the query"

# vssadmin prints the time in the console locale; these are the layouts seen in the wild
CREATION_TIME_FORMATS = (
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%d.%m.%Y %H:%M:%S",
)

# en-GB and friends; ambiguous with month-first, so never guessed
_DAY_FIRST_PATTERN = re.compile(r"^(\d{1,2})/(\d{1,2})/\d{4} ")

# Left-to-right marks sneak into some localized reports
_INVISIBLE_CHARS = dict.fromkeys(map(ord, "\u200e\u200f\ufeff"), None)


def parse_creation_time(raw: str) -> datetime:
    """Parse a vssadmin creation time and interpret it as UTC."""
    cleaned = " ".join(raw.translate(_INVISIBLE_CHARS).split())
    for fmt in CREATION_TIME_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue

    day_first = _DAY_FIRST_PATTERN.match(cleaned)
    if day_first and int(day_first.group(1)) > 12:
        raise ValueError(
            f"unsupported day-first creation time '{raw.strip()}' (dd/mm/yyyy); "
            "run with --strategy cim or an en-US console locale"
        )
    raise ValueError(f"unrecognised creation time '{raw.strip()}'")


def _extract_field(block: str, label: str) -> Optional[str]:
    match = re.search(rf"{re.escape(label)}: (.+)", block)
    if not match:
        return None
    value = match.group(1).rstrip()
    return value or None


def parse_block(block: str) -> Optional[RecordOrDefect]:
    """Parse one 'creation time ... Provider' segment.

    Returns None when the block has no creation time at all, a RecordMalformedError
    when a required field is missing or unparseable, otherwise the SnapshotRecord.
    """
    raw = {name: _extract_field(block, label) for name, label in FIELD_LABELS.items()}

    if raw["created_at"] is None:
        return None

    snapshot_id = raw["snapshot_id"]
    missing = [FIELD_LABELS[name] for name, value in raw.items() if value is None]
    if missing:
        return RecordMalformedError(
            f"missing field(s): {', '.join(missing)}", snapshot_id=snapshot_id
        )

    try:
        created_at = parse_creation_time(raw["created_at"])
    except ValueError as e:
        return RecordMalformedError(str(e), snapshot_id=snapshot_id)

    try:
        return build_record(
            created_at=created_at,
            snapshot_id=snapshot_id,
            device_volume_path=raw["device_volume_path"],
            originating_host=raw["originating_host"],
            servicing_host=raw["servicing_host"],
        )
    except RecordMalformedError as e:
        return e


def parse_vssadmin_report(report: str) -> List[RecordOrDefect]:
    """Extract every shadow copy block from a vssadmin report, in report order."""
    entries: List[RecordOrDefect] = []
    for match in BLOCK_PATTERN.finditer(report or ""):
        entry = parse_block(match.group(1))
        if entry is not None:
            entries.append(entry)
    return entries


def report_has_no_items(report: str) -> bool:
    return NO_ITEMS_MARKER.lower() in (report or "").lower()


def report_has_blocks(report: str) -> bool:
    return BLOCK_PATTERN.search(report or "") is not None
