"""Abstract Snapshot Discovery - shared contract for both host query strategies."""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Union

from pydantic import ValidationError

from ...core.exceptions import RecordMalformedError
from ...models import DiscoveryResult, DiscoveryStrategy, SnapshotRecord


def normalize_volume_filter(volume_filter: str) -> str:
    """Return '' or a single upper-case drive letter; reject anything else."""
    volume_filter = (volume_filter or "").strip()
    if not volume_filter:
        return ""
    if len(volume_filter) != 1 or not volume_filter.isalpha():
        raise ValueError(f"Volume filter must be a single drive letter, got '{volume_filter}'")
    return volume_filter.upper()


def build_record(**fields) -> SnapshotRecord:
    """Construct a SnapshotRecord, turning validation problems into RecordMalformedError."""
    try:
        return SnapshotRecord(**fields)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ())) or "record"
        raise RecordMalformedError(
            f"{location}: {first.get('msg', 'invalid value')}",
            snapshot_id=str(fields.get("snapshot_id") or "") or None,
        ) from e


RecordOrDefect = Union[SnapshotRecord, RecordMalformedError]


def collapse_duplicates(records: Iterable[SnapshotRecord]) -> List[SnapshotRecord]:
    """Same snapshot id listed twice: keep first position, last-seen values."""
    by_id = {}
    for record in records:
        by_id[record.snapshot_id] = record
    return list(by_id.values())


class BaseSnapshotDiscovery(ABC):
    """Abstract base class for host snapshot discovery strategies."""

    strategy: DiscoveryStrategy

    def __init__(self):
        self._logger = logging.getLogger(f"vscmount.discovery.{self.strategy.value}")

    def discover(self, volume_filter: str = "") -> DiscoveryResult:
        """Find all snapshots for volume_filter ('' = all volumes)."""
        letter = normalize_volume_filter(volume_filter)
        entries = self._collect(letter)

        records: List[SnapshotRecord] = []
        defects: List[RecordMalformedError] = []
        for entry in entries:
            if isinstance(entry, RecordMalformedError):
                self._logger.warning(f"Skipping snapshot record: {entry}")
                defects.append(entry)
                continue
            self._logger.debug(f"Adding VSC: {entry.describe()}")
            records.append(entry)

        result = DiscoveryResult(
            strategy=self.strategy,
            records=collapse_duplicates(records),
            defects=defects,
        )
        self._logger.debug(
            f"Discovered {len(result):,} VSCs ({result.defect_count} malformed) "
            f"via {self.get_strategy_name()}"
        )
        return result

    @abstractmethod
    def _collect(
        self, volume_filter: str
    ) -> List[RecordOrDefect]:
        """Query the host and return records and per-record defects in host order.

        Must raise ServiceUnavailableError when the host could not be queried.
        """
        pass

    @abstractmethod
    def get_strategy_name(self) -> str:
        """Get strategy name for logging."""
        pass


