import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .core.exceptions import RecordMalformedError


SEQUENCE_PATTERN = re.compile(r"VolumeShadowCopy(\d+)")


def extract_sequence_number(device_volume_path: str) -> int:
    """Parse the ordinal out of a \\\\?\\GLOBALROOT\\Device\\HarddiskVolumeShadowCopyNNN path."""
    match = SEQUENCE_PATTERN.search(device_volume_path or "")
    if not match:
        raise ValueError(
            f"no VolumeShadowCopy ordinal in device path '{device_volume_path}'"
        )
    return int(match.group(1))


class DiscoveryStrategy(str, Enum):
    """Hvilken mekanisme der bruges til at finde shadow copies."""

    AUTO = "auto"  # CIM hvis PowerShell findes, ellers vssadmin
    VSSADMIN = "vssadmin"  # Parse tekst-rapporten fra vssadmin.exe
    CIM = "cim"  # Win32_Volume + Win32_ShadowCopy via Get-CimInstance


class SnapshotRecord(BaseModel):
    """
    Normaliseret repræsentation af én Volume Shadow Copy.

    Begge discovery strategier producerer præcis denne form, så mount
    orchestratoren aldrig skal vide hvor data kom fra.
    """

    created_at: datetime = Field(..., description="Oprettelsestidspunkt i UTC")

    snapshot_id: str = Field(..., description="Shadow copy ID, lowercase")

    device_volume_path: str = Field(
        ..., description="Host-intern device sti der bruges som link target"
    )

    sequence_number: int = Field(
        ..., ge=0, description="VolumeShadowCopyNNN ordinal (kun til navngivning)"
    )

    originating_host: str = Field(default="", description="Originating Machine")

    servicing_host: str = Field(default="", description="Service Machine")

    volume_letter: Optional[str] = Field(
        default=None,
        description="Volume caption (fx 'C:\\'), kun udfyldt af CIM strategien",
    )

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "created_at": "2024-01-15T10:23:45+00:00",
                "snapshot_id": "{6a1b2c3d-0000-4e5f-8a9b-0c1d2e3f4a5b}",
                "device_volume_path": "\\\\?\\GLOBALROOT\\Device\\HarddiskVolumeShadowCopy1",
                "sequence_number": 1,
                "originating_host": "WKS01",
                "servicing_host": "WKS01",
                "volume_letter": "C:\\",
            }
        },
    )

    @model_validator(mode="before")
    @classmethod
    def derive_sequence_number(cls, data):
        """Sequence number udledes altid af device stien."""
        if isinstance(data, dict):
            data = dict(data)
            data["sequence_number"] = extract_sequence_number(
                data.get("device_volume_path", "")
            )
        return data

    @field_validator("snapshot_id")
    @classmethod
    def normalize_snapshot_id(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("snapshot id is empty")
        return v

    @field_validator("device_volume_path")
    @classmethod
    def strip_device_path(cls, v: str) -> str:
        return v.strip()

    @field_validator("created_at")
    @classmethod
    def normalize_to_utc(cls, v: datetime) -> datetime:
        # Naive timestamps fra host tools tolkes som UTC
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    def describe(self) -> str:
        """Human-readable one-liner used in debug output."""
        return (
            f"Vss#: {self.sequence_number}, "
            f"Created on: {self.created_at:%Y/%m/%d %H:%M:%S}, "
            f"Id: {self.snapshot_id}, Volume: {self.device_volume_path}, "
            f"Origin machine: {self.originating_host}, "
            f"Servicing machine: {self.servicing_host}"
        )


@dataclass
class DiscoveryResult:
    """Ordered snapshot records plus the per-record defects found on the way."""

    strategy: DiscoveryStrategy
    records: List[SnapshotRecord] = field(default_factory=list)
    defects: List[RecordMalformedError] = field(default_factory=list)

    def __iter__(self) -> Iterator[SnapshotRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def __getitem__(self, index: int) -> SnapshotRecord:
        return self.records[index]

    @property
    def defect_count(self) -> int:
        return len(self.defects)


@dataclass
class MountOutcome:
    """Result of one link creation attempt."""

    link_path: Path
    record: SnapshotRecord
    success: bool
    error_message: Optional[str] = None

    @property
    def link_name(self) -> str:
        return self.link_path.name

    def get_summary(self) -> str:
        created = f"{self.record.created_at:%Y/%m/%d %H:%M:%S}"
        prefix = (
            f"VSS {str(self.record.sequence_number).ljust(4)} "
            f"(Id {self.record.snapshot_id}, Created on: {created} UTC)"
        )
        if self.success:
            return f"{prefix} mounted OK!"
        return f"{prefix} failed to mount! {self.error_message or 'Unknown error'}"


@dataclass
class MountSummary:
    """Everything a caller needs to report on one mount run."""

    volume_letter: str
    target_root: Path
    discovery: DiscoveryResult
    outcomes: List[MountOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.success)

    @property
    def all_succeeded(self) -> bool:
        return self.failed == 0
