"""CIM Snapshot Discovery - structured Win32_Volume / Win32_ShadowCopy queries."""

import json
import logging
import re
import subprocess
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from ...core.exceptions import RecordMalformedError, ServiceUnavailableError
from ...models import DiscoveryStrategy
from .base_discovery import BaseSnapshotDiscovery, RecordOrDefect, build_record


VOLUME_PROPERTIES = ("DeviceID", "Caption")

SHADOW_COPY_PROPERTIES = (
    "ID",
    "DeviceObject",
    "VolumeName",
    "OriginatingMachine",
    "ServiceMachine",
    # Invariant culture, otherwise the host calendar (fx th-TH) leaks into the year
    "@{Name='InstallDate';Expression={$_.InstallDate.ToUniversalTime()"
    ".ToString('yyyy-MM-ddTHH:mm:ss.ffffffZ', "
    "[System.Globalization.CultureInfo]::InvariantCulture)}}",
)

_DMTF_PATTERN = re.compile(r"^(\d{14})\.(\d{6})([+-])(\d{3})$")
_MS_JSON_DATE_PATTERN = re.compile(r"^/Date\((-?\d+)\)/$")


def parse_cim_datetime(value: Any) -> datetime:
    """
    Parse the InstallDate forms a CIM query can hand back.

    Accepts ISO-8601 ('2024-01-15T10:23:45.123456Z'), DMTF
    ('20240115102345.123456+060') and the '/Date(ms)/' form older PowerShell
    versions use when serializing DateTime to JSON. Always returns UTC.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"missing install date ({value!r})")

    text = value.strip()

    dmtf = _DMTF_PATTERN.match(text)
    if dmtf:
        stamp, micros, sign, offset = dmtf.groups()
        minutes = int(offset) * (1 if sign == "+" else -1)
        local = datetime.strptime(stamp, "%Y%m%d%H%M%S").replace(microsecond=int(micros))
        return local.replace(tzinfo=timezone(timedelta(minutes=minutes))).astimezone(timezone.utc)

    ms_json = _MS_JSON_DATE_PATTERN.match(text)
    if ms_json:
        return datetime.fromtimestamp(int(ms_json.group(1)) / 1000, tz=timezone.utc)

    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise ValueError(f"unrecognised install date '{value}'") from e
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class CimQueryRunner:
    """Runs Get-CimInstance through PowerShell and returns rows as dicts."""

    def __init__(self, executable: str = "powershell.exe", timeout_seconds: float = 120.0):
        self._executable = executable
        self._timeout_seconds = timeout_seconds

    def build_script(self, class_name: str, properties: Sequence[str]) -> str:
        return (
            "$ErrorActionPreference = 'Stop'; "
            "ConvertTo-Json -Compress -Depth 3 -InputObject "
            f"@(Get-CimInstance -ClassName {class_name} | "
            f"Select-Object {', '.join(properties)})"
        )

    def query(self, class_name: str, properties: Sequence[str]) -> List[Dict[str, Any]]:
        cmd = [
            self._executable,
            "-NoProfile",
            "-NonInteractive",
            "-Command",
            self.build_script(class_name, properties),
        ]
        logging.debug(f"Querying {class_name} via {self._executable}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self._timeout_seconds,
            )
        except FileNotFoundError as e:
            raise ServiceUnavailableError("cim", f"'{self._executable}' not found") from e
        except subprocess.TimeoutExpired as e:
            raise ServiceUnavailableError(
                "cim", f"{class_name} query gave no answer within {self._timeout_seconds:g}s"
            ) from e
        except OSError as e:
            raise ServiceUnavailableError("cim", str(e)) from e

        if result.returncode != 0:
            error_msg = (result.stderr or result.stdout or "").strip() or "Unknown error"
            raise ServiceUnavailableError(
                "cim", f"{class_name} query failed ({result.returncode}): {error_msg}"
            )

        output = (result.stdout or "").strip()
        if not output:
            return []

        try:
            data = json.loads(output)
        except json.JSONDecodeError as e:
            raise ServiceUnavailableError(
                "cim", f"{class_name} query returned unreadable output: {e}"
            ) from e

        if isinstance(data, dict):
            return [data]
        if not isinstance(data, list):
            raise ServiceUnavailableError(
                "cim", f"{class_name} query returned {type(data).__name__}, expected rows"
            )
        return [row for row in data if isinstance(row, dict)]


class CimDiscovery(BaseSnapshotDiscovery):
    """Discovers shadow copies through the Win32_ShadowCopy CIM class."""

    strategy = DiscoveryStrategy.CIM

    def __init__(self, query_runner: Optional[CimQueryRunner] = None):
        super().__init__()
        self._query_runner = query_runner or CimQueryRunner()

    def _collect(self, volume_filter: str) -> List[RecordOrDefect]:
        volumes = self.query_volumes()
        rows = self._query_runner.query("Win32_ShadowCopy", SHADOW_COPY_PROPERTIES)

        entries: List[RecordOrDefect] = []
        for row in rows:
            try:
                record = self._to_record(row, volumes)
            except RecordMalformedError as e:
                entries.append(e)
                continue

            if volume_filter and not record.volume_letter.upper().startswith(volume_filter):
                continue
            entries.append(record)
        return entries

    def query_volumes(self) -> Dict[str, str]:
        """Map volume DeviceID (\\\\?\\Volume{guid}\\) to its caption (C:\\)."""
        volumes: Dict[str, str] = {}
        for row in self._query_runner.query("Win32_Volume", VOLUME_PROPERTIES):
            device_id = row.get("DeviceID")
            if device_id:
                volumes[_volume_key(device_id)] = row.get("Caption") or ""
        self._logger.debug(f"Found {len(volumes)} volumes")
        return volumes

    def _to_record(self, row: Dict[str, Any], volumes: Dict[str, str]):
        snapshot_id = row.get("ID") or None
        volume_name = row.get("VolumeName") or ""

        caption = volumes.get(_volume_key(volume_name)) if volume_name else None
        if not caption:
            raise RecordMalformedError(
                f"originating volume '{volume_name}' has no drive letter",
                snapshot_id=snapshot_id,
            )

        try:
            created_at = parse_cim_datetime(row.get("InstallDate"))
        except ValueError as e:
            raise RecordMalformedError(str(e), snapshot_id=snapshot_id) from e

        return build_record(
            created_at=created_at,
            snapshot_id=snapshot_id or "",
            device_volume_path=row.get("DeviceObject") or "",
            originating_host=row.get("OriginatingMachine") or "",
            servicing_host=row.get("ServiceMachine") or "",
            volume_letter=caption,
        )

    def get_strategy_name(self) -> str:
        return "CIM"


def _volume_key(volume_path: str) -> str:
    # Win32_Volume og Win32_ShadowCopy er ikke enige om afsluttende backslash og casing
    return volume_path.strip().rstrip("\\").lower()
