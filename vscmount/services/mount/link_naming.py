from datetime import datetime

from ...models import SnapshotRecord


def format_link_timestamp(created_at: datetime) -> str:
    """Sortable, filesystem-safe stamp: 20240115T102345 or 20240115T102345.123456."""
    stamp = created_at.strftime("%Y%m%dT%H%M%S")
    if created_at.microsecond:
        stamp = f"{stamp}.{created_at.microsecond:06d}"
    return stamp


def build_link_name(record: SnapshotRecord, use_timestamp_suffix: bool) -> str:
    name = f"vss{record.sequence_number:03d}"
    if use_timestamp_suffix:
        name = f"{name}-{format_link_timestamp(record.created_at)}"
    return name


def build_link_target(device_volume_path: str) -> str:
    # Target er en volume root, så den skal ende på backslash
    if device_volume_path.endswith("\\"):
        return device_volume_path
    return f"{device_volume_path}\\"
