"""
Pytest configuration og shared fixtures.
"""

import os
from datetime import datetime, timezone

import pytest

from vscmount.config import Settings
from vscmount.models import SnapshotRecord


def make_record(
    snapshot_id: str = "{abc}",
    sequence_number: int = 1,
    created_at: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc),
    volume_letter=None,
) -> SnapshotRecord:
    """Build a SnapshotRecord the way discovery would."""
    return SnapshotRecord(
        created_at=created_at,
        snapshot_id=snapshot_id,
        device_volume_path=f"\\\\?\\GLOBALROOT\\Device\\HarddiskVolumeShadowCopy{sequence_number}",
        originating_host="WKS01",
        servicing_host="WKS01",
        volume_letter=volume_letter,
    )


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def settings(monkeypatch, tmp_path):
    """Settings isolated from the developer's environment and settings.env."""
    for key in list(os.environ):
        if key.startswith("VSCMOUNT_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return Settings(_env_file=None)


@pytest.fixture
def symlinks_supported(tmp_path):
    """Skip when this host does not let the current user create symlinks."""
    probe = tmp_path / "probe_link"
    try:
        os.symlink(str(tmp_path), probe, target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symbolic links not permitted on this host")
    os.unlink(probe)
    return True
