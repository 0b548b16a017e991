"""
Tests for MountOrchestrator.

Covers:
- End-to-end reconciliation with real symlinks
- Idempotent re-runs and stale state removal
- Partial failure isolation with an injected link creator
- Fatal mount root preparation errors
"""

import os
from datetime import datetime, timezone
from pathlib import Path

import pytest

from vscmount.core.exceptions import LinkCreationFailedError, RootPreparationFailedError
from vscmount.services.mount import LinkCreator, MountOrchestrator, remove_tree


class RecordingLinkCreator(LinkCreator):
    """Records requested links and fails for the configured link names."""

    def __init__(self, fail_names=()):
        self.fail_names = set(fail_names)
        self.created = []

    def create_directory_link(self, link_path: Path, target: str) -> None:
        if link_path.name in self.fail_names:
            raise LinkCreationFailedError(str(link_path), target, "A required privilege is not held by the client")
        self.created.append((link_path.name, target))


def link_state(root: Path):
    return sorted((entry.name, os.readlink(entry)) for entry in root.iterdir())


@pytest.fixture
def two_records(record_factory):
    return [
        record_factory("abc", 1, datetime(2024, 1, 1, tzinfo=timezone.utc)),
        record_factory("def", 2, datetime(2024, 1, 2, tzinfo=timezone.utc)),
    ]


class TestReconcileWithSymlinks:
    """End-to-end reconciliation against the real filesystem."""

    def test_two_snapshots_into_empty_root(self, tmp_path, two_records, symlinks_supported):
        target_root = tmp_path / "VssRoot_C"

        outcomes = MountOrchestrator().reconcile(target_root, two_records, False)

        assert [o.success for o in outcomes] == [True, True]
        assert [o.record.snapshot_id for o in outcomes] == ["abc", "def"]
        assert link_state(target_root) == [
            ("vss001", two_records[0].device_volume_path + "\\"),
            ("vss002", two_records[1].device_volume_path + "\\"),
        ]

    def test_reconcile_twice_is_idempotent(self, tmp_path, two_records, symlinks_supported):
        target_root = tmp_path / "VssRoot_C"
        orchestrator = MountOrchestrator()

        orchestrator.reconcile(target_root, two_records, True)
        first = link_state(target_root)
        orchestrator.reconcile(target_root, two_records, True)

        assert link_state(target_root) == first
        assert len(first) == 2

    def test_stale_links_removed_without_touching_targets(self, tmp_path, record_factory, symlinks_supported):
        target_root = tmp_path / "VssRoot_C"
        precious = tmp_path / "precious_volume"
        precious.mkdir()
        (precious / "evidence.txt").write_text("keep me")

        target_root.mkdir()
        (target_root / "notes.txt").write_text("stale")
        nested = target_root / "old" / "deeper"
        nested.mkdir(parents=True)
        os.symlink(str(precious), target_root / "vss009", target_is_directory=True)
        os.symlink(str(precious), nested / "vss010", target_is_directory=True)
        os.symlink(str(tmp_path / "gone"), target_root / "vss011", target_is_directory=True)

        MountOrchestrator().reconcile(target_root, [record_factory("abc", 1)], False)

        assert [p.name for p in target_root.iterdir()] == ["vss001"]
        assert (precious / "evidence.txt").read_text() == "keep me"

    def test_root_that_is_a_link_is_replaced(self, tmp_path, two_records, symlinks_supported):
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        (elsewhere / "keep.txt").write_text("x")
        target_root = tmp_path / "VssRoot_C"
        os.symlink(str(elsewhere), target_root, target_is_directory=True)

        MountOrchestrator().reconcile(target_root, two_records, False)

        assert not target_root.is_symlink()
        assert target_root.is_dir()
        assert (elsewhere / "keep.txt").exists()

    def test_duplicate_names_fail_individually(self, tmp_path, record_factory, symlinks_supported):
        records = [record_factory("a", 4), record_factory("b", 4)]

        outcomes = MountOrchestrator().reconcile(tmp_path / "root", records, False)

        assert [o.success for o in outcomes] == [True, False]
        assert outcomes[1].error_message


class TestReconcileWithInjectedCreator:
    """Partial failure isolation using a fake link creator."""

    def test_partial_failure_does_not_abort(self, tmp_path, record_factory):
        records = [record_factory(f"id{n}", n) for n in range(1, 6)]
        creator = RecordingLinkCreator(fail_names={"vss002", "vss004"})

        outcomes = MountOrchestrator(link_creator=creator).reconcile(tmp_path / "root", records, False)

        assert len(outcomes) == 5
        assert [o.link_name for o in outcomes if not o.success] == ["vss002", "vss004"]
        assert [o.link_name for o in outcomes if o.success] == ["vss001", "vss003", "vss005"]
        assert outcomes[1].error_message == "A required privilege is not held by the client"
        assert [name for name, _ in creator.created] == ["vss001", "vss003", "vss005"]

    def test_all_failures_still_complete(self, tmp_path, record_factory):
        records = [record_factory("a", 1), record_factory("b", 2)]
        creator = RecordingLinkCreator(fail_names={"vss001", "vss002"})

        outcomes = MountOrchestrator(link_creator=creator).reconcile(tmp_path / "root", records, False)

        assert [o.success for o in outcomes] == [False, False]
        assert (tmp_path / "root").is_dir()

    def test_no_records_leaves_empty_root(self, tmp_path):
        target_root = tmp_path / "root"
        (target_root / "old").mkdir(parents=True)

        outcomes = MountOrchestrator(link_creator=RecordingLinkCreator()).reconcile(target_root, [], True)

        assert outcomes == []
        assert list(target_root.iterdir()) == []

    def test_link_targets_carry_trailing_separator(self, tmp_path, record_factory):
        creator = RecordingLinkCreator()

        MountOrchestrator(link_creator=creator).reconcile(tmp_path / "root", [record_factory("a", 3)], False)

        assert creator.created[0][1].endswith("HarddiskVolumeShadowCopy3\\")


class TestRootPreparation:
    """Failures preparing the mount root are fatal."""

    def test_missing_parent_is_fatal(self, tmp_path, record_factory):
        creator = RecordingLinkCreator()
        target_root = tmp_path / "does" / "not" / "exist"

        with pytest.raises(RootPreparationFailedError) as exc_info:
            MountOrchestrator(link_creator=creator).reconcile(target_root, [record_factory()], False)

        assert exc_info.value.path == str(target_root)
        assert creator.created == []

    def test_cleanup_failure_is_fatal(self, tmp_path, record_factory, monkeypatch):
        target_root = tmp_path / "root"
        target_root.mkdir()
        creator = RecordingLinkCreator()

        def refuse(path):
            raise PermissionError(13, "Access is denied", str(path))

        monkeypatch.setattr("vscmount.services.mount.mount_orchestrator.remove_tree", refuse)

        with pytest.raises(RootPreparationFailedError):
            MountOrchestrator(link_creator=creator).reconcile(target_root, [record_factory()], False)

        assert creator.created == []


class TestRemoveTree:
    """Test remove_tree helper."""

    def test_removes_plain_file(self, tmp_path):
        target = tmp_path / "file.txt"
        target.write_text("x")

        remove_tree(target)

        assert not target.exists()

    def test_removes_nested_directories(self, tmp_path):
        root = tmp_path / "root"
        (root / "a" / "b").mkdir(parents=True)
        (root / "a" / "b" / "c.txt").write_text("x")

        remove_tree(root)

        assert not root.exists()
