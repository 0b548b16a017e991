"""Mount Orchestrator - rebuilds the mount root with one link per snapshot."""

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from ...core.exceptions import LinkCreationFailedError, RootPreparationFailedError
from ...models import MountOutcome, SnapshotRecord
from .link_creator import LinkCreator, remove_tree
from .link_naming import build_link_name, build_link_target


class MountOrchestrator:
    """
    Reconciles a mount root so it holds exactly one directory link per snapshot.

    The mount root is owned exclusively by this class: whatever is in it from an
    earlier run is deleted before new links are created. Two runs against the
    same root at the same time are not supported.
    """

    def __init__(self, link_creator: Optional[LinkCreator] = None):
        self._link_creator = link_creator or LinkCreator()
        self._logger = logging.getLogger("vscmount.mount_orchestrator")

    def reconcile(
        self,
        target_root: Path,
        records: Iterable[SnapshotRecord],
        use_timestamp_suffix: bool,
    ) -> List[MountOutcome]:
        """
        Reset target_root and create one link per record.

        Args:
            target_root: Directory to rebuild (its parent must exist)
            records: Snapshots to expose
            use_timestamp_suffix: Append the creation timestamp to each link name

        Returns:
            One MountOutcome per record, in record order

        Raises:
            RootPreparationFailedError: target_root could not be cleared or created;
                no links are attempted in that case
        """
        target_root = Path(target_root)
        self.prepare_root(target_root)

        outcomes: List[MountOutcome] = []
        for record in records:
            outcomes.append(self._mount_one(target_root, record, use_timestamp_suffix))

        succeeded = sum(1 for outcome in outcomes if outcome.success)
        self._logger.debug(f"Mounted {succeeded} of {len(outcomes)} VSCs in '{target_root}'")
        return outcomes

    def prepare_root(self, target_root: Path) -> None:
        """Delete target_root (if present) and recreate it empty."""
        try:
            if target_root.exists() or target_root.is_symlink():
                self._logger.debug(f"Removing stale mount root '{target_root}'")
                remove_tree(target_root)
        except OSError as e:
            raise RootPreparationFailedError(str(target_root), f"cleanup failed: {e}") from e

        try:
            self._logger.debug(f"Creating mount root directory: {target_root}")
            target_root.mkdir()
        except OSError as e:
            raise RootPreparationFailedError(str(target_root), f"create failed: {e}") from e

    def _mount_one(
        self, target_root: Path, record: SnapshotRecord, use_timestamp_suffix: bool
    ) -> MountOutcome:
        link_path = target_root / build_link_name(record, use_timestamp_suffix)
        target = build_link_target(record.device_volume_path)

        self._logger.debug(
            f"Attempting to mount VSS with id: {record.snapshot_id}, "
            f"Creation date: {record.created_at:%Y/%m/%d %H:%M:%S}"
        )

        try:
            self._link_creator.create_directory_link(link_path, target)
        except LinkCreationFailedError as e:
            self._logger.debug(str(e))
            return MountOutcome(
                link_path=link_path, record=record, success=False, error_message=e.reason
            )

        return MountOutcome(link_path=link_path, record=record, success=True)
