"""VSS Mount Service - discovery + mounting for one volume."""

import logging
from pathlib import Path
from typing import Optional

from ..config import Settings
from ..models import DiscoveryStrategy, MountSummary
from .discovery import BaseSnapshotDiscovery, DiscoveryFactory
from .mount import MountOrchestrator


class VssMountService:
    """Runs one discover-then-reconcile pass for a drive letter."""

    def __init__(
        self,
        settings: Settings,
        discovery: Optional[BaseSnapshotDiscovery] = None,
        orchestrator: Optional[MountOrchestrator] = None,
        strategy: Optional[DiscoveryStrategy] = None,
    ):
        self._settings = settings
        self._logger = logging.getLogger("vscmount.service")
        self._discovery = discovery or DiscoveryFactory(settings).create_discovery(strategy)
        self._orchestrator = orchestrator or MountOrchestrator()

    @property
    def discovery(self) -> BaseSnapshotDiscovery:
        return self._discovery

    def mount_volume(
        self,
        volume_letter: str,
        target_root: Path,
        use_timestamp_suffix: Optional[bool] = None,
    ) -> MountSummary:
        """
        Discover the snapshots of volume_letter and expose them under target_root.

        ServiceUnavailableError and RootPreparationFailedError propagate to the
        caller; per-snapshot problems end up in the returned summary.
        """
        if use_timestamp_suffix is None:
            use_timestamp_suffix = self._settings.use_timestamp_suffix

        discovery_result = self._discovery.discover(volume_letter)

        self._logger.warning(
            f"VSCs found on volume {volume_letter}: {len(discovery_result):,}. Mounting..."
        )
        if discovery_result.defects:
            self._logger.warning(
                f"{discovery_result.defect_count} snapshot record(s) could not be read and were skipped"
            )

        outcomes = self._orchestrator.reconcile(
            Path(target_root), discovery_result.records, use_timestamp_suffix
        )

        for outcome in outcomes:
            if outcome.success:
                self._logger.info(f"\t{outcome.get_summary()}")
            else:
                self._logger.warning(f"\t{outcome.get_summary()}")

        return MountSummary(
            volume_letter=volume_letter,
            target_root=Path(target_root),
            discovery=discovery_result,
            outcomes=outcomes,
        )
