"""Discovery Factory - host capability detection and strategy creation."""

import logging
import platform
import shutil
from typing import Optional

from ...config import Settings
from ...core.exceptions import UnsupportedPlatformError
from ...models import DiscoveryStrategy
from ...utils.host_checks import is_windows
from .base_discovery import BaseSnapshotDiscovery


class DiscoveryFactory:
    """Factory for creating the snapshot discovery strategy the host supports."""

    def __init__(self, settings: Settings):
        self._settings = settings

    def powershell_available(self) -> bool:
        return shutil.which(self._settings.powershell_executable) is not None

    def resolve_strategy(self, requested: Optional[DiscoveryStrategy] = None) -> DiscoveryStrategy:
        """Turn 'auto' into a concrete strategy for this host."""
        requested = DiscoveryStrategy(requested or self._settings.discovery_strategy)
        if requested != DiscoveryStrategy.AUTO:
            return requested

        if not is_windows():
            raise UnsupportedPlatformError(
                f"Volume Shadow Copies are only available on Windows, "
                f"not {platform.system() or 'unknown'}"
            )

        if self.powershell_available():
            return DiscoveryStrategy.CIM
        logging.debug("PowerShell not found, falling back to vssadmin")
        return DiscoveryStrategy.VSSADMIN

    def create_discovery(self, requested: Optional[DiscoveryStrategy] = None) -> BaseSnapshotDiscovery:
        """Create strategy-specific discovery instance."""
        strategy = self.resolve_strategy(requested)
        timeout = self._settings.query_timeout_seconds

        if strategy == DiscoveryStrategy.CIM:
            from .cim_discovery import CimDiscovery, CimQueryRunner
            runner = CimQueryRunner(self._settings.powershell_executable, timeout)
            discovery = CimDiscovery(query_runner=runner)
        else:
            from .vssadmin_discovery import VssAdminDiscovery
            discovery = VssAdminDiscovery(self._settings.vssadmin_executable, timeout)

        logging.debug(f"Using {discovery.get_strategy_name()} snapshot discovery")
        return discovery
