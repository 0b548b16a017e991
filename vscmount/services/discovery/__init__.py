"""
Snapshot Discovery Module

Finds the Volume Shadow Copies the host currently retains and normalizes them
into SnapshotRecord objects.

Components:
- BaseSnapshotDiscovery: Abstract discover(volume_filter) contract
- VssAdminDiscovery: Parses the text report of 'vssadmin list shadows'
- CimDiscovery: Queries Win32_Volume and Win32_ShadowCopy through CIM
- DiscoveryFactory: Picks the strategy the host supports
"""

from .base_discovery import BaseSnapshotDiscovery
from .cim_discovery import CimDiscovery, CimQueryRunner
from .discovery_factory import DiscoveryFactory
from .vssadmin_discovery import VssAdminDiscovery

__all__ = [
    "BaseSnapshotDiscovery",
    "CimDiscovery",
    "CimQueryRunner",
    "DiscoveryFactory",
    "VssAdminDiscovery",
]
