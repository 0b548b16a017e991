"""
Mount Module

Turns discovered snapshots into directory links under a mount root.

Components:
- MountOrchestrator: Resets the mount root and creates one link per snapshot
- LinkCreator: Creates a single directory link
- link_naming: vssNNN / vssNNN-<timestamp> names and link targets
"""

from .link_creator import LinkCreator, remove_tree
from .link_naming import build_link_name, build_link_target, format_link_timestamp
from .mount_orchestrator import MountOrchestrator

__all__ = [
    "LinkCreator",
    "MountOrchestrator",
    "build_link_name",
    "build_link_target",
    "format_link_timestamp",
    "remove_tree",
]
