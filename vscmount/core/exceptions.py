# vscmount/core/exceptions.py

from typing import Optional


class VSCMountError(Exception):
    """Base exception for snapshot discovery and mount failures."""
    pass


class UnsupportedPlatformError(VSCMountError):
    """Raised when no discovery strategy can run on this host."""
    pass


class ServiceUnavailableError(VSCMountError):
    """Raised when the host snapshot service could not be queried at all."""
    def __init__(self, strategy: str, reason: str):
        self.strategy = strategy
        self.reason = reason
        super().__init__(f"Snapshot service unavailable ({strategy}): {reason}")


class RecordMalformedError(VSCMountError):
    """Raised when a single snapshot entry cannot be normalized."""
    def __init__(self, reason: str, snapshot_id: Optional[str] = None):
        self.reason = reason
        self.snapshot_id = snapshot_id
        label = snapshot_id or "<unknown id>"
        super().__init__(f"Malformed snapshot record {label}: {reason}")


class RootPreparationFailedError(VSCMountError):
    """Raised when the mount root cannot be cleared or created."""
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Unable to prepare mount root '{path}': {reason}")


class LinkCreationFailedError(VSCMountError):
    """Raised when a single directory link could not be created."""
    def __init__(self, link_path: str, target: str, reason: str):
        self.link_path = link_path
        self.target = target
        self.reason = reason
        super().__init__(f"Could not link '{link_path}' -> '{target}': {reason}")


# Interface name used by callers that follow the external contract wording.
RootCreationFailed = RootPreparationFailedError
