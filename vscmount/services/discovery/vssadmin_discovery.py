"""vssadmin Snapshot Discovery - parses the text report of vssadmin.exe."""

import subprocess
from typing import List

from ...core.exceptions import ServiceUnavailableError
from ...models import DiscoveryStrategy
from .base_discovery import BaseSnapshotDiscovery, RecordOrDefect
from .report_parser import parse_vssadmin_report, report_has_blocks, report_has_no_items


class VssAdminDiscovery(BaseSnapshotDiscovery):
    """Discovers shadow copies by running 'vssadmin list shadows /for=X:'."""

    strategy = DiscoveryStrategy.VSSADMIN

    def __init__(self, executable: str = "vssadmin.exe", timeout_seconds: float = 120.0):
        super().__init__()
        self._executable = executable
        self._timeout_seconds = timeout_seconds

    def build_command(self, volume_filter: str) -> List[str]:
        cmd = [self._executable, "list", "shadows"]
        if volume_filter:
            cmd.append(f"/for={volume_filter}:")
        return cmd

    def _collect(self, volume_filter: str) -> List[RecordOrDefect]:
        report = self._run_vssadmin(volume_filter)
        return parse_vssadmin_report(report)

    def _run_vssadmin(self, volume_filter: str) -> str:
        """Run vssadmin and return its combined report text."""
        cmd = self.build_command(volume_filter)
        self._logger.debug(f"Running: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self._timeout_seconds,
            )
        except FileNotFoundError as e:
            raise ServiceUnavailableError(
                self.get_strategy_name(), f"'{self._executable}' not found"
            ) from e
        except subprocess.TimeoutExpired as e:
            raise ServiceUnavailableError(
                self.get_strategy_name(),
                f"no answer within {self._timeout_seconds:g}s",
            ) from e
        except OSError as e:
            raise ServiceUnavailableError(self.get_strategy_name(), str(e)) from e

        report = (result.stdout or "") + (result.stderr or "")

        if result.returncode != 0:
            # vssadmin exits non-zero when a volume simply has no shadow copies
            if report_has_no_items(report) or report_has_blocks(report):
                self._logger.debug(
                    f"vssadmin exited with {result.returncode} but produced a usable report"
                )
                return report

            error_msg = report.strip() or "Unknown error"
            raise ServiceUnavailableError(
                self.get_strategy_name(),
                f"vssadmin exited with code {result.returncode}: {error_msg}",
            )

        return report

    def get_strategy_name(self) -> str:
        return "vssadmin"
