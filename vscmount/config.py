from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import DiscoveryStrategy


class Settings(BaseSettings):
    # Logging konfiguration
    log_level: str = "INFO"
    log_file_path: str = ""  # Tom streng = kun console logging
    log_retention_days: int = 30

    # Discovery
    discovery_strategy: DiscoveryStrategy = DiscoveryStrategy.AUTO
    query_timeout_seconds: float = 120.0  # Max ventetid på vssadmin/PowerShell
    vssadmin_executable: str = "vssadmin.exe"
    powershell_executable: str = "powershell.exe"

    # Mounting
    use_timestamp_suffix: bool = True  # vssNNN-yyyyMMddTHHmmss navne som standard
    mount_root_separator: str = "_"  # <mp>_<drive letter>

    model_config = SettingsConfigDict(
        env_prefix="VSCMOUNT_",
        env_file="settings.env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Ukendt log level: {v}")
        return v

    @field_validator("query_timeout_seconds")
    @classmethod
    def timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("query_timeout_seconds skal være > 0")
        return v

    @property
    def log_file(self) -> Optional[Path]:
        """Returnerer log fil som Path, eller None hvis fil-logging er slået fra"""
        if not self.log_file_path:
            return None
        return Path(self.log_file_path)

    def build_mount_root(self, mount_point: str, volume_letter: str) -> Path:
        """Byg den endelige mount root, fx C:\\VssRoot + C -> C:\\VssRoot_C"""
        base = mount_point.rstrip("/\\") or mount_point
        return Path(f"{base}{self.mount_root_separator}{volume_letter}")
