from .host_checks import drive_is_ready, is_administrator, is_windows, normalize_drive_letter

__all__ = ["drive_is_ready", "is_administrator", "is_windows", "normalize_drive_letter"]
