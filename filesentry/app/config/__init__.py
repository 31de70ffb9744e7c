"""Config package exporting loader helpers."""

from .loader import ChecksumConfig, Settings, WatchedFileConfig, load_settings

__all__ = ["ChecksumConfig", "Settings", "WatchedFileConfig", "load_settings"]
