"""Service layer helpers: settings and session persistence."""

from .layout_store import DirectoryStorage, LayoutStore, StorageBackend
from .settings import Settings, SettingsStore

__all__ = ["DirectoryStorage", "LayoutStore", "Settings", "SettingsStore", "StorageBackend"]
