"""Durable local state."""

from .backends import JsonFileSettingsBackend, MemorySettingsBackend, SettingsBackend
from .store import PersistentStateStore

__all__ = [
    "JsonFileSettingsBackend",
    "MemorySettingsBackend",
    "PersistentStateStore",
    "SettingsBackend",
]
