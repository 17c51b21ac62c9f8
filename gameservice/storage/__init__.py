from .preferences import JsonFilePreferences, MemoryPreferences, PreferenceStore

__all__ = ["JsonFilePreferences", "MemoryPreferences", "PreferenceStore"]
