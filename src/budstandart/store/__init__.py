"""Gemini file-search stores for downloaded documents."""

from budstandart.store.file_search import FileSearchStore
from budstandart.store.manifest import StoreManifest

__all__ = ["FileSearchStore", "StoreManifest"]
