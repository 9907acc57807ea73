"""Configuration and paths for docupsert."""

from .config import DocUpsertConfig, StoreConfig

__all__ = ["DocUpsertConfig", "StoreConfig"]
