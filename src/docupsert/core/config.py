"""docupsert configuration management.

Configuration lives in ~/.docupsert/config.yaml (or the file named by
DOCUPSERT_CONFIG). A missing file means defaults; 'docupsert config init'
writes one out.
"""

import logging
import os
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import BaseModel, Field, field_validator

from ..errors import ConfigError
from ..store import DocumentStore, get_store
from ..store.base import ID_FIELD, REV_FIELD
from .config_base import ConfigModel
from .paths import CONFIG_ENV_VAR, CONFIG_FILE, LOCAL_STORE_DIR

logger = logging.getLogger(__name__)


class StoreConfig(BaseModel):
    """Document store backend settings."""

    backend: Literal["auto", "memory", "local", "azure"] = "local"
    """Which store to use; 'auto' picks Azure when a connection string is set."""

    path: str = str(LOCAL_STORE_DIR)
    """Base directory for the local store."""

    container: str = "documents"
    """Blob container for the Azure store."""

    connection_string: str | None = None
    """Azure Storage connection string (default: AZURE_STORAGE_CONNECTION_STRING)."""


class DocUpsertConfig(ConfigModel):
    """Main configuration model for docupsert."""

    default_path: ClassVar[Path | None] = CONFIG_FILE
    path_env_var: ClassVar[str | None] = CONFIG_ENV_VAR

    store: StoreConfig = Field(default_factory=StoreConfig)
    """Store backend settings."""

    id_field: str = ID_FIELD
    """Document field holding the id."""

    rev_field: str = REV_FIELD
    """Document field holding the revision."""

    log_level: str = "WARNING"
    """Logging level for the CLI."""

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @classmethod
    def get_instance(cls) -> "DocUpsertConfig":
        """Get cached instance or load from file.

        The config file is read once per session.

        Raises:
            ConfigError: If the config file exists but can't be used
        """
        if getattr(cls, "_cached_instance", None) is None:
            cls._cached_instance = cls.load()
        return cls._cached_instance

    @classmethod
    def reset(cls):
        """Reset cached instance (useful for testing or forcing reload)."""
        cls._cached_instance = None

    def save(self) -> None:
        """Write configuration to its config file."""
        path = self.to_yaml()
        logger.info(f"Saved configuration to {path}")

    def create_store(self) -> DocumentStore:
        """Build the configured document store.

        Raises:
            ConfigError: If the Azure backend is selected without credentials
        """
        fields = {"id_field": self.id_field, "rev_field": self.rev_field}
        backend = self.store.backend

        if backend == "local":
            return get_store("local", base_path=self.store.path, **fields)
        if backend == "memory":
            return get_store("memory", **fields)

        connection_string = self.store.connection_string or os.environ.get(
            "AZURE_STORAGE_CONNECTION_STRING"
        )
        if backend == "azure" and not connection_string:
            raise ConfigError(
                "Azure store selected but no connection string configured "
                "(set store.connection_string or AZURE_STORAGE_CONNECTION_STRING)"
            )
        if backend == "auto" and not connection_string:
            return get_store("local", base_path=self.store.path, **fields)
        return get_store(
            "azure",
            connection_string=connection_string,
            container=self.store.container,
            **fields,
        )
