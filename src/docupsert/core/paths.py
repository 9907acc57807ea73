"""Centralized path management for docupsert."""

from pathlib import Path

DOCUPSERT_HOME = Path.home() / ".docupsert"

# Configuration file, relocatable with DOCUPSERT_CONFIG
CONFIG_FILE = DOCUPSERT_HOME / "config.yaml"
CONFIG_ENV_VAR = "DOCUPSERT_CONFIG"

# Default directory for the local document store
LOCAL_STORE_DIR = DOCUPSERT_HOME / "store"
