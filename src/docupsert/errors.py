"""Error types for docupsert."""


class DocUpsertError(Exception):
    """Base exception for docupsert errors."""
    pass


class InvalidIdError(DocUpsertError):
    """No usable document id was supplied."""
    pass


class StoreReadError(DocUpsertError):
    """The store failed a read for a reason other than a missing document."""
    pass


class StoreWriteError(DocUpsertError):
    """The store failed a write for a reason other than a revision conflict."""
    pass


class ConfigError(DocUpsertError):
    """Configuration error."""
    pass
