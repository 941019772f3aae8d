"""Error taxonomy shared by the DAO, service and UI layers.

InvalidInputError subclasses ValueError and NotFoundError subclasses
LookupError, so forms that catch ValueError keep working unchanged.
"""


class LedgerError(Exception):
    """Base class for every error the ledger surfaces to its callers."""


class NotFoundError(LedgerError, LookupError):
    """A lookup by identifier returned no row."""

    def __init__(self, entity: str, entity_id=None):
        self.entity = entity
        self.entity_id = entity_id
        if entity_id is None:
            super().__init__(f"{entity} not found.")
        else:
            super().__init__(f"{entity} {entity_id} not found.")


class InvalidInputError(LedgerError, ValueError):
    """Semantic validation failure."""


class DatabaseError(LedgerError):
    """The underlying SQLite store failed."""


class StorageIOError(LedgerError, OSError):
    """File work during backup, restore or export failed."""


class InternalError(LedgerError):
    """Store lifecycle misuse, e.g. using a closed DatabaseManager."""
