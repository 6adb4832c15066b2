from inkwell.store.sqlite_store import SQLiteStore
from inkwell.store.migrations import MIGRATIONS, Migration

__all__ = ["SQLiteStore", "MIGRATIONS", "Migration"]
