"""Database engine and repository for Energy Ledger."""

from energy_ledger.db.engine import close_db, get_db, init_db
from energy_ledger.db.repository import Repository

__all__ = ["close_db", "get_db", "init_db", "Repository"]
