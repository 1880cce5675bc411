"""Response store bootstrap: engine, transaction scope and SQL migrations.

Repositories in intake.logic speak SQL through SQLAlchemy Core; route
handlers never import this package.
"""

from intake.db.base import database_url, get_engine, reset_engine, transaction
from intake.db.migrations_runner import apply_migrations

__all__ = [
    "apply_migrations",
    "database_url",
    "get_engine",
    "reset_engine",
    "transaction",
]
