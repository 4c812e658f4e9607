"""Initialize database tables."""
from typing import Optional

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel

import homeops.models  # noqa: F401  registers every table on the metadata


def init_db(target: Optional[Engine] = None):
    """Create all tables in the database."""
    if target is None:
        from homeops.db.config import engine as target

    print("[DB INIT] Creating all tables...")
    SQLModel.metadata.create_all(target)
    print("[DB INIT] Tables created successfully.")


if __name__ == "__main__":
    init_db()
