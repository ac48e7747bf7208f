"""Script to run AyurSutra database migrations.

Usage:
    python scripts/migrate.py                    # upgrade to head
    python scripts/migrate.py down [revision]    # downgrade, one step by default
    python scripts/migrate.py create <message>   # autogenerate a revision
"""

import sys

from alembic import command
from alembic.config import Config
from alembic.util import CommandError

ALEMBIC_INI = "alembic.ini"


def upgrade(revision: str = "head") -> None:
    """Upgrade the schema to ``revision``."""
    print(f"Upgrading schema to {revision}...")
    command.upgrade(Config(ALEMBIC_INI), revision)
    print("✓ Schema is up to date")


def downgrade(revision: str = "-1") -> None:
    """Downgrade the schema to ``revision``."""
    print(f"Downgrading schema to {revision}...")
    command.downgrade(Config(ALEMBIC_INI), revision)
    print("✓ Downgrade completed")


def create_revision(message: str) -> None:
    """Autogenerate a revision from the difference between metadata and the database."""
    print(f"Creating revision: {message}")
    command.revision(Config(ALEMBIC_INI), message=message, autogenerate=True)
    print("✓ Revision created")


def main(argv: list[str]) -> int:
    try:
        if not argv:
            upgrade()
        elif argv[0] == "down":
            downgrade(argv[1] if len(argv) > 1 else "-1")
        elif argv[0] == "create" and len(argv) > 1:
            create_revision(" ".join(argv[1:]))
        else:
            print(__doc__)
            return 2
    except CommandError as e:
        print(f"✗ Migration failed: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
