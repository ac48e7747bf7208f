"""Script to create the AyurSutra tables directly from metadata.

Useful for local development databases; production schemas are managed
with ``scripts/migrate.py``.
"""

import asyncio

from sqlalchemy import text

from ayursutra.config import settings
from ayursutra.database import engine
from ayursutra.models import metadata


async def init_db() -> None:
    """Initialize the database by creating all tables."""
    async with engine.begin() as conn:
        if settings.database_url.startswith("postgresql"):
            await conn.execute(text('CREATE EXTENSION IF NOT EXISTS "pgcrypto"'))

        await conn.run_sync(metadata.create_all)

    await engine.dispose()
    print(f"✓ Created {len(metadata.tables)} tables: {', '.join(sorted(metadata.tables))}")


if __name__ == "__main__":
    asyncio.run(init_db())
