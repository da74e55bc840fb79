#!/usr/bin/env python
"""Check database connectivity and the dairy tables.

Usage:
    python scripts/check_db.py
"""

import asyncio
import sys

from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import create_async_engine

from app.core.config import get_settings
from app.core.database import is_connectivity_failure
from app.features.data_platform.store import ENTITY_MODELS


async def check_database() -> int:
    """Verify the connection and report row counts per dairy table."""
    settings = get_settings()

    print("DairyLedger - Database Connectivity Check")
    print("=" * 45)
    print(f"Database URL: {settings.database_url.split('@')[-1]}")  # Hide credentials
    print()

    engine = create_async_engine(settings.database_url)

    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            assert result.scalar() == 1
            print("[OK] Basic connectivity")

            for entity, model in ENTITY_MODELS.items():
                result = await conn.execute(select(func.count()).select_from(model))
                print(f"[OK] {model.__tablename__:<15} {result.scalar():>8} rows ({entity.value})")

        print()
        print("Database check completed successfully!")
        return 0

    except Exception as e:
        print(f"[FAIL] {type(e).__name__}: {e}")
        print()
        if is_connectivity_failure(e):
            print("Troubleshooting:")
            print("  1. Ensure PostgreSQL is running")
            print("  2. Check DATABASE_URL in .env file")
        else:
            print("Connected, but the dairy tables could not be read.")
            print("Ensure the schema has been created by the data service.")
        return 1

    finally:
        await engine.dispose()


def main() -> None:
    sys.exit(asyncio.run(check_database()))


if __name__ == "__main__":
    main()
