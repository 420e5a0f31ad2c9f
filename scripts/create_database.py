"""Create the PostgreSQL database named in DATABASE_URL if it doesn't exist."""

import asyncio
import os
import sys
from urllib.parse import urlparse

import asyncpg
from dotenv import load_dotenv

load_dotenv()


def parse_database_url(url: str) -> dict:
    """Split a PostgreSQL URL into asyncpg connection arguments."""
    parsed = urlparse(url.replace("+asyncpg", ""))
    return {
        "host": parsed.hostname or "localhost",
        "port": parsed.port or 5432,
        "user": parsed.username or "postgres",
        "password": parsed.password or "",
        "database": (parsed.path or "/backstage").lstrip("/") or "backstage",
    }


async def create_database() -> int:
    """Create the database if it doesn't exist."""
    url = os.getenv("DATABASE_URL", "postgresql://postgres@localhost:5432/backstage")
    params = parse_database_url(url)
    name = params.pop("database")

    print("=" * 50)
    print("Creating PostgreSQL Database")
    print("=" * 50)
    print(f"  Host: {params['host']}")
    print(f"  Port: {params['port']}")
    print(f"  Database: {name}")
    print(f"  User: {params['user']}")
    print()

    try:
        conn = await asyncpg.connect(database="postgres", **params)
    except asyncpg.exceptions.InvalidPasswordError:
        print("✗ Error: Invalid database password")
        print("  Please check DATABASE_URL in your .env file")
        return 1
    except OSError as e:
        print(f"✗ Error: Could not connect to PostgreSQL: {e}")
        return 1

    try:
        exists = await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", name)
        if exists:
            print(f"✓ Database '{name}' already exists.")
        else:
            await conn.execute(f'CREATE DATABASE "{name}"')
            print(f"✓ Database '{name}' created successfully!")
    finally:
        await conn.close()

    print()
    print("Next steps:")
    print("  1. Run migrations: alembic upgrade head")
    print("  2. Create an admin: python scripts/setup_admin.py --email admin@example.com")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(create_database()))
