#!/usr/bin/env python3
"""
Connection check

Verifies the configured database and, when REDIS_URL is set, Redis.
Exits non-zero when any check fails.
"""
import asyncio
import sys
import os

# make the quotedesk package importable when run from backend/scripts
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


async def verify_database():
    print("=" * 50)
    print("Checking database connection...")
    print("=" * 50)

    try:
        from sqlalchemy import text
        from quotedesk.core.database import engine

        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            result.scalar()
            print(f"OK   connected ({engine.dialect.name})")

            if engine.dialect.name == "postgresql":
                result = await conn.execute(text("SELECT version()"))
                print(f"     server: {result.scalar()}")
        await engine.dispose()
        return True
    except Exception as e:
        print(f"FAIL database connection failed: {e}")
        return False


async def verify_redis():
    print("\n" + "=" * 50)
    print("Checking Redis connection...")
    print("=" * 50)

    from quotedesk.core.config import settings
    if not settings.REDIS_URL:
        print("SKIP REDIS_URL not set; document numbering uses in-process locks")
        return True

    try:
        from quotedesk.core.redis_client import init_redis, close_redis

        client = await init_redis()
        if not await client.ping():
            print("FAIL ping returned false")
            return False

        info = await client.info("server")
        print("OK   connected")
        print(f"     version: {info.get('redis_version', 'N/A')}")

        # the numbering lock needs SET NX with expiry
        lock = client.lock("docnum:verify", timeout=5, blocking_timeout=1)
        if await lock.acquire():
            await lock.release()
            print("     lock round trip: passed")

        await close_redis()
        return True
    except Exception as e:
        print(f"FAIL Redis connection failed: {e}")
        return False


async def verify_all():
    from dotenv import load_dotenv
    load_dotenv()

    results = [
        ("Database", await verify_database()),
        ("Redis", await verify_redis()),
    ]

    print("\n" + "=" * 50)
    print("Summary")
    print("=" * 50)
    all_passed = True
    for name, passed in results:
        print(f"{name}: {'passed' if passed else 'FAILED'}")
        all_passed = all_passed and passed
    print("=" * 50)
    return 0 if all_passed else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(verify_all()))
