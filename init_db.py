import sys
import asyncio
from movefinder.core.config import settings
from movefinder.db.session import init_db, close_db


async def initialize(seed: bool) -> bool:
    settings.SEED_PRICING_RULES = seed
    try:
        await init_db()
        print(f"Database ready at {settings.DATABASE_URL}")
        if seed:
            print("Default pricing rules seeded")
        return True
    except Exception as e:
        print(f"Error initializing database: {str(e)}")
        return False
    finally:
        await close_db()


def main():
    args = sys.argv[1:]
    if any(arg not in ("--no-seed",) for arg in args):
        print("Usage: python init_db.py [--no-seed]")
        sys.exit(1)

    success = asyncio.run(initialize(seed="--no-seed" not in args))
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
