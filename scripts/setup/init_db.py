"""
Initialize database — creates all tables and, optionally, a first layout.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py [--spaces 50] [--zones 5]
"""

import argparse
import asyncio
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from sqlalchemy import text, inspect
from smartpark.config import settings
from smartpark.database import Database
from smartpark.services import space_registry


def main():
    parser = argparse.ArgumentParser(description="Create SmartPark tables")
    parser.add_argument("--spaces", type=int, default=0, help="Generate this many spaces (0 = skip)")
    parser.add_argument("--zones", type=int, default=settings.DEFAULT_ZONE_COUNT)
    args = parser.parse_args()

    print("🗄️  SmartPark DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    database = Database(settings)
    try:
        with database.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        print("\nMake sure PostgreSQL is running, or point DATABASE_URL at sqlite:///smartpark.db")
        sys.exit(1)

    print("\n📋 Creating tables...")
    database.create_tables()
    tables = sorted(inspect(database.engine).get_table_names())
    print(f"📊 Tables in database ({len(tables)} total):")
    for t in tables:
        print(f"   ✓ {t}")

    if args.spaces:
        db = database.session()
        try:
            spaces = asyncio.run(space_registry.generate(db, args.spaces, args.zones))
            print(f"\n🅿️  Generated {len(spaces)} spaces across {args.zones} zones")
        finally:
            db.close()

    database.dispose()
    print("\n🎉 Database ready! You can now start the backend:")
    print(f"   uvicorn smartpark.main:app --host {settings.BACKEND_IP} --port {settings.BACKEND_PORT}")


if __name__ == "__main__":
    main()
