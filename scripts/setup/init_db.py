# scripts/setup/init_db.py
"""
Initialize database and object storage: creates all tables and buckets.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py [--skip-buckets]
"""

import argparse
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from app.database import create_tables, engine
from app.config import settings
from app.services.storage import get_storage
from sqlalchemy import inspect, text


def main():
    parser = argparse.ArgumentParser(description="Create fleet database tables and storage buckets")
    parser.add_argument("--skip-buckets", action="store_true", help="Only create database tables")
    args = parser.parse_args()

    print("🗄️  Fleet Operations DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    # Test connection
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        print("\nMake sure PostgreSQL is running:")
        print("  sudo systemctl start postgresql")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables()
    tables = sorted(inspect(engine).get_table_names())
    print(f"✅ Tables in database ({len(tables)} total):")
    for t in tables:
        print(f"   ✓ {t}")

    if not args.skip_buckets:
        storage = get_storage()
        print(f"\n🪣 Creating storage buckets under {storage.root}...")
        storage.ensure_buckets(settings.BUCKETS)
        for bucket in settings.BUCKETS:
            print(f"   ✓ {bucket}")

    print("\n🎉 Ready! You can now start the backend:")
    print("   uvicorn app.main:app --host 0.0.0.0 --port 8080 --reload")


if __name__ == "__main__":
    main()
