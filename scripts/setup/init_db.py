"""
Initialize database — creates OperationLogs and CurrentMachineStatus.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from sqlalchemy import inspect, text
from machine_telemetry.config import load_settings
from machine_telemetry.database import create_db_engine, create_tables


def main():
    print("🗄️  Machine Telemetry DB Initialization")
    print("=" * 40)

    result = load_settings(HANDLER_MODE="direct")   # only DATABASE_URL is needed here
    if not result.ok:
        for error in result.errors:
            print(f"❌ {error}")
        sys.exit(1)
    settings = result.settings
    engine = create_db_engine(settings.DATABASE_URL)
    print(f"📡 Database: {engine.url.render_as_string(hide_password=True)}")

    # Test connection
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables(engine)

    tables = sorted(inspect(engine).get_table_names())
    print(f"\n📊 Tables in database ({len(tables)} total):")
    for t in tables:
        print(f"   ✓ {t}")

    print("\n🎉 Database ready! You can now start the backend:")
    print("   uvicorn machine_telemetry.main:create_app --factory --host 0.0.0.0 --port 8080")


if __name__ == "__main__":
    main()
