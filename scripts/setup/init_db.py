# scripts/setup/init_db.py
"""
Initialize database: creates all tables and the first-run data.
Run once before first launch. Safe to re-run: existing rows are kept.
Usage: python scripts/setup/init_db.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from parkpay.database import create_tables, engine, SessionLocal
from parkpay.config import settings
from parkpay.models.company_settings import CompanySettings
from parkpay.schemas.company_settings import CompanySettingsIn
from parkpay.services.settings_service import default_settings, update_company_settings
from parkpay.services.staff_service import seed_reference_data
from parkpay.services.ticket_service import create_ticket_inventory
from sqlalchemy import inspect, text


def main():
    print("🗄️  ParkPay DB Initialization")
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
        print("  docker-compose up -d db")
        print("  # or: sudo systemctl start postgresql")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables()
    tables = sorted(inspect(engine).get_table_names())
    print(f"✅ {len(tables)} tables ready")
    for t in tables:
        print(f"   ✓ {t}")

    db = SessionLocal()
    try:
        print(f"\n🎫 Creating tickets {settings.TICKET_PREFIX}001..{settings.TICKET_PREFIX}{settings.TICKET_COUNT:03d}")
        created = create_ticket_inventory(db)
        print(f"✅ {created} new tickets")

        seeded = seed_reference_data(db)
        print(f"✅ {seeded['staff']} staff members and {seeded['banks']} banks added")

        if db.query(CompanySettings).first() is None:
            update_company_settings(db, CompanySettingsIn(**default_settings()))
            print(f"✅ Default company settings saved: {settings.DEFAULT_TARIFFS}")
        else:
            print("ℹ️  Company settings already present, left untouched")
    finally:
        db.close()

    print("\n🎉 Database ready! You can now start the backend:")
    print(f"   uvicorn parkpay.main:app --host {settings.BACKEND_IP} --port {settings.BACKEND_PORT} --reload")


if __name__ == "__main__":
    main()
