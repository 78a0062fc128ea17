# init_db.py (in backend folder)

from sqlalchemy import inspect

from privchat.infra.database import Base, check_connection, engine
from privchat.models.message import Message  # noqa: F401


def init_db(drop: bool = False) -> bool:
    """Create (optionally drop and recreate) all tables"""
    if not check_connection():
        print("❌ Cannot reach the database, check DATABASE_URL")
        return False

    if drop:
        print("⚠️  Dropping all tables...")
        Base.metadata.drop_all(bind=engine)
        print("✓ Tables dropped")

    print("📦 Creating tables...")
    Base.metadata.create_all(bind=engine)
    print("✅ Database initialized successfully!")

    inspector = inspect(engine)
    for table in inspector.get_table_names():
        print(f"\n{table}:")
        for col in inspector.get_columns(table):
            print(f"  - {col['name']}: {col['type']}")
    return True


if __name__ == "__main__":
    import sys

    sys.exit(0 if init_db(drop="--drop" in sys.argv) else 1)
