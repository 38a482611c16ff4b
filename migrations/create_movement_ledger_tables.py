"""
Migration script to create the movement ledger tables
Creates units, sites, assets, movements and activity_logs, plus the
ordering index used by every chain read
"""
import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from asset_ledger import create_app, db
from asset_ledger.models import Unit, Site, Asset, MovementRecord, ActivityLog  # noqa: F401

LEDGER_TABLES = ['units', 'sites', 'assets', 'movements', 'activity_logs']


def migrate():
    """Create the ledger tables"""
    app = create_app(os.getenv('FLASK_ENV', 'development'))

    with app.app_context():
        print("Creating movement ledger tables...")

        db.create_all()

        # Verify tables were created
        inspector = db.inspect(db.engine)
        tables = inspector.get_table_names()

        missing = [table for table in LEDGER_TABLES if table not in tables]
        if missing:
            print(f"✗ Failed to create tables: {', '.join(missing)}")
            return False

        for table in LEDGER_TABLES:
            print(f"✓ Table '{table}' ready")

        # Chain reads always filter by asset and order by sequence
        indexes = [index['name'] for index in inspector.get_indexes('movements')]
        if 'idx_movements_asset_sequence' not in indexes:
            print("\nCreating index idx_movements_asset_sequence...")
            db.session.execute(db.text("""
                CREATE INDEX idx_movements_asset_sequence
                ON movements(asset_id, sequence_timestamp);
            """))
            db.session.commit()
            print("   ✓ Index created")

        print("\nTable structure (movements):")
        for col in inspector.get_columns('movements'):
            print(f"  - {col['name']}: {col['type']}")

        print("\nMigration completed successfully!")
        return True


if __name__ == '__main__':
    migrate()
