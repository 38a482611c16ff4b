import os
from asset_ledger import create_app, db
from asset_ledger.models import Unit, Site, Asset, MovementRecord, ActivityLog

# Create app instance
app = create_app(os.getenv('FLASK_ENV', 'development'))


@app.shell_context_processor
def make_shell_context():
    """Make database models available in Flask shell"""
    return {
        'db': db,
        'Unit': Unit,
        'Site': Site,
        'Asset': Asset,
        'MovementRecord': MovementRecord,
        'ActivityLog': ActivityLog
    }


@app.cli.command()
def init_db():
    """Create the ledger tables"""
    print("Creating database tables...")
    db.create_all()
    print("Database initialized successfully!")


@app.cli.command()
def seed_demo():
    """Seed units, sites and a few assets in the warehouse"""
    from datetime import date
    from asset_ledger.utils.cache_helpers import invalidate_master_data

    db.create_all()

    # Check if data already exists
    if Unit.query.first():
        print("Demo data already present!")
        return

    print("Creating sample data...")

    finance = Unit(code='FIN', name='Finance Department', address='Building A, 2nd floor')
    finance.save()
    it = Unit(code='IT', name='IT Department', address='Building B, 1st floor')
    it.save()

    for unit, names in ((finance, ['Room 201', 'Room 202']), (it, ['Server Room', 'Helpdesk'])):
        for name in names:
            Site(unit_id=unit.id, name=name, pic='Facility Officer').save()

    assets = [
        ('LPT-0001', 'Laptop ThinkPad T14'),
        ('PRJ-0001', 'Projector Epson EB-X500'),
        ('SWT-0001', 'Switch TP-Link 24 Port'),
    ]
    for serial_number, name in assets:
        Asset(
            serial_number=serial_number,
            name=name,
            registration_date=date(2024, 1, 2)
        ).save()

    invalidate_master_data()

    print("Demo data created successfully!")
    print(f"Units: {Unit.query.count()}, sites: {Site.query.count()}, assets: {Asset.query.count()}")


if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
