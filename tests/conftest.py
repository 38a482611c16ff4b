"""
Pytest configuration and fixtures for ledger tests
"""
import os
from datetime import timedelta

import pytest

os.environ['DISABLE_SCHEDULER'] = '1'

from asset_ledger import create_app
from asset_ledger import db as _db
from asset_ledger.constants import WAREHOUSE_TO_SITE, SITE_TO_WAREHOUSE
from asset_ledger.models import Unit, Site, Asset, MovementRecord
from asset_ledger.services import ledger_service
from asset_ledger.services.locations import Location, location_after
from asset_ledger.utils.datetime_helper import business_today


@pytest.fixture(scope='function')
def app():
    """Create Flask application for testing with a fresh in-memory database"""
    app = create_app('testing')

    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create Flask test client"""
    return app.test_client()


@pytest.fixture(scope='function')
def today(app):
    return business_today()


@pytest.fixture(scope='function')
def places(app):
    """
    Units A, B and C with one active site each, a second site in A and an
    inactive site in B. Keyed by name, values are Locations.
    """
    result = {}
    for code in ('A', 'B', 'C'):
        unit = Unit(code=code, name=f'Unit {code}')
        _db.session.add(unit)
        _db.session.flush()
        site = Site(unit_id=unit.id, name='Room 1')
        _db.session.add(site)
        _db.session.flush()
        result[code] = Location(unit.id, site.id)

    second = Site(unit_id=result['A'].unit_id, name='Room 2')
    closed = Site(unit_id=result['B'].unit_id, name='Old Storage', is_active=False)
    _db.session.add_all([second, closed])
    _db.session.commit()

    result['A2'] = Location(result['A'].unit_id, second.id)
    result['B_closed'] = Location(result['B'].unit_id, closed.id)
    return result


@pytest.fixture(scope='function')
def asset(app, today):
    """Asset registered a year ago, still in the warehouse"""
    asset = Asset(
        serial_number='SN-0001',
        name='Laptop ThinkPad T14',
        registration_date=today - timedelta(days=365)
    )
    asset.save()
    return asset


@pytest.fixture(scope='function')
def move(app):
    """
    Record a movement through the service.

    ``move(asset, direction, to=Location, **extra)``; the
    declared source unit defaults to the asset's current unit.
    """
    def _move(asset, direction, to=None, **extra):
        data = {'asset_id': asset.id, 'direction': direction}
        if direction != WAREHOUSE_TO_SITE:
            current = location_after(ledger_service.latest_movement(asset.id))
            data['source_unit_id'] = current.unit_id
        if to is not None:
            data['target_unit_id'] = to.unit_id
            data['target_site_id'] = to.site_id
        data.update(extra)
        return ledger_service.create_movement(data)
    return _move


def assert_chain_consistent(asset_id):
    """Check every ledger invariant for one asset"""
    chain = ledger_service.load_chain(asset_id)
    asset = _db.session.get(Asset, asset_id)
    today = business_today()

    if chain:
        assert chain[0].direction == WAREHOUSE_TO_SITE

    expected_source = Location(None, None)
    previous = None
    for record in chain:
        assert record.source == expected_source
        assert record.source != record.effective_target
        if record.direction == SITE_TO_WAREHOUSE:
            assert record.target == Location(None, None)
        assert record.business_date <= today
        assert record.business_date >= asset.registration_date
        if previous is not None:
            assert record.business_date >= previous.business_date
            assert record.sequence_timestamp > previous.sequence_timestamp
        expected_source = record.effective_target
        previous = record

    assert asset.cached_location == location_after(chain[-1] if chain else None)


@pytest.fixture
def check_chain():
    return assert_chain_consistent


@pytest.fixture
def reload():
    """Fresh copy of a movement by code"""
    def _reload(code):
        _db.session.expire_all()
        return MovementRecord.query.filter_by(code=code).first()
    return _reload
