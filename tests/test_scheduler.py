"""
Tests for the periodic integrity audit job
"""
import logging

from asset_ledger import db
from asset_ledger.constants import WAREHOUSE_TO_SITE
from asset_ledger.scheduler import scheduler, run_integrity_audit
from asset_ledger.services.locations import WAREHOUSE


def test_scheduler_disabled_in_tests(app):
    assert not scheduler.running


def test_audit_job_logs_anomalies(app, asset, places, move, caplog):
    move(asset, WAREHOUSE_TO_SITE, to=places['A'])
    asset.set_location(WAREHOUSE)
    db.session.commit()

    scheduler.app = app
    with caplog.at_level(logging.INFO, logger='asset_ledger.scheduler'):
        run_integrity_audit()

    assert 'Integrity audit found 1 anomalies' in caplog.text


def test_audit_job_clean_run(app, asset, places, move, caplog):
    move(asset, WAREHOUSE_TO_SITE, to=places['A'])

    scheduler.app = app
    with caplog.at_level(logging.INFO, logger='asset_ledger.scheduler'):
        run_integrity_audit()

    assert 'Integrity audit clean, 1 assets checked' in caplog.text
