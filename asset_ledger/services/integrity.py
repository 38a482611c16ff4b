"""
Ledger integrity audit and repair.

The audit walks every chain by sequence timestamp and reports what breaks
the ledger invariants. Repair only rewrites what can be derived: sources and
directions (by replaying the cascade rule hop by hop) and cached locations.
Bad first records and date inversions need a person and are only reported.
"""
import logging
from collections import Counter

from asset_ledger import db
from asset_ledger.constants import WAREHOUSE_TO_SITE, ACTION_REPAIR
from asset_ledger.exceptions import CascadeConflict, TargetConflict
from asset_ledger.models import Asset, ActivityLog
from asset_ledger.services.cascade import realign_successor
from asset_ledger.services.direction_rules import direction_between
from asset_ledger.services.ledger_service import (
    ledger_transaction, load_chain, project_asset_location
)
from asset_ledger.services.locations import WAREHOUSE, resolve_location
from asset_ledger.services.locks import asset_locks

logger = logging.getLogger(__name__)

INVALID_FIRST_MOVEMENT = 'invalid_first_movement'
CONTINUITY_BREAK = 'continuity_break'
DIRECTION_MISMATCH = 'direction_mismatch'
NOOP_MOVEMENT = 'noop_movement'
DATE_INVERSION = 'date_inversion'
STALE_LOCATION = 'stale_location'


def _anomaly(kind, asset_id, code=None, **details):
    return {'kind': kind, 'asset_id': asset_id, 'code': code, 'details': details}


def scan_chain(chain, asset_id=None, cached_location=None):
    """
    Anomalies of one chain of snapshots ordered by sequence timestamp.

    ``cached_location`` is compared with the resolved location when given.
    """
    anomalies = []

    if chain and chain[0].direction != WAREHOUSE_TO_SITE:
        anomalies.append(_anomaly(
            INVALID_FIRST_MOVEMENT, asset_id, chain[0].code,
            direction=chain[0].direction
        ))

    expected_source = WAREHOUSE
    previous = None
    for snapshot in chain:
        if snapshot.source != expected_source:
            anomalies.append(_anomaly(
                CONTINUITY_BREAK, asset_id, snapshot.code,
                expected_source=expected_source.to_dict(),
                recorded_source=snapshot.source.to_dict(),
                previous_code=previous.code if previous else None
            ))

        if snapshot.source == snapshot.effective_target:
            anomalies.append(_anomaly(
                NOOP_MOVEMENT, asset_id, snapshot.code,
                location=snapshot.source.to_dict()
            ))
        elif direction_between(snapshot.source, snapshot.effective_target) != snapshot.direction:
            anomalies.append(_anomaly(
                DIRECTION_MISMATCH, asset_id, snapshot.code,
                direction=snapshot.direction,
                expected_direction=direction_between(snapshot.source, snapshot.effective_target)
            ))

        if previous is not None and snapshot.business_date < previous.business_date:
            anomalies.append(_anomaly(
                DATE_INVERSION, asset_id, snapshot.code,
                business_date=snapshot.business_date.isoformat(),
                previous_code=previous.code,
                previous_date=previous.business_date.isoformat()
            ))

        expected_source = snapshot.effective_target
        previous = snapshot

    if cached_location is not None:
        resolved = resolve_location(chain)
        if resolved != cached_location:
            anomalies.append(_anomaly(
                STALE_LOCATION, asset_id,
                chain[-1].code if chain else None,
                cached_location=cached_location.to_dict(),
                resolved_location=resolved.to_dict()
            ))

    return anomalies


def _assets(asset_id=None):
    query = Asset.query.order_by(Asset.id)
    if asset_id is not None:
        query = query.filter_by(id=asset_id)
    return query.all()


def audit_ledger(asset_id=None):
    """
    Scan every asset chain (or a single one) and report anomalies.

    Returns a dict with ``checked_assets``, ``anomalies`` and ``counts`` per
    anomaly kind.
    """
    anomalies = []
    assets = _assets(asset_id)
    for asset in assets:
        chain = [record.snapshot() for record in load_chain(asset.id)]
        anomalies.extend(scan_chain(chain, asset.id, asset.cached_location))

    return {
        'checked_assets': len(assets),
        'anomalies': anomalies,
        'counts': dict(Counter(anomaly['kind'] for anomaly in anomalies)),
    }


def _repair_asset(asset_id, actor=None):
    """Repair one asset inside its own lock and transaction"""
    repaired = []
    unresolved = []
    relocated = False

    with asset_locks.hold(asset_id):
        with ledger_transaction():
            asset = Asset.query.filter_by(id=asset_id).with_for_update().first()
            if asset is None:
                return repaired, unresolved, relocated

            chain = load_chain(asset.id)
            expected_source = WAREHOUSE
            previous_code = None
            for index, record in enumerate(chain):
                snapshot = record.snapshot()

                if index == 0 and snapshot.direction != WAREHOUSE_TO_SITE:
                    unresolved.append(_anomaly(
                        INVALID_FIRST_MOVEMENT, asset.id, snapshot.code,
                        direction=snapshot.direction
                    ))
                    fixed = None
                else:
                    try:
                        fixed = realign_successor(snapshot, expected_source, edited_code=previous_code)
                    except (CascadeConflict, TargetConflict) as e:
                        unresolved.append(_anomaly(
                            CONTINUITY_BREAK, asset.id, snapshot.code,
                            reason=e.kind, **e.details
                        ))
                        fixed = None

                if fixed is not None:
                    old_data = record.to_dict()
                    record.apply_snapshot(fixed)
                    db.session.flush()
                    ActivityLog.log_activity(
                        ACTION_REPAIR, 'movements',
                        record_code=record.code,
                        asset_id=asset.id,
                        old_data=old_data,
                        new_data=record.to_dict(),
                        actor=actor
                    )
                    repaired.append(record.code)

                expected_source = (fixed or snapshot).effective_target
                previous_code = snapshot.code

            cached = asset.cached_location
            location = project_asset_location(asset)
            if location != cached:
                ActivityLog.log_activity(
                    ACTION_REPAIR, 'assets',
                    asset_id=asset.id,
                    old_data=cached.to_dict(),
                    new_data=location.to_dict(),
                    actor=actor
                )
                relocated = True

    return repaired, unresolved, relocated


def repair_ledger(asset_id=None, actor=None):
    """
    Fix continuity breaks, wrong directions and stale cached locations.

    Each asset is repaired in its own transaction, so one failing asset
    does not undo the others.
    """
    report = {
        'checked_assets': 0,
        'repaired_records': [],
        'relocated_assets': [],
        'unresolved': [],
    }
    asset_ids = [asset.id for asset in _assets(asset_id)]
    for current_id in asset_ids:
        repaired, unresolved, relocated = _repair_asset(current_id, actor=actor)
        report['checked_assets'] += 1
        report['repaired_records'].extend(repaired)
        report['unresolved'].extend(unresolved)
        if relocated:
            report['relocated_assets'].append(current_id)

    if report['repaired_records'] or report['relocated_assets']:
        logger.info(
            f"Ledger repair: {len(report['repaired_records'])} records rewritten, "
            f"{len(report['relocated_assets'])} locations reprojected"
        )
    if report['unresolved']:
        logger.warning(f"Ledger repair left {len(report['unresolved'])} anomalies for manual review")
    return report
