"""
Ledger Store operations.

Every mutation follows the same path: take the per-asset lock, open one
transaction with the asset row locked, run the read-only checks, then write
the record, its cascaded successor, the activity log and the projected
location together. Any failure rolls the whole transaction back.
"""
import logging
import secrets
import string
import time
from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import OperationalError, InterfaceError, DisconnectionError

from asset_ledger import db
from asset_ledger.constants import (
    ACTION_CREATE, ACTION_UPDATE, ACTION_CASCADE, ACTION_DELETE, DEFAULT_CONDITION
)
from asset_ledger.exceptions import (
    NotFound, NotLastRecord, InvalidReference, InvalidPayload, StorageUnavailable
)
from asset_ledger.models import Asset, MovementRecord, ActivityLog
from asset_ledger.services.cascade import cascade
from asset_ledger.services.chain import neighbours
from asset_ledger.services.conflicts import check_conflicts
from asset_ledger.services.direction_rules import (
    check_direction, source_for, target_for
)
from asset_ledger.services.locations import Location, location_after
from asset_ledger.services.locks import asset_locks
from asset_ledger.services.timeline import validate_business_date
from asset_ledger.utils.cache_helpers import get_site_map, get_name_lookup
from asset_ledger.utils.datetime_helper import business_today
from asset_ledger.utils.decorators import retry_on_storage_fault

logger = logging.getLogger(__name__)

STORAGE_FAULTS = (OperationalError, InterfaceError, DisconnectionError)

CODE_ALPHABET = string.ascii_uppercase + string.digits

TARGET_FIELDS = ('target_unit_id', 'target_site_id')

# Payload keys that only describe a movement and never touch the chain
DESCRIPTIVE_FIELDS = {
    'condition': 'condition_snapshot',
    'notes': 'notes',
    'processed_by': 'processed_by',
}


@contextmanager
def ledger_transaction():
    """
    One atomic unit of work on the ledger.

    Commits on success; rolls back on any error. Storage faults surface as
    ``StorageUnavailable``, everything else propagates unchanged.
    """
    try:
        yield db.session
        db.session.commit()
    except STORAGE_FAULTS as e:
        db.session.rollback()
        logger.error(f'Ledger storage fault: {e.__class__.__name__}: {e}')
        raise StorageUnavailable(reason=e.__class__.__name__) from e
    except Exception:
        db.session.rollback()
        raise


# Reads

def load_chain(asset_id):
    """All movements of an asset, ascending by sequence timestamp"""
    return MovementRecord.query.filter_by(asset_id=asset_id).order_by(
        MovementRecord.sequence_timestamp.asc()
    ).all()


def latest_movement(asset_id):
    return MovementRecord.query.filter_by(asset_id=asset_id).order_by(
        MovementRecord.sequence_timestamp.desc()
    ).first()


def get_asset(asset_id):
    asset = Asset.get_by_id(asset_id)
    if asset is None:
        raise NotFound(f'Asset {asset_id} not found', asset_id=asset_id)
    return asset


def get_movement(code):
    record = MovementRecord.query.filter_by(code=code).first()
    if record is None:
        raise NotFound(f'Movement {code} not found', code=code)
    return record


def list_movements_query(asset_id=None, order='desc'):
    """
    Movements ordered by sequence timestamp, latest first unless
    ``order`` is ``'asc'``.
    """
    query = MovementRecord.query
    if asset_id is not None:
        get_asset(asset_id)
        query = query.filter_by(asset_id=asset_id)

    if order == 'asc':
        query = query.order_by(MovementRecord.sequence_timestamp.asc(), MovementRecord.id.asc())
    else:
        query = query.order_by(MovementRecord.sequence_timestamp.desc(), MovementRecord.id.desc())

    return query.options(
        db.joinedload(MovementRecord.source_unit),
        db.joinedload(MovementRecord.source_site),
        db.joinedload(MovementRecord.target_unit),
        db.joinedload(MovementRecord.target_site)
    )


def list_movements(asset_id=None, order='desc'):
    return list_movements_query(asset_id, order).all()


def resolve_current_location(asset_id):
    """
    Current location of an asset, read from the ledger rather than the
    cached columns.
    """
    asset = get_asset(asset_id)
    latest = latest_movement(asset.id)
    location = location_after(latest)

    names = get_name_lookup()
    result = location.to_dict()
    result.update({
        'asset_id': asset.id,
        'unit_name': names['units'].get(location.unit_id),
        'site_name': names['sites'].get(location.site_id),
        'latest_code': latest.code if latest else None,
        'cache_in_sync': asset.cached_location == location,
    })
    return result


def asset_history(asset_id):
    """Chain of an asset, each entry annotated with where the asset was before it"""
    asset = get_asset(asset_id)
    history = []
    before = location_after(None)
    for record in load_chain(asset.id):
        entry = record.to_dict()
        entry['location_before'] = before.to_dict()
        entry['location_after'] = record.effective_target.to_dict()
        history.append(entry)
        before = record.effective_target
    return history


# Helpers shared by the mutations

def generate_code(length=None):
    """Random upper-case alphanumeric movement code not used yet"""
    length = length or current_app.config.get('LEDGER_CODE_LENGTH', 6)
    while True:
        code = ''.join(secrets.choice(CODE_ALPHABET) for _ in range(length))
        if MovementRecord.query.filter_by(code=code).first() is None:
            return code


def next_sequence_timestamp(latest=None):
    """Nanosecond clock, forced strictly above the asset's latest record"""
    now = time.time_ns()
    if latest is not None and now <= latest.sequence_timestamp:
        return latest.sequence_timestamp + 1
    return now


def project_asset_location(asset):
    """
    Rewrite the asset's cached location from its latest record.

    Recomputed in full from the ledger every time. Returns the location.
    """
    db.session.flush()
    location = location_after(latest_movement(asset.id))
    asset.set_location(location)
    return location


def validate_references(location):
    """Unit and site of a site location must exist, be active and belong together"""
    if location.is_warehouse:
        return

    site_map = get_site_map()
    if location.unit_id not in site_map or location.site_id not in site_map[location.unit_id]['sites']:
        # Master data may have changed since the map was cached
        site_map = get_site_map(refresh=True)

    unit = site_map.get(location.unit_id)
    if unit is None:
        raise InvalidReference(f'Unit {location.unit_id} does not exist', unit_id=location.unit_id)
    if not unit['is_active']:
        raise InvalidReference(f'Unit {location.unit_id} is inactive', unit_id=location.unit_id)

    site_active = unit['sites'].get(location.site_id)
    if site_active is None:
        raise InvalidReference(
            f'Site {location.site_id} does not belong to unit {location.unit_id}',
            unit_id=location.unit_id,
            site_id=location.site_id
        )
    if not site_active:
        raise InvalidReference(f'Site {location.site_id} is inactive', site_id=location.site_id)


def _lock_asset(asset_id):
    asset = Asset.query.filter_by(id=asset_id).with_for_update().first()
    if asset is None:
        raise NotFound(f'Asset {asset_id} not found', asset_id=asset_id)
    return asset


def _asset_id_for(code):
    asset_id = db.session.query(MovementRecord.asset_id).filter_by(code=code).scalar()
    if asset_id is None:
        raise NotFound(f'Movement {code} not found', code=code)
    return asset_id


def _ledger_settings():
    return {
        'today': business_today(),
        'max_history_years': current_app.config.get('LEDGER_MAX_HISTORY_YEARS', 10),
    }


# Mutations

@retry_on_storage_fault
def create_movement(data, actor=None, ip_address=None):
    """
    Append a movement to the end of an asset's chain.

    ``data`` holds the validated payload: ``asset_id``, ``direction``,
    ``source_unit_id``, target fields, ``condition``, ``business_date``,
    ``notes`` and ``processed_by``.
    """
    asset_id = data.get('asset_id')
    if asset_id is None:
        raise InvalidPayload('asset_id is required', field='asset_id')

    with asset_locks.hold(asset_id):
        with ledger_transaction():
            asset = _lock_asset(asset_id)
            latest = latest_movement(asset.id)
            before = location_after(latest)
            direction = data.get('direction')

            check_direction(
                direction, before,
                declared_source_unit=data.get('source_unit_id'),
                previous_code=latest.code if latest else None
            )

            target = target_for(direction, Location(data.get('target_unit_id'), data.get('target_site_id')))
            validate_references(target)

            settings = _ledger_settings()
            business_date = data.get('business_date') or settings['today']
            validate_business_date(
                business_date, asset.registration_date,
                previous=latest.snapshot() if latest else None,
                following=None,
                today=settings['today'],
                max_history_years=settings['max_history_years']
            )

            check_conflicts(target, before)

            source = source_for(direction, before)
            record = MovementRecord(
                code=generate_code(),
                asset_id=asset.id,
                direction=direction,
                source_unit_id=source.unit_id,
                source_site_id=source.site_id,
                target_unit_id=target.unit_id,
                target_site_id=target.site_id,
                condition_snapshot=data.get('condition') or asset.condition,
                business_date=business_date,
                sequence_timestamp=next_sequence_timestamp(latest),
                notes=data.get('notes'),
                processed_by=data.get('processed_by') or actor
            )
            db.session.add(record)
            db.session.flush()

            ActivityLog.log_activity(
                ACTION_CREATE, 'movements',
                record_code=record.code,
                asset_id=asset.id,
                new_data=record.to_dict(),
                actor=actor,
                ip_address=ip_address
            )
            location = project_asset_location(asset)

    logger.info(f'Movement {record.code} created for asset {asset_id}: {direction}, asset now at {location}')
    return record


@retry_on_storage_fault
def edit_movement(code, changes, actor=None, ip_address=None):
    """
    Apply a partial edit to a movement anywhere in its chain.

    Only keys present in ``changes`` are edited. An explicit ``None`` target
    means the warehouse. The successor is realigned when the edit moves
    where this record ends.
    """
    asset_id = _asset_id_for(code)

    with asset_locks.hold(asset_id):
        with ledger_transaction():
            asset = _lock_asset(asset_id)
            chain = load_chain(asset.id)
            records = {record.code: record for record in chain}
            if code not in records:
                raise NotFound(f'Movement {code} not found', code=code)

            record = records[code]
            current = record.snapshot()
            previous, following = neighbours([r.snapshot() for r in chain], code)
            before = location_after(previous)

            direction = changes.get('direction', current.direction)
            structural = 'direction' in changes or any(field in changes for field in TARGET_FIELDS)

            if 'direction' in changes or 'source_unit_id' in changes:
                kwargs = {}
                if 'source_unit_id' in changes:
                    kwargs['declared_source_unit'] = changes['source_unit_id']
                check_direction(
                    direction, before,
                    previous_code=previous.code if previous else None,
                    **kwargs
                )

            requested_target = Location(
                changes.get('target_unit_id', current.target_unit_id),
                changes.get('target_site_id', current.target_site_id)
            )
            target = target_for(direction, requested_target)
            if target != current.target:
                validate_references(target)

            source = source_for(direction, before)
            new_fields = {
                'direction': direction,
                'source_unit_id': source.unit_id,
                'source_site_id': source.site_id,
                'target_unit_id': target.unit_id,
                'target_site_id': target.site_id,
            }

            new_date = changes.get('business_date')
            if new_date is not None and new_date != current.business_date:
                settings = _ledger_settings()
                validate_business_date(
                    new_date, asset.registration_date,
                    previous=previous,
                    following=following,
                    today=settings['today'],
                    max_history_years=settings['max_history_years']
                )
                new_fields['business_date'] = new_date

            if structural:
                check_conflicts(target, before, following)

            updated, successor_update = cascade(current, new_fields, following)

            descriptive = {}
            for key, column in DESCRIPTIVE_FIELDS.items():
                if key not in changes or changes[key] == getattr(record, column):
                    continue
                if key == 'condition' and not changes[key]:
                    continue
                descriptive[column] = changes[key]

            if updated == current and not descriptive and successor_update is None:
                logger.info(f'Movement {code} edit changed nothing')
                return record

            old_data = record.to_dict()
            record.apply_snapshot(updated)
            for column, value in descriptive.items():
                setattr(record, column, value)
            db.session.flush()
            ActivityLog.log_activity(
                ACTION_UPDATE, 'movements',
                record_code=record.code,
                asset_id=asset.id,
                old_data=old_data,
                new_data=record.to_dict(),
                actor=actor,
                ip_address=ip_address
            )

            if successor_update is not None:
                successor = records[successor_update.code]
                old_successor = successor.to_dict()
                successor.apply_snapshot(successor_update)
                db.session.flush()
                ActivityLog.log_activity(
                    ACTION_CASCADE, 'movements',
                    record_code=successor.code,
                    asset_id=asset.id,
                    old_data=old_successor,
                    new_data=successor.to_dict(),
                    actor=actor,
                    ip_address=ip_address
                )

            location = project_asset_location(asset)

    if successor_update is not None:
        logger.info(f'Movement {code} edited, cascaded into {successor_update.code}; asset {asset_id} now at {location}')
    else:
        logger.info(f'Movement {code} edited; asset {asset_id} now at {location}')
    return record


@retry_on_storage_fault
def delete_movement(code, actor=None, ip_address=None):
    """
    Delete the latest movement of an asset.

    Returns the asset's location after the deletion.
    """
    asset_id = _asset_id_for(code)

    with asset_locks.hold(asset_id):
        with ledger_transaction():
            asset = _lock_asset(asset_id)
            chain = load_chain(asset.id)
            snapshots = [record.snapshot() for record in chain]
            try:
                _, following = neighbours(snapshots, code)
            except KeyError:
                raise NotFound(f'Movement {code} not found', code=code)

            if following is not None:
                raise NotLastRecord(
                    next_code=following.code,
                    next_date=following.business_date.isoformat(),
                    next_direction=following.direction,
                    latest_code=snapshots[-1].code
                )

            record = chain[-1]
            old_data = record.to_dict()
            db.session.delete(record)
            ActivityLog.log_activity(
                ACTION_DELETE, 'movements',
                record_code=code,
                asset_id=asset.id,
                old_data=old_data,
                actor=actor,
                ip_address=ip_address
            )
            location = project_asset_location(asset)

    logger.info(f'Movement {code} deleted; asset {asset_id} now at {location}')
    return location


@retry_on_storage_fault
def register_asset(data, actor=None, ip_address=None):
    """Register an asset in the warehouse with no movements"""
    serial_number = data.get('serial_number')
    with ledger_transaction():
        if Asset.query.filter_by(serial_number=serial_number).first() is not None:
            raise InvalidPayload(
                f'Serial number {serial_number} already registered',
                field='serial_number'
            )

        asset = Asset(
            serial_number=serial_number,
            name=data.get('name'),
            registration_date=data.get('registration_date') or business_today(),
            condition=data.get('condition') or DEFAULT_CONDITION,
            description=data.get('description')
        )
        asset.set_location(location_after(None))
        db.session.add(asset)
        db.session.flush()

        ActivityLog.log_activity(
            ACTION_CREATE, 'assets',
            asset_id=asset.id,
            new_data=asset.to_dict(),
            actor=actor,
            ip_address=ip_address
        )

    logger.info(f'Asset {asset.serial_number} registered with id {asset.id}')
    return asset
