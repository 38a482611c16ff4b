"""
Tests for the database-free rule modules
"""
from datetime import date

import pytest

from asset_ledger.constants import WAREHOUSE_TO_SITE, SITE_TO_SITE, SITE_TO_WAREHOUSE
from asset_ledger.exceptions import (
    DirectionViolation, SourceMismatch, TargetRequired,
    FutureDate, PredatesRegistration, PrecedesPrevious, FollowsNext, TooOld,
    NoOpMovement, TargetConflict, CascadeConflict, NotLastRecord, StorageUnavailable
)
from asset_ledger.services.cascade import cascade, realign_successor
from asset_ledger.services.chain import MovementSnapshot, neighbours
from asset_ledger.services.conflicts import check_conflicts
from asset_ledger.services.direction_rules import (
    allowed_directions, check_direction, source_for, target_for, direction_between
)
from asset_ledger.services.locations import Location, WAREHOUSE, location_after, resolve_location
from asset_ledger.services.timeline import validate_business_date
from asset_ledger.utils.datetime_helper import years_before, parse_business_date

A = Location(1, 10)
A2 = Location(1, 11)
B = Location(2, 20)
C = Location(3, 30)

TODAY = date(2025, 6, 15)


def snap(code, direction, source=WAREHOUSE, target=WAREHOUSE, day=date(2025, 3, 1), seq=1):
    return MovementSnapshot(
        code, direction,
        source.unit_id, source.site_id,
        target.unit_id, target.site_id,
        day, seq
    )


# Locations

def test_no_movement_means_warehouse():
    assert location_after(None) == WAREHOUSE
    assert resolve_location([]) == WAREHOUSE
    assert WAREHOUSE.is_warehouse
    assert WAREHOUSE.to_dict()['location_class'] == 'warehouse'


def test_site_to_warehouse_ends_in_warehouse_whatever_the_target_fields():
    record = snap('R1', SITE_TO_WAREHOUSE, source=A, target=B)
    assert location_after(record) == WAREHOUSE


def test_resolve_location_uses_last_record():
    chain = [
        snap('R1', WAREHOUSE_TO_SITE, target=A, seq=1),
        snap('R2', SITE_TO_SITE, source=A, target=B, seq=2),
    ]
    assert resolve_location(chain) == B
    assert resolve_location(chain).to_dict() == {'location_class': 'site', 'unit_id': 2, 'site_id': 20}


def test_neighbours_by_position():
    chain = [snap('R1', WAREHOUSE_TO_SITE, seq=1), snap('R2', SITE_TO_SITE, seq=2), snap('R3', SITE_TO_SITE, seq=3)]
    previous, following = neighbours(chain, 'R2')
    assert previous.code == 'R1'
    assert following.code == 'R3'
    assert neighbours(chain, 'R1')[0] is None
    assert neighbours(chain, 'R3')[1] is None
    with pytest.raises(KeyError):
        neighbours(chain, 'NOPE')


# Direction rules

def test_warehouse_only_admits_warehouse_to_site():
    assert allowed_directions(WAREHOUSE) == (WAREHOUSE_TO_SITE,)
    assert allowed_directions(A) == (SITE_TO_SITE, SITE_TO_WAREHOUSE)


def test_first_movement_must_leave_the_warehouse():
    with pytest.raises(DirectionViolation) as exc:
        check_direction(SITE_TO_SITE, WAREHOUSE)

    assert exc.value.details['attempted_direction'] == SITE_TO_SITE
    assert exc.value.details['allowed_directions'] == [WAREHOUSE_TO_SITE]
    assert exc.value.details['previous_code'] is None
    assert 'first movement' in exc.value.message


def test_asset_at_site_cannot_leave_warehouse_again():
    with pytest.raises(DirectionViolation) as exc:
        check_direction(WAREHOUSE_TO_SITE, A, previous_code='R1')

    assert exc.value.details['previous_code'] == 'R1'
    assert exc.value.details['before_location']['unit_id'] == 1


def test_unknown_direction_is_a_violation():
    with pytest.raises(DirectionViolation):
        check_direction('teleport', A)


def test_source_unit_must_match_location_before():
    check_direction(SITE_TO_SITE, A, declared_source_unit=1)

    with pytest.raises(SourceMismatch) as exc:
        check_direction(SITE_TO_WAREHOUSE, A, declared_source_unit=2, previous_code='R1')
    assert exc.value.details['current_unit_id'] == 1
    assert exc.value.details['provided_source_unit_id'] == 2

    with pytest.raises(SourceMismatch):
        check_direction(SITE_TO_SITE, A, declared_source_unit=None)


def test_source_unit_ignored_for_warehouse_to_site():
    check_direction(WAREHOUSE_TO_SITE, WAREHOUSE, declared_source_unit=5)


def test_source_and_target_normalisation():
    assert source_for(WAREHOUSE_TO_SITE, A) == WAREHOUSE
    assert source_for(SITE_TO_SITE, A) == A
    assert target_for(SITE_TO_WAREHOUSE, B) == WAREHOUSE
    assert target_for(SITE_TO_SITE, B) == B

    with pytest.raises(TargetRequired):
        target_for(WAREHOUSE_TO_SITE, WAREHOUSE)
    with pytest.raises(TargetRequired):
        target_for(SITE_TO_SITE, Location(2, None))


def test_direction_between():
    assert direction_between(WAREHOUSE, A) == WAREHOUSE_TO_SITE
    assert direction_between(A, B) == SITE_TO_SITE
    assert direction_between(A, WAREHOUSE) == SITE_TO_WAREHOUSE


# Timeline

def test_future_date_rejected_first():
    following = snap('R3', SITE_TO_SITE, day=date(2025, 6, 1))
    with pytest.raises(FutureDate) as exc:
        validate_business_date(date(2025, 6, 16), date(2024, 1, 1), None, following, TODAY)
    assert exc.value.details['max_allowed'] == '2025-06-15'


def test_date_before_registration():
    with pytest.raises(PredatesRegistration) as exc:
        validate_business_date(date(2023, 12, 31), date(2024, 1, 1), None, None, TODAY)
    assert exc.value.details['registration_date'] == '2024-01-01'


def test_date_before_previous_record():
    previous = snap('R1', WAREHOUSE_TO_SITE, day=date(2025, 3, 10))
    with pytest.raises(PrecedesPrevious) as exc:
        validate_business_date(date(2025, 3, 9), date(2024, 1, 1), previous, None, TODAY)
    assert exc.value.details['previous_code'] == 'R1'
    assert exc.value.details['previous_date'] == '2025-03-10'


def test_date_after_next_record():
    following = snap('R3', SITE_TO_SITE, day=date(2025, 3, 10))
    with pytest.raises(FollowsNext) as exc:
        validate_business_date(date(2025, 3, 11), date(2024, 1, 1), None, following, TODAY)
    assert exc.value.details['next_code'] == 'R3'


def test_date_older_than_history_window():
    with pytest.raises(TooOld) as exc:
        validate_business_date(date(2014, 1, 1), date(2000, 1, 1), None, None, TODAY)
    assert exc.value.details['min_allowed'] == '2015-06-15'


def test_history_window_is_configurable():
    validate_business_date(date(2014, 1, 1), date(2000, 1, 1), None, None, TODAY, max_history_years=20)


def test_same_day_neighbours_allowed():
    day = date(2025, 3, 10)
    previous = snap('R1', WAREHOUSE_TO_SITE, day=day)
    following = snap('R3', SITE_TO_SITE, day=day)
    validate_business_date(day, date(2024, 1, 1), previous, following, TODAY)


def test_today_is_allowed():
    validate_business_date(TODAY, date(2024, 1, 1), None, None, TODAY)


def test_years_before_leap_day():
    assert years_before(date(2024, 2, 29), 10) == date(2014, 2, 28)
    assert years_before(date(2025, 6, 15), 10) == date(2015, 6, 15)


def test_parse_business_date_truncates_datetime():
    assert parse_business_date('2025-03-10T14:30:00') == date(2025, 3, 10)
    assert parse_business_date('2025-03-10') == date(2025, 3, 10)
    assert parse_business_date('') is None


# Conflicts

def test_noop_movement():
    with pytest.raises(NoOpMovement):
        check_conflicts(A, A)
    with pytest.raises(NoOpMovement):
        check_conflicts(WAREHOUSE, WAREHOUSE)


def test_other_site_in_same_unit_is_a_move():
    check_conflicts(A2, A)


def test_target_equal_to_next_target():
    following = snap('R3', SITE_TO_SITE, source=A, target=B)
    with pytest.raises(TargetConflict) as exc:
        check_conflicts(B, WAREHOUSE, following)
    assert exc.value.details['next_code'] == 'R3'


def test_warehouse_target_left_to_cascade():
    following = snap('R3', SITE_TO_WAREHOUSE, source=A)
    check_conflicts(WAREHOUSE, A, following)


# Cascade

def test_cascade_rewrites_successor_source():
    r1 = snap('R1', WAREHOUSE_TO_SITE, target=A, seq=1)
    r2 = snap('R2', SITE_TO_SITE, source=A, target=B, seq=2)

    updated, successor = cascade(r1, {'target_unit_id': 3, 'target_site_id': 30}, r2)

    assert updated.target == C
    assert successor.source == C
    assert successor.direction == SITE_TO_SITE
    assert successor.target == B
    assert successor.business_date == r2.business_date


def test_cascade_into_warehouse_bound_successor_is_conflict():
    r1 = snap('R1', SITE_TO_SITE, source=A, target=B, seq=2)
    r2 = snap('R2', SITE_TO_WAREHOUSE, source=B, seq=3)

    with pytest.raises(CascadeConflict) as exc:
        cascade(r1, {'direction': SITE_TO_WAREHOUSE, 'target_unit_id': None, 'target_site_id': None}, r2)

    assert exc.value.details['edited_code'] == 'R1'
    assert exc.value.details['next_code'] == 'R2'
    assert exc.value.http_status == 409


def test_cascade_successor_becomes_warehouse_to_site():
    r1 = snap('R1', SITE_TO_SITE, source=A, target=B, seq=2)
    r2 = snap('R2', SITE_TO_SITE, source=B, target=C, seq=3)

    _, successor = cascade(r1, {'direction': SITE_TO_WAREHOUSE, 'target_unit_id': None, 'target_site_id': None}, r2)

    assert successor.source == WAREHOUSE
    assert successor.direction == WAREHOUSE_TO_SITE
    assert successor.target == C


def test_cascade_successor_back_to_site_origin():
    r1 = snap('R1', SITE_TO_WAREHOUSE, source=A, seq=2)
    r2 = snap('R2', WAREHOUSE_TO_SITE, target=C, seq=3)

    _, successor = cascade(r1, {'direction': SITE_TO_SITE, 'target_unit_id': 2, 'target_site_id': 20}, r2)

    assert successor.source == B
    assert successor.direction == SITE_TO_SITE


def test_cascade_keeps_site_to_warehouse_successor():
    r1 = snap('R1', WAREHOUSE_TO_SITE, target=A, seq=1)
    r2 = snap('R2', SITE_TO_WAREHOUSE, source=A, seq=2)

    _, successor = cascade(r1, {'target_unit_id': 2, 'target_site_id': 20}, r2)

    assert successor.source == B
    assert successor.direction == SITE_TO_WAREHOUSE


def test_cascade_successor_would_become_noop():
    r1 = snap('R1', WAREHOUSE_TO_SITE, target=A, seq=1)
    r2 = snap('R2', SITE_TO_SITE, source=A, target=B, seq=2)

    with pytest.raises(TargetConflict):
        cascade(r1, {'target_unit_id': 2, 'target_site_id': 20}, r2)


def test_cascade_is_idempotent_on_consistent_chain():
    r1 = snap('R1', WAREHOUSE_TO_SITE, target=A, seq=1)
    r2 = snap('R2', SITE_TO_SITE, source=A, target=B, seq=2)

    updated, successor = cascade(r1, {'target_unit_id': 1, 'target_site_id': 10}, r2)
    assert updated == r1
    assert successor is None

    assert realign_successor(r2, A) is None


def test_cascade_ignores_date_only_edits():
    r1 = snap('R1', WAREHOUSE_TO_SITE, target=A, seq=1)
    r2 = snap('R2', SITE_TO_SITE, source=A, target=B, seq=2)

    updated, successor = cascade(r1, {'business_date': date(2025, 2, 1)}, r2)
    assert updated.business_date == date(2025, 2, 1)
    assert successor is None


def test_cascade_without_successor():
    r1 = snap('R1', WAREHOUSE_TO_SITE, target=A)
    updated, successor = cascade(r1, {'target_unit_id': 2, 'target_site_id': 20}, None)
    assert updated.target == B
    assert successor is None


# Error envelope

def test_error_envelope():
    error = NotLastRecord(next_code='R2')
    assert error.to_dict() == {
        'success': False,
        'error': 'NotLastRecord',
        'message': 'Only the latest movement of an asset can be deleted',
        'details': {'next_code': 'R2'},
    }
    assert error.http_status == 409
    assert StorageUnavailable().http_status == 503
    assert FutureDate().http_status == 400
