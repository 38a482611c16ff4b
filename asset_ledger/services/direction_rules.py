"""
Direction Rule Engine.

State machine over where the asset was *before* a movement:

    Warehouse          -> warehouse_to_site
    Site(unit, site)   -> site_to_site | site_to_warehouse

An asset with no earlier movement is in the warehouse.
"""
from asset_ledger.constants import (
    WAREHOUSE_TO_SITE, SITE_TO_SITE, SITE_TO_WAREHOUSE, DIRECTIONS
)
from asset_ledger.exceptions import DirectionViolation, SourceMismatch, TargetRequired
from asset_ledger.services.locations import WAREHOUSE

_UNSET = object()


def allowed_directions(before):
    """Directions admissible from the derived-before location"""
    if before.is_warehouse:
        return (WAREHOUSE_TO_SITE,)
    return (SITE_TO_SITE, SITE_TO_WAREHOUSE)


def check_direction(direction, before, declared_source_unit=_UNSET, previous_code=None):
    """
    Reject ``direction`` when it cannot follow ``before``.

    ``declared_source_unit`` is the source unit the caller claims; leave it
    unset to skip the source check (edits that do not touch the source).
    Passing ``None`` for a site-origin direction is a mismatch.
    """
    if direction not in DIRECTIONS:
        raise DirectionViolation(
            f'Unknown direction "{direction}"',
            attempted_direction=direction,
            allowed_directions=list(DIRECTIONS)
        )

    allowed = allowed_directions(before)
    if direction not in allowed:
        if previous_code is None and before.is_warehouse:
            message = 'The first movement of an asset must go from the warehouse to a site'
        elif before.is_warehouse:
            message = 'Asset is in the warehouse before this movement, it can only be sent to a site'
        else:
            message = 'Asset is at a site before this movement, it can only move to another site or back to the warehouse'
        raise DirectionViolation(
            message,
            attempted_direction=direction,
            before_location=before.to_dict(),
            allowed_directions=list(allowed),
            previous_code=previous_code
        )

    if direction in (SITE_TO_SITE, SITE_TO_WAREHOUSE) and declared_source_unit is not _UNSET:
        if declared_source_unit != before.unit_id:
            raise SourceMismatch(
                current_unit_id=before.unit_id,
                provided_source_unit_id=declared_source_unit,
                previous_code=previous_code
            )


def source_for(direction, before):
    """Source location a movement with ``direction`` must record"""
    if direction == WAREHOUSE_TO_SITE:
        return WAREHOUSE
    return before


def target_for(direction, target):
    """
    Target location a movement with ``direction`` must record.

    ``site_to_warehouse`` always ends in the warehouse whatever was sent;
    the other directions need a complete unit + site target.
    """
    if direction == SITE_TO_WAREHOUSE:
        return WAREHOUSE
    if target.unit_id is None or target.site_id is None:
        raise TargetRequired(
            direction=direction,
            target_unit_id=target.unit_id,
            target_site_id=target.site_id
        )
    return target


def direction_between(source, target):
    """Structurally correct direction for a source/target pair"""
    if source.is_warehouse:
        return WAREHOUSE_TO_SITE
    if target.is_warehouse:
        return SITE_TO_WAREHOUSE
    return SITE_TO_SITE
