"""
Cascade Engine.

When an edit changes where a movement ends, the immediately following
movement must start there instead. Only one hop is needed: the successor's
target never changes, so every record after it is still continuous.
"""
from asset_ledger.exceptions import CascadeConflict, TargetConflict
from asset_ledger.services.direction_rules import direction_between

CASCADE_TRIGGERS = frozenset(['direction', 'target_unit_id', 'target_site_id'])


def realign_successor(successor, new_source, edited_code=None):
    """
    ``successor`` rewritten so it starts at ``new_source``, with its
    direction re-derived from the new source and its own target.

    Returns ``None`` when the successor already matches.
    """
    target = successor.effective_target

    if new_source.is_warehouse and target.is_warehouse:
        raise CascadeConflict(
            edited_code=edited_code,
            next_code=successor.code,
            next_direction=successor.direction,
            next_date=successor.business_date.isoformat() if successor.business_date else None,
            next_target_location=target.to_dict()
        )

    if not new_source.is_warehouse and new_source == target:
        raise TargetConflict(
            'Next movement would end where it starts',
            edited_code=edited_code,
            next_code=successor.code,
            next_target_location=target.to_dict()
        )

    updated = successor.with_source(new_source)._replace(
        direction=direction_between(new_source, target)
    )
    if updated == successor:
        return None
    return updated


def cascade(record, new_fields, successor):
    """
    Apply ``new_fields`` to ``record`` and carry the change into
    ``successor``.

    Both records are ``MovementSnapshot`` values. Returns
    ``(updated_record, updated_successor)`` where ``updated_successor`` is
    ``None`` when there is no successor or it needs no write.
    """
    updated = record._replace(**new_fields)

    if successor is None:
        return updated, None

    if not CASCADE_TRIGGERS.intersection(updated.changed_fields(record)):
        return updated, None

    return updated, realign_successor(successor, updated.effective_target, edited_code=record.code)
