"""
Conflict Checker - rejects movements that would not actually move anything.
"""
from asset_ledger.exceptions import NoOpMovement, TargetConflict


def check_conflicts(target, before, following=None):
    """
    ``target`` is the resulting effective target of the movement, ``before``
    its derived-before location and ``following`` the next snapshot in the
    chain, if any.

    A warehouse target that collides with a warehouse-bound successor is
    left to the cascade, which reports it as a cascade conflict.
    """
    if target == before:
        raise NoOpMovement(
            source_location=before.to_dict(),
            target_location=target.to_dict()
        )

    if following is not None and not target.is_warehouse and target == following.effective_target:
        raise TargetConflict(
            next_code=following.code,
            next_target_location=following.effective_target.to_dict()
        )
