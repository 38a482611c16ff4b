"""
Timeline Validator.

Neighbours are always taken by sequence timestamp, never by business date,
so editing a date can not reorder the chain. Same-day movements are allowed.
"""
from asset_ledger.exceptions import (
    FutureDate, PredatesRegistration, PrecedesPrevious, FollowsNext, TooOld
)
from asset_ledger.utils.datetime_helper import years_before


def validate_business_date(new_date, registration_date, previous, following, today,
                           max_history_years=10):
    """
    Check ``new_date`` for a movement whose chain neighbours are
    ``previous`` and ``following`` (snapshots or ``None``).

    Raises the first failing rule in this order: future, before
    registration, before previous, after next, older than the history window.
    """
    if new_date > today:
        raise FutureDate(
            provided_date=new_date.isoformat(),
            max_allowed=today.isoformat()
        )

    if registration_date is not None and new_date < registration_date:
        raise PredatesRegistration(
            provided_date=new_date.isoformat(),
            registration_date=registration_date.isoformat()
        )

    if previous is not None and new_date < previous.business_date:
        raise PrecedesPrevious(
            provided_date=new_date.isoformat(),
            previous_code=previous.code,
            previous_date=previous.business_date.isoformat(),
            previous_direction=previous.direction
        )

    if following is not None and new_date > following.business_date:
        raise FollowsNext(
            provided_date=new_date.isoformat(),
            next_code=following.code,
            next_date=following.business_date.isoformat(),
            next_direction=following.direction
        )

    min_date = years_before(today, max_history_years)
    if new_date < min_date:
        raise TooOld(
            provided_date=new_date.isoformat(),
            min_allowed=min_date.isoformat()
        )
