"""
Location Resolver.

A location is a (unit, site) pair; both ``None`` is the warehouse. Where an
asset sits after a movement is a pure function of that movement, and the
asset's current location is that function applied to its latest movement by
sequence timestamp (or the warehouse when it has none).
"""
from collections import namedtuple

from asset_ledger.constants import (
    SITE_TO_WAREHOUSE, LOCATION_WAREHOUSE, LOCATION_SITE, WAREHOUSE_LABEL
)


class Location(namedtuple('Location', ['unit_id', 'site_id'])):
    __slots__ = ()

    @property
    def is_warehouse(self):
        return self.unit_id is None

    @property
    def location_class(self):
        return LOCATION_WAREHOUSE if self.is_warehouse else LOCATION_SITE

    def to_dict(self):
        return {
            'location_class': self.location_class,
            'unit_id': self.unit_id,
            'site_id': self.site_id,
        }

    def __str__(self):
        if self.is_warehouse:
            return WAREHOUSE_LABEL
        return f'unit {self.unit_id} / site {self.site_id}'


WAREHOUSE = Location(None, None)


def location_after(record):
    """
    Where the asset is once ``record`` has happened.

    ``record`` is anything with ``direction``/``target_unit_id``/
    ``target_site_id`` (a MovementRecord or a MovementSnapshot). ``None``
    means no movement yet.
    """
    if record is None or record.direction == SITE_TO_WAREHOUSE:
        return WAREHOUSE
    return Location(record.target_unit_id, record.target_site_id)


def resolve_location(records):
    """Current location from a chain ordered by sequence timestamp (ascending)"""
    latest = records[-1] if records else None
    return location_after(latest)
