"""
Plain, database-free view of movement records.

The rule modules (direction, timeline, cascade, conflicts) only work on
``MovementSnapshot`` values so they can be exercised without a session.
"""
from collections import namedtuple

from asset_ledger.services.locations import Location, location_after


_FIELDS = [
    'code', 'direction',
    'source_unit_id', 'source_site_id',
    'target_unit_id', 'target_site_id',
    'business_date', 'sequence_timestamp',
]


class MovementSnapshot(namedtuple('MovementSnapshot', _FIELDS)):
    __slots__ = ()

    @classmethod
    def from_record(cls, record):
        if record is None:
            return None
        return cls(**{field: getattr(record, field) for field in _FIELDS})

    @property
    def source(self):
        return Location(self.source_unit_id, self.source_site_id)

    @property
    def target(self):
        return Location(self.target_unit_id, self.target_site_id)

    @property
    def effective_target(self):
        return location_after(self)

    def with_source(self, location):
        return self._replace(source_unit_id=location.unit_id, source_site_id=location.site_id)

    def with_target(self, location):
        return self._replace(target_unit_id=location.unit_id, target_site_id=location.site_id)

    def changed_fields(self, other):
        """Names of fields whose value differs from ``other``"""
        return [field for field in _FIELDS if getattr(self, field) != getattr(other, field)]


def neighbours(chain, code):
    """
    (previous, following) of the record ``code`` in a chain ordered by
    sequence timestamp ascending. Either side may be ``None``.
    """
    for index, record in enumerate(chain):
        if record.code == code:
            previous = chain[index - 1] if index > 0 else None
            following = chain[index + 1] if index + 1 < len(chain) else None
            return previous, following
    raise KeyError(code)
