"""
MovementRecord Model - one entry of an asset's movement ledger
"""
from sqlalchemy.orm import object_session

from asset_ledger import db
from asset_ledger.constants import DIRECTION_LABELS, DEFAULT_CONDITION
from asset_ledger.models.base import BaseModel
from asset_ledger.services.chain import MovementSnapshot
from asset_ledger.services.locations import Location, location_after


class MovementRecord(BaseModel):
    """Relocation of a single asset between the warehouse and sites"""
    __tablename__ = 'movements'

    code = db.Column(db.String(20), unique=True, nullable=False, index=True)  # Immutable
    asset_id = db.Column(db.Integer, db.ForeignKey('assets.id'), nullable=False, index=True)
    direction = db.Column(db.String(30), nullable=False)  # warehouse_to_site | site_to_site | site_to_warehouse

    # Origin, NULL unit and site means the warehouse
    source_unit_id = db.Column(db.Integer, db.ForeignKey('units.id'), nullable=True)
    source_site_id = db.Column(db.Integer, db.ForeignKey('sites.id'), nullable=True)

    # Destination, NULL unit and site means the warehouse
    target_unit_id = db.Column(db.Integer, db.ForeignKey('units.id'), nullable=True)
    target_site_id = db.Column(db.Integer, db.ForeignKey('sites.id'), nullable=True)

    condition_snapshot = db.Column(db.String(50), default=DEFAULT_CONDITION, nullable=False)
    business_date = db.Column(db.Date, nullable=False)  # Editable, when the move actually happened
    sequence_timestamp = db.Column(db.BigInteger, nullable=False)  # Immutable ordering key
    notes = db.Column(db.Text)
    processed_by = db.Column(db.String(100))

    # Relationships
    asset = db.relationship('Asset', back_populates='movements')
    source_unit = db.relationship('Unit', foreign_keys=[source_unit_id])
    source_site = db.relationship('Site', foreign_keys=[source_site_id])
    target_unit = db.relationship('Unit', foreign_keys=[target_unit_id])
    target_site = db.relationship('Site', foreign_keys=[target_site_id])

    __table_args__ = (
        db.UniqueConstraint('asset_id', 'sequence_timestamp', name='unique_asset_sequence'),
    )

    @property
    def source(self):
        return Location(self.source_unit_id, self.source_site_id)

    @property
    def target(self):
        return Location(self.target_unit_id, self.target_site_id)

    @property
    def effective_target(self):
        """Where the asset is after this movement"""
        return location_after(self)

    @property
    def direction_display(self):
        return DIRECTION_LABELS.get(self.direction, self.direction)

    def snapshot(self):
        return MovementSnapshot.from_record(self)

    def apply_snapshot(self, snapshot):
        """Copy the editable chain fields of ``snapshot`` onto this record"""
        self.direction = snapshot.direction
        self.source_unit_id = snapshot.source_unit_id
        self.source_site_id = snapshot.source_site_id
        self.target_unit_id = snapshot.target_unit_id
        self.target_site_id = snapshot.target_site_id
        self.business_date = snapshot.business_date

        # Unit/site relationships loaded earlier still point at the old ids
        session = object_session(self)
        if session is not None:
            session.expire(self, ['source_unit', 'source_site', 'target_unit', 'target_site'])

    def to_dict(self):
        result = super().to_dict()
        result['direction_display'] = self.direction_display
        result['source_unit_name'] = self.source_unit.name if self.source_unit else None
        result['source_site_name'] = self.source_site.name if self.source_site else None
        result['target_unit_name'] = self.target_unit.name if self.target_unit else None
        result['target_site_name'] = self.target_site.name if self.target_site else None
        return result

    def __repr__(self):
        return f'<MovementRecord {self.code} {self.direction} seq:{self.sequence_timestamp}>'
