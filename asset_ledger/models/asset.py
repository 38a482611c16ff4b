from asset_ledger import db
from asset_ledger.constants import LOCATION_WAREHOUSE, DEFAULT_CONDITION
from asset_ledger.models.base import BaseModel
from asset_ledger.services.locations import Location
from asset_ledger.utils.datetime_helper import business_today


class Asset(BaseModel):
    """Physical unit of equipment tracked by the movement ledger"""
    __tablename__ = 'assets'

    serial_number = db.Column(db.String(100), unique=True, nullable=False)
    name = db.Column(db.String(200))
    registration_date = db.Column(db.Date, default=business_today, nullable=False)  # Earliest permissible movement date
    condition = db.Column(db.String(50), default=DEFAULT_CONDITION, nullable=False)  # Condition at registration, never changed by movements
    description = db.Column(db.Text)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # Cached output of the location resolver
    current_location_class = db.Column(db.String(20), default=LOCATION_WAREHOUSE, nullable=False)
    current_unit_id = db.Column(db.Integer, db.ForeignKey('units.id'), nullable=True)
    current_site_id = db.Column(db.Integer, db.ForeignKey('sites.id'), nullable=True)

    # Relationships
    current_unit = db.relationship('Unit', foreign_keys=[current_unit_id])
    current_site = db.relationship('Site', foreign_keys=[current_site_id])
    movements = db.relationship('MovementRecord', back_populates='asset', lazy='dynamic',
                                order_by='MovementRecord.sequence_timestamp')

    @property
    def cached_location(self):
        """Location as last written by the resolver"""
        return Location(self.current_unit_id, self.current_site_id)

    def set_location(self, location):
        """Overwrite the cached location fields (no commit)"""
        self.current_location_class = location.location_class
        self.current_unit_id = location.unit_id
        self.current_site_id = location.site_id

    def __repr__(self):
        return f'<Asset {self.serial_number}>'
