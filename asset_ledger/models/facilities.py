from asset_ledger import db
from asset_ledger.models.base import BaseModel


class Unit(BaseModel):
    """Organizational unit that can hold assets (department/agency)"""
    __tablename__ = 'units'

    code = db.Column(db.String(50), unique=True, nullable=False, comment='Unit code')
    name = db.Column(db.String(200), nullable=False, comment='Unit name')
    address = db.Column(db.Text)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # Relationships
    sites = db.relationship('Site', back_populates='unit', lazy='dynamic')

    def __repr__(self):
        return f'<Unit {self.code} - {self.name}>'


class Site(BaseModel):
    """Specific location (room/point) within a unit"""
    __tablename__ = 'sites'

    unit_id = db.Column(db.Integer, db.ForeignKey('units.id'), nullable=False)
    name = db.Column(db.String(200), nullable=False, comment='Site/room name')
    description = db.Column(db.Text)
    pic = db.Column(db.String(100))  # Person in charge
    contact = db.Column(db.String(100))
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # Relationships
    unit = db.relationship('Unit', back_populates='sites')

    __table_args__ = (
        db.UniqueConstraint('unit_id', 'name', name='unique_unit_site_name'),
    )

    def __repr__(self):
        return f'<Site {self.name}>'
