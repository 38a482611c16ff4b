from asset_ledger.models.base import BaseModel
from asset_ledger.models.facilities import Unit, Site
from asset_ledger.models.asset import Asset
from asset_ledger.models.movement import MovementRecord
from asset_ledger.models.logging import ActivityLog

__all__ = [
    'BaseModel',
    'Unit', 'Site',
    'Asset',
    'MovementRecord',
    'ActivityLog'
]
