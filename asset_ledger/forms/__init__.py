from asset_ledger.forms.movement_forms import (
    MovementCreateForm,
    MovementEditForm,
    AssetForm,
    load_payload
)

__all__ = [
    'MovementCreateForm',
    'MovementEditForm',
    'AssetForm',
    'load_payload'
]
