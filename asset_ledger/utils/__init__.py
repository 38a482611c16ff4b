from asset_ledger.utils.decorators import retry_on_storage_fault, json_payload_required

__all__ = [
    'retry_on_storage_fault',
    'json_payload_required'
]
