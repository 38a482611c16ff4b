import logging
from functools import wraps
from flask import current_app, request

from asset_ledger.exceptions import StorageUnavailable, InvalidPayload

logger = logging.getLogger(__name__)


def retry_on_storage_fault(f):
    """
    Re-run a ledger mutation when the store was unavailable.

    Only ``StorageUnavailable`` is retried (``LEDGER_STORAGE_RETRIES`` times);
    validation errors are caller mistakes and propagate immediately.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        retries = current_app.config.get('LEDGER_STORAGE_RETRIES', 0)
        attempt = 0
        while True:
            try:
                return f(*args, **kwargs)
            except StorageUnavailable:
                if attempt >= retries:
                    raise
                attempt += 1
                logger.warning(f'{f.__name__}: storage unavailable, retry {attempt}/{retries}')
    return decorated_function


def json_payload_required(f):
    """Decorator to require a JSON object body"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            raise InvalidPayload('Request body must be a JSON object')
        return f(*args, **kwargs)
    return decorated_function
