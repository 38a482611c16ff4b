"""
Main routes - health check and ledger constants
"""
from flask import Blueprint, jsonify, current_app
from sqlalchemy import text

from asset_ledger import db
from asset_ledger.constants import DIRECTIONS, DIRECTION_LABELS, CONDITIONS, WAREHOUSE_LABEL
from asset_ledger.exceptions import StorageUnavailable
from asset_ledger.utils.datetime_helper import get_wib_now

bp = Blueprint('main', __name__)


@bp.route('/health')
def health():
    """Liveness plus a database round trip"""
    try:
        db.session.execute(text('SELECT 1'))
    except Exception as e:
        db.session.rollback()
        raise StorageUnavailable(reason=e.__class__.__name__) from e

    return jsonify({
        'success': True,
        'status': 'ok',
        'app': current_app.config.get('APP_NAME'),
        'version': current_app.config.get('APP_VERSION'),
        'time': get_wib_now().isoformat()
    })


@bp.route('/api/constants')
def constants():
    """Directions, conditions and ledger limits for API clients"""
    return jsonify({
        'success': True,
        'directions': [
            {'value': direction, 'label': DIRECTION_LABELS[direction]}
            for direction in DIRECTIONS
        ],
        'conditions': list(CONDITIONS),
        'warehouse_label': WAREHOUSE_LABEL,
        'max_history_years': current_app.config.get('LEDGER_MAX_HISTORY_YEARS'),
        'code_length': current_app.config.get('LEDGER_CODE_LENGTH')
    })
