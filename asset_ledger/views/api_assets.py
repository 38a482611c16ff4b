from flask import Blueprint, jsonify, request

from asset_ledger.forms import AssetForm, load_payload
from asset_ledger.services import ledger_service
from asset_ledger.utils.decorators import json_payload_required
from asset_ledger.utils.rate_limit_helpers import api_standard_limit, api_write_limit

bp = Blueprint('api_assets', __name__)


@bp.route('', methods=['POST'])
@api_write_limit
@json_payload_required
def api_register():
    """Register an asset; it starts in the warehouse with no movements"""
    data = load_payload(AssetForm, request.get_json())

    asset = ledger_service.register_asset(
        data,
        actor=request.headers.get('X-Actor'),
        ip_address=request.remote_addr
    )

    return jsonify({
        'success': True,
        'message': f'Asset {asset.serial_number} registered',
        'asset': asset.to_dict()
    }), 201


@bp.route('/<int:id>/location')
@api_standard_limit
def api_location(id):
    """Current location resolved from the latest movement"""
    return jsonify({
        'success': True,
        'location': ledger_service.resolve_current_location(id)
    })


@bp.route('/<int:id>/history')
@api_standard_limit
def api_history(id):
    """Movement chain of an asset in sequence order"""
    history = ledger_service.asset_history(id)
    return jsonify({
        'success': True,
        'asset_id': id,
        'total': len(history),
        'history': history
    })
