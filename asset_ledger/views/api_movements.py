from flask import Blueprint, jsonify, request

from asset_ledger.forms import MovementCreateForm, MovementEditForm, load_payload
from asset_ledger.services import ledger_service
from asset_ledger.utils.decorators import json_payload_required
from asset_ledger.utils.pagination_helpers import paginated_response
from asset_ledger.utils.rate_limit_helpers import api_standard_limit, api_write_limit

bp = Blueprint('api_movements', __name__)


def _actor():
    return request.headers.get('X-Actor')


@bp.route('', methods=['GET'])
@api_standard_limit
def api_list():
    """List movements by sequence timestamp, latest first by default"""
    asset_id = request.args.get('asset_id', type=int)
    order = request.args.get('order', 'desc')

    query = ledger_service.list_movements_query(asset_id=asset_id, order=order)

    response = paginated_response(query)
    response['order'] = 'asc' if order == 'asc' else 'desc'
    return jsonify(response)


@bp.route('', methods=['POST'])
@api_write_limit
@json_payload_required
def api_create():
    """Append a movement to an asset's chain"""
    data = load_payload(MovementCreateForm, request.get_json())

    record = ledger_service.create_movement(data, actor=_actor(), ip_address=request.remote_addr)

    return jsonify({
        'success': True,
        'message': f'Movement {record.code} recorded',
        'movement': record.to_dict(),
        'current_location': record.asset.cached_location.to_dict()
    }), 201


@bp.route('/<code>', methods=['GET'])
@api_standard_limit
def api_detail(code):
    """Get one movement"""
    record = ledger_service.get_movement(code)
    return jsonify({
        'success': True,
        'movement': record.to_dict()
    })


@bp.route('/<code>', methods=['PATCH', 'PUT'])
@api_write_limit
@json_payload_required
def api_edit(code):
    """Partial edit of a movement, cascading into the next one when needed"""
    changes = load_payload(MovementEditForm, request.get_json())

    record = ledger_service.edit_movement(code, changes, actor=_actor(), ip_address=request.remote_addr)

    return jsonify({
        'success': True,
        'message': f'Movement {record.code} updated',
        'movement': record.to_dict(),
        'current_location': record.asset.cached_location.to_dict()
    })


@bp.route('/<code>', methods=['DELETE'])
@api_write_limit
def api_delete(code):
    """Delete the latest movement of an asset"""
    location = ledger_service.delete_movement(code, actor=_actor(), ip_address=request.remote_addr)

    return jsonify({
        'success': True,
        'message': f'Movement {code} deleted',
        'current_location': location.to_dict()
    })
