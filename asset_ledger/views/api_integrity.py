from flask import Blueprint, jsonify, request

from asset_ledger.services.integrity import audit_ledger, repair_ledger
from asset_ledger.utils.rate_limit_helpers import api_strict_limit

bp = Blueprint('api_integrity', __name__)


@bp.route('', methods=['GET'])
@api_strict_limit
def api_audit():
    """Report chain anomalies, optionally for one asset"""
    asset_id = request.args.get('asset_id', type=int)
    report = audit_ledger(asset_id=asset_id)
    report['success'] = True
    report['healthy'] = not report['anomalies']
    return jsonify(report)


@bp.route('/repair', methods=['POST'])
@api_strict_limit
def api_repair():
    """Rewrite derivable chain fields and cached locations"""
    asset_id = request.args.get('asset_id', type=int)
    report = repair_ledger(asset_id=asset_id, actor=request.headers.get('X-Actor'))
    report['success'] = True
    return jsonify(report)
