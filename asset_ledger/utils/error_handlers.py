"""
JSON error responses for the ledger API
"""
import logging
from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from asset_ledger.exceptions import LedgerError, StorageUnavailable

logger = logging.getLogger(__name__)


def register_ledger_error_handlers(app):
    """
    Register handlers that turn ledger failures into the error envelope
    """

    @app.errorhandler(LedgerError)
    def handle_ledger_error(e):
        if isinstance(e, StorageUnavailable):
            logger.error(f'{request.method} {request.path} failed: {e.message}')
        else:
            logger.warning(f'{request.method} {request.path} rejected: {e.kind} {e.details}')
        return jsonify(e.to_dict()), e.http_status

    @app.errorhandler(404)
    def handle_not_found(e):
        return jsonify({
            'success': False,
            'error': 'NotFound',
            'message': 'Resource not found',
            'details': {'path': request.path}
        }), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        return jsonify({
            'success': False,
            'error': 'MethodNotAllowed',
            'message': f'Method {request.method} not allowed',
            'details': {'path': request.path}
        }), 405

    @app.errorhandler(500)
    def handle_internal_error(e):
        original = getattr(e, 'original_exception', None) or e
        if not isinstance(original, HTTPException):
            logger.error(f'Unhandled error on {request.method} {request.path}', exc_info=original)
        return jsonify({
            'success': False,
            'error': 'InternalError',
            'message': 'Internal server error',
            'details': {}
        }), 500
