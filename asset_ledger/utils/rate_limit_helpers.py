"""
Rate limiting decorators for API endpoints
"""

from flask import jsonify
from asset_ledger import limiter


def api_standard_limit(f):
    """
    Standard rate limit for read endpoints
    300 requests per hour
    """
    return limiter.limit("300 per hour")(f)


def api_write_limit(f):
    """
    Rate limit for ledger writes (POST, PATCH, PUT, DELETE)
    60 requests per minute, 600 per hour
    """
    return limiter.limit("60 per minute, 600 per hour")(f)


def api_strict_limit(f):
    """
    Stricter rate limit for expensive operations
    Use for: full ledger audit and repair
    """
    return limiter.limit("10 per hour")(f)


def register_rate_limit_error_handler(app):
    """
    Register custom error handler for rate limit exceeded
    """
    from flask_limiter.errors import RateLimitExceeded

    @app.errorhandler(RateLimitExceeded)
    def handle_rate_limit_exceeded(e):
        """Custom response when rate limit is exceeded"""
        return jsonify({
            'success': False,
            'message': 'Rate limit exceeded. Please try again later.',
            'error': 'rate_limit_exceeded'
        }), 429
