"""
Pagination helper utilities for API endpoints.
Provides consistent pagination across all list endpoints.
"""

from flask import request, current_app


def get_pagination_params(default_per_page=None, max_per_page=None):
    """
    Get and validate pagination parameters from request

    Returns:
        tuple: (page, per_page)
    """
    default_per_page = default_per_page or current_app.config.get('ITEMS_PER_PAGE', 20)
    max_per_page = max_per_page or current_app.config.get('MAX_ITEMS_PER_PAGE', 100)

    page = request.args.get('page', 1, type=int)
    per_page = request.args.get('per_page', default_per_page, type=int)

    if page < 1:
        page = 1
    if per_page < 1:
        per_page = default_per_page
    if per_page > max_per_page:
        per_page = max_per_page

    return page, per_page


def build_meta_pagination(pagination):
    """
    Build pagination metadata from SQLAlchemy pagination object

    Args:
        pagination: SQLAlchemy pagination object

    Returns:
        dict: Pagination metadata
    """
    return {
        'page': pagination.page,
        'per_page': pagination.per_page,
        'total': pagination.total,
        'pages': pagination.pages,
        'has_next': pagination.has_next,
        'has_prev': pagination.has_prev,
        'next_page': pagination.next_num if pagination.has_next else None,
        'prev_page': pagination.prev_num if pagination.has_prev else None,
    }


def paginated_response(query, serializer=None, max_per_page=None):
    """
    Create a paginated API response

    Args:
        query: SQLAlchemy query object
        serializer: Optional serializer function (uses to_dict() if not provided)
        max_per_page: Maximum items per page

    Returns:
        dict: Paginated response
    """
    page, per_page = get_pagination_params(max_per_page=max_per_page)

    pagination = query.paginate(
        page=page,
        per_page=per_page,
        error_out=False
    )

    if serializer:
        data = [serializer(item) for item in pagination.items]
    else:
        data = [item.to_dict() for item in pagination.items]

    return {
        'success': True,
        'data': data,
        'pagination': build_meta_pagination(pagination)
    }
