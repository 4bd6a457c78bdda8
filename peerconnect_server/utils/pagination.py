from django.core.paginator import Paginator


def parse_page_params(query_params, default_limit: int = 20, max_limit: int = 100):
    """Read ``page`` / ``limit`` from query params, falling back on bad input."""
    try:
        page = max(int(query_params.get('page', 1)), 1)
    except (TypeError, ValueError):
        page = 1
    try:
        limit = int(query_params.get('limit', default_limit))
    except (TypeError, ValueError):
        limit = default_limit
    limit = min(max(limit, 1), max_limit)
    return page, limit


def paginate(queryset, page: int, limit: int):
    """Return ``(items, pagination)`` for one page of an ordered queryset.

    Out-of-range pages resolve to the last page, as ``Paginator.get_page`` does.
    """
    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)
    pagination = {
        'page': page_obj.number,
        'limit': limit,
        'total': paginator.count,
        'pages': paginator.num_pages if paginator.count else 0,
    }
    return list(page_obj.object_list), pagination
