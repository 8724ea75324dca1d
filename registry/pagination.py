from django.conf import settings


def parse_pagination(params) -> tuple[int, int]:
    """Return ``(page, limit)`` from query params; bad values fall back to the defaults."""
    try:
        page = max(1, int(params.get('page') or 1))
    except (TypeError, ValueError):
        page = 1
    try:
        limit = int(params.get('limit') or params.get('pageSize') or settings.REPORT_PAGE_SIZE)
    except (TypeError, ValueError):
        limit = settings.REPORT_PAGE_SIZE
    limit = min(max(1, limit), settings.REPORT_MAX_PAGE_SIZE)
    return page, limit


def paginate(qs, params):
    page, limit = parse_pagination(params)
    total = qs.count()
    start = (page - 1) * limit
    return qs[start:start + limit], {'total': total, 'page': page, 'limit': limit}
