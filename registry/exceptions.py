import logging

from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response

logger = logging.getLogger(__name__)


class LocationNotFound(LookupError):
    """Raised when a location id does not resolve to a stored location."""

    def __init__(self, location_id):
        super().__init__(f'location {location_id} not found')
        self.location_id = location_id


class LocationCycleError(RuntimeError):
    """Raised when the location hierarchy revisits a node (malformed data)."""

    def __init__(self, location_id):
        super().__init__(f'location hierarchy contains a cycle at {location_id}')
        self.location_id = location_id


def api_exception_handler(exc, context):
    if isinstance(exc, LocationNotFound):
        return Response({'ok': False, 'error': {'code': 'location_not_found', 'message': str(exc)}}, status=404)
    if isinstance(exc, LocationCycleError):
        return Response({'ok': False, 'error': {'code': 'location_cycle', 'message': str(exc)}}, status=409)
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception("unhandled error in %s", context.get("view"))
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)
    # normalize response
    detail = None
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = str(resp.data)
    return Response({'ok': False, 'error': {'code': 'api_error', 'message': detail}}, status=resp.status_code)
