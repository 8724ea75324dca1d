from django.core.cache import cache
from django.db import connections
from django.http import JsonResponse


def healthz(request):
    """Liveness probe: the database answers and the cache round-trips a value."""
    checks = {}
    try:
        with connections['default'].cursor() as c:
            c.execute('SELECT 1')
            checks['db'] = c.fetchone()[0] == 1
        cache.set('healthz', 'ok', 5)
        checks['cache'] = cache.get('healthz') == 'ok'
    except Exception as e:
        return JsonResponse({'ok': False, 'error': str(e), **checks}, status=503)
    return JsonResponse({'ok': all(checks.values()), **checks}, status=200 if all(checks.values()) else 503)
