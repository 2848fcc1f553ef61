from django.conf import settings
from django.db import connections
from django.http import JsonResponse


def healthz(request):
    alias = getattr(settings, 'PATIENT_DB_ALIAS', 'default')
    try:
        with connections[alias].cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
        return JsonResponse({'success': True, 'db': bool(row and row[0] == 1)})
    except Exception as e:
        return JsonResponse({'success': False, 'message': 'Server Error', 'error': str(e)}, status=500)
