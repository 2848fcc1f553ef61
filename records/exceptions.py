import logging

from django.http import Http404
from rest_framework import exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class DuplicateAdmissionNumber(Exception):
    """Another record already holds this admission number."""

    def __init__(self, an):
        super().__init__(f"AN {an!r} already exists")
        self.an = an


def validation_messages(detail, field=None):
    """Flatten DRF's nested validation detail into ``field: message`` strings."""
    if isinstance(detail, dict):
        return [m for key, value in detail.items()
                for m in validation_messages(value, None if key == 'non_field_errors' else key)]
    if isinstance(detail, list):
        return [m for item in detail for m in validation_messages(item, field)]
    return [f"{field}: {detail}" if field else str(detail)]


def api_exception_handler(exc, context):
    if isinstance(exc, DuplicateAdmissionNumber):
        return Response({'success': False, 'message': 'AN (Admission Number) already exists'}, status=400)
    if isinstance(exc, exceptions.ValidationError):
        return Response({
            'success': False,
            'message': 'Validation Error',
            'errors': validation_messages(exc.detail),
        }, status=400)
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception("unhandled error in %s", type(context.get('view')).__name__)
        return Response({'success': False, 'message': 'Server Error', 'error': str(exc)}, status=500)
    if isinstance(exc, (exceptions.NotFound, Http404)):
        message = str(getattr(exc, 'detail', '') or 'Not found')
    elif isinstance(resp.data, dict):
        message = resp.data.get('detail') or resp.data
    else:
        message = str(resp.data)
    return Response({'success': False, 'message': message}, status=resp.status_code, headers=_passthrough_headers(resp))


def _passthrough_headers(resp):
    return {h: resp[h] for h in ('Allow', 'Retry-After', 'WWW-Authenticate') if h in resp}
