"""
Aggregate statistics endpoint backing the coder and supervisor dashboards.
"""
from __future__ import annotations

from django.conf import settings
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from records.serializers.patient import PatientListQuerySerializer
from records.services.patients import get_repository
from records.services.stats import aggregate_patient_stats


@api_view(['GET'])
@permission_classes([AllowAny])
def patient_stats(request):
    """Counts, averages, top DRGs and department breakdown.

    Covers the whole collection unless list filters are passed.  The
    numbers are aggregated in the database.
    """
    q = PatientListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    data = aggregate_patient_stats(
        get_repository().find(q.filters()),
        now=timezone.now(),
        recent_days=settings.STATS_RECENT_DAYS,
        top_drg_limit=settings.STATS_TOP_DRG_LIMIT,
    )
    return Response({'success': True, 'data': data})
