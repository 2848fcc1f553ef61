"""
Report downloads: the coder's spreadsheet and the coding PDF report.
"""
from __future__ import annotations

from django.conf import settings
from django.http import HttpResponse
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny

from records.serializers.patient import ExportQuerySerializer
from records.services.exporters import (
    REPORT_FIELDS,
    XLSX_CONTENT_TYPE,
    build_coding_report_pdf,
    build_patient_workbook,
    coding_rows,
)
from records.services.patients import get_repository
from records.services.stats import aggregate_patient_stats


@api_view(['GET'])
@permission_classes([AllowAny])
def export_patients(request):
    """Download patients as ``?type=xlsx`` (default) or ``?type=pdf``.

    Accepts the same filters as the patient list.
    """
    q = ExportQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    patients = get_repository().find(q.filters())
    now = timezone.now()
    stamp = timezone.localdate(now).isoformat()

    if q.validated_data['type'] == 'pdf':
        stats = aggregate_patient_stats(
            patients,
            now=now,
            recent_days=settings.STATS_RECENT_DAYS,
            top_drg_limit=settings.STATS_TOP_DRG_LIMIT,
        )
        body = build_coding_report_pdf(coding_rows(patients.only(*REPORT_FIELDS)), stats, generated_at=now)
        resp = HttpResponse(body, content_type='application/pdf')
        resp['Content-Disposition'] = f'attachment; filename="patient-coding-report-{stamp}.pdf"'
        return resp

    body = build_patient_workbook(patients)
    resp = HttpResponse(body, content_type=XLSX_CONTENT_TYPE)
    resp['Content-Disposition'] = f'attachment; filename="Patient_Records_{stamp}.xlsx"'
    return resp
