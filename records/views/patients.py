"""
Patient record endpoints.

CRUD over admission records.  Every response uses the
``{success, count?, data}`` envelope the dashboards read; errors are
shaped by :func:`records.exceptions.api_exception_handler`.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from records.serializers.patient import PatientSerializer, PatientListQuerySerializer
from records.services.patients import get_repository

NO_CACHE_HEADERS = {
    'Cache-Control': 'no-cache, no-store, must-revalidate',
    'Pragma': 'no-cache',
    'Expires': '0',
}


def _get_or_404(repo, pk):
    patient = repo.get(pk)
    if patient is None:
        raise NotFound('Patient not found')
    return patient


@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def patient_collection(request):
    if request.method == 'POST':
        return create_patient(request)
    return list_patients(request)


def list_patients(request):
    """List patients, optionally filtered by ``AN``, ``name``, ``pdx``, ``drg`` or ``dateadm``.

    Caching is disabled so that intermediaries never answer with a stale
    304 after a coder edits a record.
    """
    q = PatientListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    patients = list(get_repository().find(q.filters()))
    data = PatientSerializer(patients, many=True).data
    return Response({'success': True, 'count': len(patients), 'data': data}, headers=NO_CACHE_HEADERS)


def create_patient(request):
    s = PatientSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    patient = get_repository().create(s.validated_data)
    return Response({'success': True, 'data': PatientSerializer(patient).data}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([AllowAny])
def patient_detail(request, pk):
    repo = get_repository()
    if request.method == 'DELETE':
        if not repo.delete(pk):
            raise NotFound('Patient not found')
        return Response({'success': True, 'message': 'Patient deleted successfully', 'data': {}})

    patient = _get_or_404(repo, pk)
    if request.method == 'PUT':
        # Coders fill coding fields a few at a time, so updates are partial
        s = PatientSerializer(patient, data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        patient = repo.update(patient, s.validated_data)
    return Response({'success': True, 'data': PatientSerializer(patient).data})


@api_view(['GET'])
@permission_classes([AllowAny])
def patient_by_an(request, an):
    patient = get_repository().get_by_an(an)
    if patient is None:
        raise NotFound('Patient not found')
    return Response({'success': True, 'data': PatientSerializer(patient).data})
