"""
URL mappings for the patient coding API.

Paths mirror the ones the dashboards call.  Trailing slashes are
deliberately omitted, and the fixed ``stats``, ``export`` and ``an``
paths are listed before the ``<pk>`` catch-all.
"""
from django.urls import path, include

from .views import exports, health, patients, stats


urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    # Patients
    path('api/patients', patients.patient_collection, name='patient-list'),
    path('api/patients/stats/summary', stats.patient_stats, name='patient-stats'),
    path('api/patients/export', exports.export_patients, name='patient-export'),
    path('api/patients/an/<str:an>', patients.patient_by_an, name='patient-by-an'),
    path('api/patients/<str:pk>', patients.patient_detail, name='patient-detail'),
]
