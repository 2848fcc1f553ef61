"""
Integration tests for the patient records API.

These tests exercise the HTTP contract the dashboards rely on: the
``{success, count?, data}`` envelope, the error taxonomy (validation,
duplicate AN, not found, server error), list filters and the
statistics and export endpoints.  They use Django REST Framework's
APIClient within the APITestCase base class.

To run the tests:

```
pytest -q records/tests
```
"""
import io
from datetime import date, datetime, timedelta, timezone as dt_timezone
from unittest import mock

from django.db import OperationalError
from django.test import override_settings
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from openpyxl import load_workbook
from rest_framework import status
from rest_framework.test import APITestCase

from ..models import Patient
from ..services.exporters import WORKBOOK_COLUMNS


def new_patient(**overrides):
    data = {
        'an': 'AN2024000001',
        'name': 'Somchai Jaidee',
        'dob': date(1980, 5, 1),
        'sex': 'M',
        'dateadm': timezone.now() - timedelta(days=1),
    }
    data.update(overrides)
    return Patient.objects.create(**data)


class PatientCrudTests(APITestCase):
    def setUp(self) -> None:
        self.payload = {
            'AN': 'AN2024000100',
            'name': 'Malee Sukjai',
            'dob': '1975-03-14',
            'sex': 'F',
            'dateadm': '2024-01-10T08:30:00Z',
            'timeadm': '08:30',
            'cc': 'Fever and cough',
            'pdx': 'J18.9',
            'sdx1': 'I10',
            'drg': '195',
            'rw': 0.8234,
        }

    def test_create_then_fetch_by_an_round_trips(self):
        response = self.client.post('/api/patients', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        created = response.data['data']
        self.assertIn('id', created)

        response = self.client.get(f"/api/patients/an/{self.payload['AN']}")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        fetched = response.data['data']
        self.assertEqual(fetched['id'], created['id'])
        for key in ('AN', 'name', 'dob', 'sex', 'timeadm', 'cc', 'pdx', 'sdx1', 'drg'):
            self.assertEqual(fetched[key], self.payload[key], key)
        self.assertAlmostEqual(fetched['rw'], self.payload['rw'])
        self.assertEqual(parse_datetime(fetched['dateadm']), parse_datetime(self.payload['dateadm']))
        self.assertIsNone(fetched['datedsc'])
        self.assertIsNone(fetched['sdx2'])
        self.assertEqual(fetched['status'], 'IN_REVIEW')
        self.assertEqual(fetched['department'], 'Respiratory')
        self.assertIsNotNone(fetched['createdAt'])
        self.assertIsNotNone(fetched['updatedAt'])

    def test_name_is_stored_as_sent(self):
        payload = {**self.payload, 'AN': 'AN2024000101', 'name': '  Tom & Jerry <Jr>  '}
        response = self.client.post('/api/patients', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['name'], 'Tom & Jerry <Jr>')

        response = self.client.get('/api/patients/an/AN2024000101')
        self.assertEqual(response.data['data']['name'], 'Tom & Jerry <Jr>')
        self.assertEqual(Patient.objects.get(an='AN2024000101').name, 'Tom & Jerry <Jr>')

    def test_blank_name_is_rejected(self):
        response = self.client.post('/api/patients', {**self.payload, 'name': '   '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('name: Please provide patient name', response.data['errors'])

    def test_duplicate_an_is_rejected(self):
        self.client.post('/api/patients', self.payload, format='json')
        response = self.client.post('/api/patients', {**self.payload, 'name': 'Other'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'success': False, 'message': 'AN (Admission Number) already exists'})
        self.assertEqual(Patient.objects.count(), 1)

    def test_missing_required_fields(self):
        response = self.client.post('/api/patients', {'AN': 'AN1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['message'], 'Validation Error')
        errors = response.data['errors']
        self.assertIn('name: Please provide patient name', errors)
        self.assertIn('dob: Please provide date of birth', errors)
        self.assertIn('sex: Please provide sex', errors)
        self.assertIn('dateadm: Please provide admission date', errors)

    def test_invalid_sex_is_rejected(self):
        response = self.client.post('/api/patients', {**self.payload, 'sex': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(any(e.startswith('sex:') for e in response.data['errors']))

    def test_dob_accepts_timestamp(self):
        response = self.client.post('/api/patients', {**self.payload, 'dob': '1975-03-14T00:00:00.000Z'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['dob'], '1975-03-14')

    def test_get_by_id_and_not_found(self):
        p = new_patient()
        response = self.client.get(f'/api/patients/{p.pk}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['AN'], p.an)

        response = self.client.get(f'/api/patients/{p.pk + 100}')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {'success': False, 'message': 'Patient not found'})

        response = self.client.get('/api/patients/507f1f77bcf86cd799439011')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        response = self.client.get('/api/patients/an/NOPE')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_partial_update_by_coder(self):
        p = new_patient()
        response = self.client.put(f'/api/patients/{p.pk}', {'pdx': 'I21.9', 'sdx1': 'E11.9', 'drg': '280'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['pdx'], 'I21.9')
        self.assertEqual(data['name'], 'Somchai Jaidee')
        self.assertEqual(data['status'], 'IN_REVIEW')
        self.assertEqual(data['department'], 'Cardiology')

        discharged = (p.dateadm + timedelta(days=2)).isoformat()
        response = self.client.put(f'/api/patients/{p.pk}', {'datedsc': discharged, 'cc': ''}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], 'COMPLETED')
        self.assertEqual(response.data['data']['lengthofstay'], 2)
        self.assertIsNone(response.data['data']['cc'])

    def test_update_validation_and_missing(self):
        p = new_patient()
        response = self.client.put(f'/api/patients/{p.pk}', {'sex': 'unknown'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Validation Error')

        response = self.client.put(f'/api/patients/{p.pk + 1}', {'pdx': 'J18.9'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_to_taken_an(self):
        new_patient()
        other = new_patient(an='AN2024000002')
        response = self.client.put(f'/api/patients/{other.pk}', {'AN': 'AN2024000001'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'AN (Admission Number) already exists')

    def test_delete(self):
        p = new_patient()
        response = self.client.delete(f'/api/patients/{p.pk}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'success': True, 'message': 'Patient deleted successfully', 'data': {}})
        response = self.client.delete(f'/api/patients/{p.pk}')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(response.data['success'])


class PatientListTests(APITestCase):
    def setUp(self) -> None:
        now = timezone.now()
        new_patient(an='A1', name='Somchai Jaidee', pdx='I21.9', drg='280', dateadm=now - timedelta(days=30))
        new_patient(an='A2', name='Malee Sukjai', pdx='J18.9', drg='195', dateadm=now - timedelta(days=2))
        new_patient(an='A3', name='Wipa Somboon', dateadm=now - timedelta(days=1))

    def test_list_envelope_and_no_cache_headers(self):
        response = self.client.get('/api/patients')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['count'], 3)
        self.assertEqual([p['AN'] for p in response.data['data']], ['A1', 'A2', 'A3'])
        self.assertIn('no-store', response['Cache-Control'])
        self.assertEqual(response['Pragma'], 'no-cache')
        self.assertEqual(response['Expires'], '0')

    def test_list_filters(self):
        def ans(query):
            response = self.client.get('/api/patients', query)
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            return [p['AN'] for p in response.data['data']]

        self.assertEqual(ans({'AN': 'A2'}), ['A2'])
        self.assertEqual(ans({'name': 'JAIDEE'}), ['A1'])
        self.assertEqual(ans({'pdx': 'J18.9'}), ['A2'])
        self.assertEqual(ans({'drg': '280'}), ['A1'])
        since = (timezone.localdate() - timedelta(days=7)).isoformat()
        self.assertEqual(ans({'dateadm': since}), ['A2', 'A3'])
        self.assertEqual(ans({'name': ''}), ['A1', 'A2', 'A3'])

    @override_settings(TIME_ZONE='Asia/Bangkok')
    def test_date_only_filter_means_utc_midnight(self):
        # 03:00 on the 10th in Bangkok, still the 9th in UTC
        new_patient(an='B1', dateadm=datetime(2024, 1, 9, 20, 0, tzinfo=dt_timezone.utc))
        new_patient(an='B2', dateadm=datetime(2024, 1, 10, 1, 0, tzinfo=dt_timezone.utc))
        response = self.client.get('/api/patients', {'dateadm': '2024-01-10'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('B2', [p['AN'] for p in response.data['data']])
        self.assertNotIn('B1', [p['AN'] for p in response.data['data']])

        response = self.client.get('/api/patients', {'dateadm': '2024-01-10T03:00:00+07:00'})
        self.assertIn('B1', [p['AN'] for p in response.data['data']])

    def test_bad_date_filter(self):
        response = self.client.get('/api/patients', {'dateadm': 'yesterday'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Validation Error')


class PatientStatsTests(APITestCase):
    def test_empty_store(self):
        response = self.client.get('/api/patients/stats/summary')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['summary']['totalPatients'], 0)
        self.assertEqual(data['summary']['avgRW'], 0)
        self.assertEqual(data['codes'], {'totalCodes': 0, 'avgCodesPerPatient': 0})
        self.assertEqual(data['topDRGs'], [])
        self.assertEqual(data['departments'], [])

    def test_summary_over_stored_records(self):
        now = timezone.now()
        new_patient(an='A1', pdx='I21.9', sdx1='I10', proc1='02703DZ', drg='280', rw=1.5,
                    dateadm=now - timedelta(days=20), datedsc=now - timedelta(days=16))
        new_patient(an='A2', pdx='I21.9', drg='280', rw=2.0, dateadm=now - timedelta(days=1))
        new_patient(an='A3', dateadm=now - timedelta(days=2), age=40)

        response = self.client.get('/api/patients/stats/summary')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        summary = data['summary']
        self.assertEqual(summary['totalPatients'], 3)
        self.assertEqual(summary['completedCount'], 1)
        self.assertEqual(summary['inReviewCount'], 1)
        self.assertEqual(summary['pendingCount'], 1)
        self.assertEqual(summary['recentAdmissions'], 2)
        self.assertAlmostEqual(summary['avgLengthOfStay'], 4)
        self.assertAlmostEqual(summary['avgAge'], 40)
        self.assertAlmostEqual(summary['avgRW'], 1.75)
        self.assertEqual(data['codes']['totalCodes'], 4)
        self.assertEqual(data['topDRGs'][0]['drg'], '280')
        self.assertEqual(data['topDRGs'][0]['count'], 2)
        self.assertAlmostEqual(data['topDRGs'][0]['avgRW'], 1.75)
        self.assertEqual([d['department'] for d in data['departments']], ['Cardiology', 'General'])

        response = self.client.get('/api/patients/stats/summary', {'pdx': 'I21.9'})
        self.assertEqual(response.data['data']['summary']['totalPatients'], 2)

    def test_store_failure_is_server_error(self):
        failing = mock.Mock()
        failing.find.side_effect = OperationalError('database is unavailable')
        with mock.patch('records.views.stats.get_repository', return_value=failing):
            response = self.client.get('/api/patients/stats/summary')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {
            'success': False,
            'message': 'Server Error',
            'error': 'database is unavailable',
        })


class PatientExportTests(APITestCase):
    def setUp(self) -> None:
        new_patient(an='A1', pdx='J18.9', sdx1='I10', proc1='0BH13EZ', drg='195', rw=0.8234)
        new_patient(an='A2', name='Malee Sukjai', sex='F')

    def test_spreadsheet_export(self):
        response = self.client.get('/api/patients/export')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('spreadsheetml', response['Content-Type'])
        self.assertIn('Patient_Records_', response['Content-Disposition'])

        sheet = load_workbook(io.BytesIO(response.content))['Patient Records']
        rows = list(sheet.iter_rows(values_only=True))
        self.assertEqual(list(rows[0]), list(WORKBOOK_COLUMNS))
        self.assertEqual(len(rows), 3)
        first = dict(zip(WORKBOOK_COLUMNS, rows[1]))
        self.assertEqual(first['AN'], 'A1')
        self.assertEqual(first['pdx'], 'J18.9')
        self.assertEqual(first['sdx1'], 'I10')
        self.assertEqual(first['proc1'], '0BH13EZ')
        self.assertAlmostEqual(first['rw'], 0.8234)
        self.assertEqual(first['dob'], '1980-05-01')

    def test_spreadsheet_export_honours_filters(self):
        response = self.client.get('/api/patients/export', {'AN': 'A2'})
        sheet = load_workbook(io.BytesIO(response.content))['Patient Records']
        self.assertEqual(sheet.max_row, 2)

    def test_pdf_export(self):
        response = self.client.get('/api/patients/export', {'type': 'pdf'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertIn('patient-coding-report-', response['Content-Disposition'])
        self.assertTrue(response.content.startswith(b'%PDF'))

    def test_unknown_export_type(self):
        response = self.client.get('/api/patients/export', {'type': 'docx'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])


class HealthTests(APITestCase):
    def test_healthz(self):
        response = self.client.get('/healthz')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'success': True, 'db': True})
