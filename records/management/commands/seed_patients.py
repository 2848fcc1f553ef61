"""
Management command to populate the database with sample admissions.
"""
import random
from datetime import date, datetime, timedelta

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from records.models import Patient
from records.services.stats import compute_patient_stats

# One entry per sample condition: ICD-10 principal diagnosis, DRG with its
# relative weight, length of stay range, and typical secondary/procedure codes.
DISEASES = [
    # Cardiology
    {'pdx': 'I21.9', 'name': 'Acute myocardial infarction', 'cc': 'Chest pain',
     'pi': 'Acute chest pain radiating to left arm for 2 hours', 'ph': 'Hypertension, Diabetes',
     'drg': '280', 'rw': 1.5432, 'los': (3, 7), 'procs': ['0BH17EZ', '02703DZ'], 'sdx': ['E11.9', 'I10']},
    {'pdx': 'I50.9', 'name': 'Heart failure', 'cc': 'Shortness of breath',
     'pi': 'Progressive dyspnea on exertion for 1 week', 'ph': 'Coronary artery disease',
     'drg': '291', 'rw': 1.2345, 'los': (4, 8), 'procs': ['0BH13EZ'], 'sdx': ['I25.10', 'I10']},
    # Respiratory
    {'pdx': 'J18.9', 'name': 'Pneumonia', 'cc': 'Fever and cough',
     'pi': 'High fever with productive cough for 3 days', 'ph': 'No significant history',
     'drg': '195', 'rw': 0.8234, 'los': (3, 7), 'procs': [], 'sdx': []},
    {'pdx': 'J44.1', 'name': 'COPD with exacerbation', 'cc': 'Dyspnea',
     'pi': 'Worsening shortness of breath', 'ph': 'COPD, Smoking history',
     'drg': '190', 'rw': 0.9876, 'los': (4, 8), 'procs': ['0BH13EZ'], 'sdx': ['F17.210']},
    # Neurology
    {'pdx': 'G40.909', 'name': 'Epilepsy', 'cc': 'Seizure',
     'pi': 'Generalized tonic-clonic seizure', 'ph': 'Epilepsy on medication',
     'drg': '100', 'rw': 1.1234, 'los': (2, 5), 'procs': [], 'sdx': []},
    {'pdx': 'G43.909', 'name': 'Migraine', 'cc': 'Severe headache',
     'pi': 'Severe unilateral headache with nausea', 'ph': 'Recurrent migraines',
     'drg': '102', 'rw': 0.6543, 'los': (1, 3), 'procs': [], 'sdx': []},
    # Orthopedics
    {'pdx': 'M17.11', 'name': 'Knee osteoarthritis', 'cc': 'Knee pain',
     'pi': 'Progressive knee pain limiting mobility', 'ph': 'Obesity, Previous knee injury',
     'drg': '469', 'rw': 1.8765, 'los': (3, 7), 'procs': ['0SRC0JZ'], 'sdx': ['E66.9']},
    {'pdx': 'S72.001A', 'name': 'Femur fracture', 'cc': 'Hip pain after fall',
     'pi': 'Fall from standing height', 'ph': 'Osteoporosis',
     'drg': '480', 'rw': 2.3456, 'los': (5, 10), 'procs': ['0QS604Z'], 'sdx': ['M81.0']},
    # General
    {'pdx': 'K35.80', 'name': 'Acute appendicitis', 'cc': 'Abdominal pain',
     'pi': 'Right lower quadrant pain for 6 hours', 'ph': 'No significant history',
     'drg': '338', 'rw': 1.2145, 'los': (2, 4), 'procs': ['0DTJ4ZZ'], 'sdx': []},
    {'pdx': 'N39.0', 'name': 'Urinary tract infection', 'cc': 'Dysuria',
     'pi': 'Burning sensation on urination', 'ph': 'Recurrent UTIs',
     'drg': '690', 'rw': 0.6789, 'los': (2, 4), 'procs': [], 'sdx': []},
]

FIRST_NAMES = ['Somchai', 'Somying', 'Wichai', 'Wipa', 'Somsak', 'Somjai', 'Prasert', 'Suda',
               'Niran', 'Rattana', 'Surachai', 'Malee', 'Thana', 'Wanna', 'Anucha', 'Pim']
LAST_NAMES = ['Jaidee', 'Sukjai', 'Rakdee', 'Khaengraeng', 'Suayngam', 'Mankhong', 'Charoen',
              'Rungrueang', 'Sawang', 'Thong', 'Phet', 'Kaew', 'Boonmee', 'Chaiyo', 'Somboon']


class Command(BaseCommand):
    help = 'Populate the database with sample admission records'

    def add_arguments(self, parser):
        parser.add_argument('--count', type=int, default=50, help='number of admissions to create')
        parser.add_argument('--clear', action='store_true', help='delete existing patients first')
        parser.add_argument('--seed', type=int, default=None, help='random seed for repeatable data')
        parser.add_argument('--start', type=date.fromisoformat, default=None,
                            help='earliest admission date (default: 45 days ago)')

    def handle(self, *args, **options):
        rng = random.Random(options['seed'])
        start = options['start'] or (timezone.localdate() - timedelta(days=45))
        start_dt = timezone.make_aware(datetime.combine(start, datetime.min.time()))

        with transaction.atomic():
            if options['clear']:
                deleted, _ = Patient.objects.all().delete()
                self.stdout.write(f'Cleared {deleted} existing patients')
            prefix = f"AN{start.year}"
            offset = Patient.objects.filter(an__startswith=prefix).count()
            created = [
                self.create_patient(rng, f"{prefix}{offset + i:06d}", start_dt)
                for i in range(1, options['count'] + 1)
            ]

        stats = compute_patient_stats(created)
        summary = stats['summary']
        self.stdout.write(self.style.SUCCESS(f"Inserted {len(created)} sample patients"))
        self.stdout.write(
            f"completed={summary['completedCount']} inReview={summary['inReviewCount']} "
            f"pending={summary['pendingCount']} totalCodes={stats['codes']['totalCodes']}"
        )

    def create_patient(self, rng, an, start_dt):
        disease = rng.choice(DISEASES)
        sex = rng.choice(['M', 'F'])
        dob = date(1950, 1, 1) + timedelta(days=rng.randint(0, 60 * 365))
        dateadm = start_dt + timedelta(minutes=rng.randint(0, 45 * 24 * 60))
        age = (dateadm.date() - dob).days // 365
        data = {
            'name': f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}",
            'an': an,
            'dob': dob,
            'sex': sex,
            'dateadm': dateadm,
            'timeadm': dateadm.strftime('%H:%M'),
            'age': age,
            'ageday': age * 365,
            'cc': disease['cc'],
            'pi': disease['pi'],
            'ph': disease['ph'],
            'fh': 'Family history of similar condition' if rng.random() > 0.7 else 'No significant family history',
            'patient_examine': 'Physical examination findings documented',
            'bt': f"{36.5 + rng.random() * 2:.1f}",
            'pr': str(rng.randint(60, 100)),
            'rr': str(rng.randint(14, 24)),
            'bp': f"{rng.randint(110, 150)}/{rng.randint(70, 90)}",
            'o2': str(rng.randint(94, 100)),
            'pre_diagnosis': disease['name'],
            'reason_for_admit': f"Admission for {disease['name'].lower()} management",
            'treatment_plan': 'Comprehensive treatment plan initiated',
        }
        # 70% discharged, 80% coded
        if rng.random() > 0.3:
            los = rng.randint(*disease['los'])
            data['datedsc'] = dateadm + timedelta(days=los)
            data['timedsc'] = data['datedsc'].strftime('%H:%M')
            data['lengthofstay'] = los
        if rng.random() > 0.2:
            data['pdx'] = disease['pdx']
            data['drg'] = disease['drg']
            data['rw'] = disease['rw']
            for i, code in enumerate(disease['sdx'][:12], start=1):
                data[f'sdx{i}'] = code
            for i, code in enumerate(disease['procs'][:20], start=1):
                data[f'proc{i}'] = code
        return Patient.objects.create(**data)
