"""
Access to stored admission records.

Views never touch ``Patient.objects`` directly; they are handed a
:class:`PatientRepository` bound to an explicit database alias, so the
store a request works against is chosen in one place.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import QuerySet

from records.exceptions import DuplicateAdmissionNumber
from records.models import Patient

logger = logging.getLogger(__name__)


class PatientRepository:
    def __init__(self, using: str = 'default'):
        self.using = using

    @property
    def objects(self) -> QuerySet:
        return Patient.objects.using(self.using)

    def find(self, filters: Optional[dict[str, Any]] = None) -> QuerySet:
        """Translate list query parameters into a queryset.

        ``AN``, ``pdx`` and ``drg`` match exactly, ``name`` is a
        case-insensitive substring and ``dateadm`` keeps admissions on or
        after the given instant.
        """
        filters = filters or {}
        qs = self.objects.all()
        if filters.get('AN'):
            qs = qs.filter(an=filters['AN'])
        if filters.get('name'):
            qs = qs.filter(name__icontains=filters['name'])
        if filters.get('pdx'):
            qs = qs.filter(pdx=filters['pdx'])
        if filters.get('drg'):
            qs = qs.filter(drg=filters['drg'])
        if filters.get('dateadm'):
            qs = qs.filter(dateadm__gte=filters['dateadm'])
        return qs

    def get(self, pk) -> Optional[Patient]:
        pk = str(pk)
        if not pk.isdigit():
            return None
        return self.objects.filter(pk=int(pk)).first()

    def get_by_an(self, an: str) -> Optional[Patient]:
        return self.objects.filter(an=an).first()

    def an_taken(self, an: str, exclude_pk: Optional[int] = None) -> bool:
        qs = self.objects.filter(an=an)
        if exclude_pk is not None:
            qs = qs.exclude(pk=exclude_pk)
        return qs.exists()

    def create(self, data: dict[str, Any]) -> Patient:
        an = data.get('an')
        if an and self.an_taken(an):
            raise DuplicateAdmissionNumber(an)
        patient = Patient(**data)
        self._save(patient)
        logger.info("created patient %s (AN %s)", patient.pk, patient.an)
        return patient

    def update(self, patient: Patient, data: dict[str, Any]) -> Patient:
        an = data.get('an')
        if an and an != patient.an and self.an_taken(an, exclude_pk=patient.pk):
            raise DuplicateAdmissionNumber(an)
        for field, value in data.items():
            setattr(patient, field, value)
        self._save(patient)
        logger.info("updated patient %s fields=%s", patient.pk, sorted(data))
        return patient

    def delete(self, pk) -> bool:
        patient = self.get(pk)
        if patient is None:
            return False
        patient.delete(using=self.using)
        logger.info("deleted patient %s (AN %s)", pk, patient.an)
        return True

    def _save(self, patient: Patient) -> None:
        # a concurrent insert can slip past the pre-check
        try:
            with transaction.atomic(using=self.using):
                patient.save(using=self.using)
        except IntegrityError:
            if self.an_taken(patient.an, exclude_pk=patient.pk):
                raise DuplicateAdmissionNumber(patient.an)
            raise


def get_repository() -> PatientRepository:
    return PatientRepository(using=getattr(settings, 'PATIENT_DB_ALIAS', 'default'))
