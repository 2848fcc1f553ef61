"""
Database models for the patient coding backend.

A :class:`Patient` row is one hospital admission episode.  Field names
mirror the keys used by the doctor and coder dashboards (``pdx``,
``sdx1`` .. ``sdx12``, ``proc1`` .. ``proc20``, ``drg`` ...) so that
serializing to JSON is a straight mapping.
"""
from __future__ import annotations

import math
from datetime import date

from django.db import models
from django.utils import timezone


SEX_CHOICES = [
    ('M', 'M'),
    ('F', 'F'),
    ('male', 'male'),
    ('female', 'female'),
    ('other', 'other'),
]

SDX_FIELDS = tuple(f'sdx{i}' for i in range(1, 13))
PROC_FIELDS = tuple(f'proc{i}' for i in range(1, 21))
CODE_FIELDS = ('pdx',) + SDX_FIELDS + PROC_FIELDS

SECONDS_PER_DAY = 24 * 60 * 60


def days_between(start, end) -> int:
    """Whole days between two instants, rounded up."""
    return math.ceil(abs((end - start).total_seconds()) / SECONDS_PER_DAY)


class Patient(models.Model):
    """One admission episode with its clinical narrative and coding.

    Coding fields are filled progressively by the coder; a record with a
    discharge date is complete, one with only a principal diagnosis is
    in review and one with neither is pending.
    """
    # Patient demographics
    name = models.CharField(max_length=255, db_index=True)
    an = models.CharField('AN', max_length=64, unique=True, help_text="Admission number")
    dob = models.DateField()
    sex = models.CharField(max_length=10, choices=SEX_CHOICES)

    # Admission information
    dateadm = models.DateTimeField(db_index=True)
    timeadm = models.CharField(max_length=16, null=True, blank=True)
    datedsc = models.DateTimeField(null=True, blank=True, db_index=True)
    timedsc = models.CharField(max_length=16, null=True, blank=True)

    # Age at admission; ageday is used for infants
    age = models.FloatField(null=True, blank=True)
    ageday = models.FloatField(null=True, blank=True)

    # Medical history
    cc = models.TextField(null=True, blank=True)
    pi = models.TextField(null=True, blank=True)
    ph = models.TextField(null=True, blank=True)
    fh = models.TextField(null=True, blank=True)

    # Physical examination and vital signs
    patient_examine = models.TextField(null=True, blank=True)
    bt = models.CharField(max_length=32, null=True, blank=True)
    pr = models.CharField(max_length=32, null=True, blank=True)
    rr = models.CharField(max_length=32, null=True, blank=True)
    bp = models.CharField(max_length=32, null=True, blank=True)
    o2 = models.CharField(max_length=32, null=True, blank=True)

    # Working diagnosis and plan
    pre_diagnosis = models.TextField(null=True, blank=True)
    reason_for_admit = models.TextField(null=True, blank=True)
    treatment_plan = models.TextField(null=True, blank=True)

    # Principal and secondary diagnoses
    pdx = models.CharField(max_length=16, null=True, blank=True, db_index=True)
    sdx1 = models.CharField(max_length=16, null=True, blank=True)
    sdx2 = models.CharField(max_length=16, null=True, blank=True)
    sdx3 = models.CharField(max_length=16, null=True, blank=True)
    sdx4 = models.CharField(max_length=16, null=True, blank=True)
    sdx5 = models.CharField(max_length=16, null=True, blank=True)
    sdx6 = models.CharField(max_length=16, null=True, blank=True)
    sdx7 = models.CharField(max_length=16, null=True, blank=True)
    sdx8 = models.CharField(max_length=16, null=True, blank=True)
    sdx9 = models.CharField(max_length=16, null=True, blank=True)
    sdx10 = models.CharField(max_length=16, null=True, blank=True)
    sdx11 = models.CharField(max_length=16, null=True, blank=True)
    sdx12 = models.CharField(max_length=16, null=True, blank=True)

    # Procedures
    proc1 = models.CharField(max_length=16, null=True, blank=True)
    proc2 = models.CharField(max_length=16, null=True, blank=True)
    proc3 = models.CharField(max_length=16, null=True, blank=True)
    proc4 = models.CharField(max_length=16, null=True, blank=True)
    proc5 = models.CharField(max_length=16, null=True, blank=True)
    proc6 = models.CharField(max_length=16, null=True, blank=True)
    proc7 = models.CharField(max_length=16, null=True, blank=True)
    proc8 = models.CharField(max_length=16, null=True, blank=True)
    proc9 = models.CharField(max_length=16, null=True, blank=True)
    proc10 = models.CharField(max_length=16, null=True, blank=True)
    proc11 = models.CharField(max_length=16, null=True, blank=True)
    proc12 = models.CharField(max_length=16, null=True, blank=True)
    proc13 = models.CharField(max_length=16, null=True, blank=True)
    proc14 = models.CharField(max_length=16, null=True, blank=True)
    proc15 = models.CharField(max_length=16, null=True, blank=True)
    proc16 = models.CharField(max_length=16, null=True, blank=True)
    proc17 = models.CharField(max_length=16, null=True, blank=True)
    proc18 = models.CharField(max_length=16, null=True, blank=True)
    proc19 = models.CharField(max_length=16, null=True, blank=True)
    proc20 = models.CharField(max_length=16, null=True, blank=True)

    # DRG information
    drg = models.CharField(max_length=16, null=True, blank=True, db_index=True)
    rw = models.FloatField(null=True, blank=True)
    wtlos = models.FloatField(null=True, blank=True)
    adjrw = models.FloatField(null=True, blank=True)
    lengthofstay = models.FloatField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['id']

    def __str__(self) -> str:
        return f"{self.an} ({self.name})"

    def save(self, *args, **kwargs):
        self.normalize_text_fields()
        if self.lengthofstay is None and self.dateadm and self.datedsc:
            self.lengthofstay = days_between(self.dateadm, self.datedsc)
        super().save(*args, **kwargs)

    def normalize_text_fields(self) -> None:
        """Trim strings and store blank optional strings as NULL."""
        for field in self._meta.concrete_fields:
            if not isinstance(field, (models.CharField, models.TextField)):
                continue
            value = getattr(self, field.attname)
            if not isinstance(value, str):
                continue
            value = value.strip()
            if not value and field.null:
                value = None
            setattr(self, field.attname, value)

    # Derived, read-only values exposed alongside the stored fields

    @property
    def calculated_age(self) -> int | None:
        if not self.dob:
            return None
        today = date.today()
        years = today.year - self.dob.year
        if (today.month, today.day) < (self.dob.month, self.dob.day):
            years -= 1
        return years

    @property
    def admission_duration(self) -> int | None:
        if not self.dateadm:
            return None
        return days_between(self.dateadm, self.datedsc or timezone.now())

    @property
    def status(self) -> str:
        from records.services.stats import record_status
        return record_status(self)

    @property
    def department(self) -> str:
        from records.services.stats import classify_department
        return classify_department(self.pdx)
