from datetime import datetime, time, timezone as dt_timezone

from django.utils.dateparse import parse_date
from rest_framework import serializers

from records.models import Patient, SEX_CHOICES


class BlankAsNullMixin:
    """Treat ``""`` like ``null`` so dashboards can clear a field by blanking it."""

    def validate_empty_values(self, data):
        if data == '' and self.allow_null:
            data = None
        return super().validate_empty_values(data)


class OptionalFloatField(BlankAsNullMixin, serializers.FloatField):
    pass


class OptionalDateTimeField(BlankAsNullMixin, serializers.DateTimeField):
    pass


class LenientDateField(serializers.DateField):
    """Date field that also accepts a full ISO timestamp and keeps its date part."""

    def to_internal_value(self, value):
        if isinstance(value, str) and 'T' in value:
            value = value.split('T', 1)[0]
        return super().to_internal_value(value)


DATE_INPUT_FORMATS = ['iso-8601', '%Y-%m-%d']


class AdmittedSinceField(serializers.DateTimeField):
    """Admission cut-off filter.

    A bare ``YYYY-MM-DD`` means midnight UTC on that day, whatever
    ``TIME_ZONE`` is; full timestamps keep their own offset.
    """

    def to_internal_value(self, value):
        if isinstance(value, str):
            try:
                day = parse_date(value.strip())
            except ValueError:
                day = None
            if day is not None:
                return datetime.combine(day, time.min, tzinfo=dt_timezone.utc)
        return super().to_internal_value(value)


class PatientSerializer(serializers.ModelSerializer):
    AN = serializers.CharField(
        source='an', max_length=64,
        error_messages={'required': 'Please provide AN (Admission Number)',
                        'blank': 'Please provide AN (Admission Number)',
                        'null': 'Please provide AN (Admission Number)'},
    )
    name = serializers.CharField(
        max_length=255,
        error_messages={'required': 'Please provide patient name',
                        'blank': 'Please provide patient name',
                        'null': 'Please provide patient name'},
    )
    dob = LenientDateField(
        error_messages={'required': 'Please provide date of birth',
                        'null': 'Please provide date of birth'},
    )
    sex = serializers.ChoiceField(
        choices=SEX_CHOICES,
        error_messages={'required': 'Please provide sex',
                        'null': 'Please provide sex'},
    )
    dateadm = serializers.DateTimeField(
        input_formats=DATE_INPUT_FORMATS,
        error_messages={'required': 'Please provide admission date',
                        'null': 'Please provide admission date'},
    )
    datedsc = OptionalDateTimeField(required=False, allow_null=True, input_formats=DATE_INPUT_FORMATS)

    age = OptionalFloatField(required=False, allow_null=True, min_value=0)
    ageday = OptionalFloatField(required=False, allow_null=True, min_value=0)
    rw = OptionalFloatField(required=False, allow_null=True, min_value=0)
    wtlos = OptionalFloatField(required=False, allow_null=True, min_value=0)
    adjrw = OptionalFloatField(required=False, allow_null=True, min_value=0)
    lengthofstay = OptionalFloatField(required=False, allow_null=True, min_value=0)

    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)
    calculatedAge = serializers.IntegerField(source='calculated_age', read_only=True)
    admissionDuration = serializers.IntegerField(source='admission_duration', read_only=True)
    status = serializers.CharField(read_only=True)
    department = serializers.CharField(read_only=True)

    class Meta:
        model = Patient
        exclude = ['an', 'created_at', 'updated_at']

    def validate_name(self, v):
        v = (v or '').strip()
        if not v:
            raise serializers.ValidationError('Please provide patient name')
        return v


class PatientListQuerySerializer(serializers.Serializer):
    AN = serializers.CharField(required=False, allow_blank=True)
    name = serializers.CharField(required=False, allow_blank=True)
    pdx = serializers.CharField(required=False, allow_blank=True)
    drg = serializers.CharField(required=False, allow_blank=True)
    dateadm = AdmittedSinceField(required=False, input_formats=DATE_INPUT_FORMATS)

    def filters(self) -> dict:
        """Validated filters with blank values dropped."""
        return {k: v for k, v in self.validated_data.items() if v not in (None, '')}


class ExportQuerySerializer(PatientListQuerySerializer):
    type = serializers.ChoiceField(choices=['xlsx', 'pdf'], required=False, default='xlsx')

    def filters(self) -> dict:
        found = super().filters()
        found.pop('type', None)
        return found
