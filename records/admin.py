"""
Django admin registration for admission records, for inspecting and
hand-correcting data during development via ``/admin/``.
"""

from django.contrib import admin

from .models import Patient


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('an', 'name', 'sex', 'dateadm', 'datedsc', 'pdx', 'drg', 'rw', 'lengthofstay')
    list_filter = ('sex', 'drg')
    search_fields = ('an', 'name', 'pdx', 'drg')
    date_hierarchy = 'dateadm'
    readonly_fields = ('created_at', 'updated_at')
