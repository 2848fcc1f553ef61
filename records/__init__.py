"""Records application for the patient coding backend.

This package contains the admission record model, its serializers,
repository and statistics services, report exporters and the API views.
"""
