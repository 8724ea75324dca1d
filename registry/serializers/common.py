import bleach
from rest_framework import serializers


def clean_text(value):
    return bleach.clean((value or '').strip(), strip=True)


class CleanCharField(serializers.CharField):
    """CharField whose value is stripped of markup before validation."""

    def to_internal_value(self, data):
        return clean_text(super().to_internal_value(data))
