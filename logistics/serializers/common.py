import bleach
from rest_framework import serializers


class DrugNameField(serializers.CharField):
    """Drug names are shown on every ward screen; strip any markup."""

    def __init__(self, **kwargs):
        kwargs.setdefault('max_length', 128)
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        v = bleach.clean(super().to_internal_value(data), strip=True).strip()
        if not v:
            raise serializers.ValidationError('Drug name is required')
        return v
