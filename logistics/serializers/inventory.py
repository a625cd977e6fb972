from rest_framework import serializers

from .common import DrugNameField


class InventoryQuerySerializer(serializers.Serializer):
    locationId = serializers.IntegerField(min_value=1, required=False)


class LowStockQuerySerializer(serializers.Serializer):
    locationId = serializers.IntegerField(min_value=1, required=False)
    threshold = serializers.IntegerField(min_value=1, required=False)


class SupplyEntrySerializer(serializers.Serializer):
    locationId = serializers.IntegerField(min_value=1)
    drugName = DrugNameField()
    quantity = serializers.IntegerField(min_value=1)
    expiryDate = serializers.DateField(required=False, allow_null=True)
