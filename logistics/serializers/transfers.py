from rest_framework import serializers

from .common import DrugNameField


class LocateSerializer(serializers.Serializer):
    drugName = DrugNameField()
    qty = serializers.IntegerField(min_value=1)
    locationId = serializers.IntegerField(min_value=1, required=False)


class RestockRequestSerializer(serializers.Serializer):
    drugName = DrugNameField()
    qty = serializers.IntegerField(min_value=1)
    toLocationId = serializers.IntegerField(min_value=1, required=False)
