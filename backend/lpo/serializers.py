from __future__ import annotations

from rest_framework import serializers

from journeys.models import FuelRecord

from .dataclasses import CancellationRequest, OrderLine
from .models import CancellationPoint, LPODocument, LPOEntry

DIRECTION_CHOICES = [('going', 'Going'), ('returning', 'Returning')]


# ---------- READ: journeys and allocations ----------
class JourneyRecordSerializer(serializers.ModelSerializer):
    class Meta:
        model = FuelRecord
        fields = [
            "id", "date", "truck_no", "going_do", "return_do", "start", "from_location", "to",
            "original_going_to", "total_lts", "extra", "balance",
            "journey_status", "queue_order", "is_locked", "pending_config_reason",
        ]


class StationAllocationSerializer(serializers.Serializer):
    liters = serializers.IntegerField()
    rate = serializers.DecimalField(max_digits=12, decimal_places=4)
    currency = serializers.CharField()
    source = serializers.CharField()
    formula_status = serializers.CharField(allow_null=True)
    formula_message = serializers.CharField(allow_null=True)


class ResolvedJourneySerializer(serializers.Serializer):
    truck_no = serializers.CharField()
    outcome = serializers.CharField()
    direction = serializers.CharField()
    selected = serializers.SerializerMethodField()
    do_number = serializers.CharField()
    destination = serializers.CharField()
    balance = serializers.IntegerField()
    return_do_missing = serializers.BooleanField()
    warning_type = serializers.CharField(allow_null=True)
    message = serializers.CharField()
    record = JourneyRecordSerializer(allow_null=True)
    allocation = StationAllocationSerializer(allow_null=True)
    journeys = serializers.SerializerMethodField()

    def get_selected(self, obj):
        return obj.selected

    def get_journeys(self, obj):
        """Navigation list: the active slot first, then queued journeys by position."""
        candidates = obj.candidates
        if candidates is None:
            return []
        items = []
        if candidates.active is not None:
            items.append({"selection": "active", "going_do": candidates.active.going_do,
                          "balance": candidates.active.balance, "status": "active"})
        for index, record in enumerate(candidates.queued):
            items.append({"selection": index, "going_do": record.going_do,
                          "queue_order": record.queue_order, "status": "queued"})
        return items


class ExistingAllocationSerializer(serializers.Serializer):
    document_id = serializers.IntegerField()
    lpo_no = serializers.CharField()
    date = serializers.DateField()
    station = serializers.CharField()
    do_no = serializers.CharField()
    truck_no = serializers.CharField()
    liters = serializers.IntegerField()


class DuplicateCheckSerializer(serializers.Serializer):
    has_duplicate = serializers.BooleanField()
    is_different_amount = serializers.BooleanField()
    existing_entries = ExistingAllocationSerializer(many=True)
    existing_liters = serializers.ListField(child=serializers.IntegerField())
    message = serializers.CharField()


class LineItemSerializer(serializers.Serializer):
    row_id = serializers.CharField()
    truck_no = serializers.CharField()
    station = serializers.CharField()
    direction = serializers.CharField()
    do_no = serializers.CharField()
    dest = serializers.CharField()
    liters = serializers.IntegerField()
    rate = serializers.DecimalField(max_digits=12, decimal_places=4)
    currency = serializers.CharField()
    return_do_missing = serializers.BooleanField()
    warning_type = serializers.CharField(allow_null=True)
    message = serializers.CharField()
    formula_status = serializers.CharField(allow_null=True)
    formula_message = serializers.CharField(allow_null=True)
    duplicate = DuplicateCheckSerializer(allow_null=True)


# ---------- LPO documents ----------
class LPOEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = LPOEntry
        fields = [
            "id", "do_no", "truck_no", "liters", "rate", "amount", "dest", "direction",
            "posted_field", "is_cancelled", "cancellation_point", "cancellation_reason", "cancelled_at",
        ]
        read_only_fields = fields


class LPODocumentSerializer(serializers.ModelSerializer):
    entries = LPOEntrySerializer(many=True, read_only=True)

    class Meta:
        model = LPODocument
        fields = ["id", "lpo_no", "date", "station", "order_of", "currency", "total", "created_at", "entries"]
        read_only_fields = fields


# ---------- WRITE ----------
class OrderLineSerializer(serializers.Serializer):
    truck_no = serializers.CharField(max_length=32)
    do_no = serializers.CharField(max_length=64, allow_blank=True, default='')
    liters = serializers.IntegerField(min_value=1)
    rate = serializers.DecimalField(max_digits=12, decimal_places=4, min_value=0)
    dest = serializers.CharField(max_length=120, allow_blank=True, default='')
    direction = serializers.ChoiceField(choices=DIRECTION_CHOICES, default='going')
    return_do_missing = serializers.BooleanField(default=False)


class CancellationRequestSerializer(serializers.Serializer):
    document_id = serializers.IntegerField()
    truck_no = serializers.CharField(max_length=32)
    cancellation_point = serializers.ChoiceField(choices=CancellationPoint.choices)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)


class SubmitOrderSerializer(serializers.Serializer):
    station = serializers.CharField(max_length=120)
    date = serializers.DateField(required=False)
    order_of = serializers.CharField(max_length=120, allow_blank=True, default='')
    lpo_no = serializers.CharField(max_length=20, required=False)
    entries = OrderLineSerializer(many=True, allow_empty=False)
    cancellations = CancellationRequestSerializer(many=True, required=False)

    def order_lines(self):
        return [OrderLine(**item) for item in self.validated_data["entries"]]

    def cancellation_requests(self):
        return [CancellationRequest(**item) for item in self.validated_data.get("cancellations", [])]


class CancelTruckSerializer(serializers.Serializer):
    truck_no = serializers.CharField(max_length=32)
    cancellation_point = serializers.ChoiceField(choices=CancellationPoint.choices)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)


class LookupRowSerializer(serializers.Serializer):
    row_id = serializers.CharField(max_length=64)
    truck_no = serializers.CharField(max_length=32, allow_blank=True, default='')
    do_number = serializers.CharField(max_length=64, allow_blank=True, default='')


class BatchLookupSerializer(serializers.Serializer):
    station = serializers.CharField(max_length=120)
    direction = serializers.ChoiceField(choices=DIRECTION_CHOICES, default='going')
    rows = LookupRowSerializer(many=True, allow_empty=False)
