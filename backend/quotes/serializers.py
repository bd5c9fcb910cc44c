from __future__ import annotations

from rest_framework import serializers

from accounts.policy import AuthContext

from . import services
from .models import Quotation, QuotationCharge, QuotationCommodity


# ---------- NESTED WRITE/READ SERIALIZERS ----------
class QuotationChargeSerializer(serializers.ModelSerializer):
    rate = serializers.DecimalField(max_digits=18, decimal_places=4, min_value=0, required=False)

    class Meta:
        model = QuotationCharge
        fields = ["id", "description", "rate"]


class QuotationCommoditySerializer(serializers.ModelSerializer):
    quantity_kg = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=0, required=False)
    charges = QuotationChargeSerializer(many=True, required=False)

    class Meta:
        model = QuotationCommodity
        fields = ["id", "name", "quantity_kg", "charges"]


# ---------- QUOTATION SERIALIZER (write nested, read derived pricing) ----------
class QuotationSerializer(serializers.ModelSerializer):
    commodities = QuotationCommoditySerializer(many=True, required=False)
    client_quote = serializers.DecimalField(max_digits=18, decimal_places=2, min_value=0, required=False)
    profit_percentage_display = serializers.SerializerMethodField()
    created_by_name = serializers.SerializerMethodField()
    approved_by_name = serializers.SerializerMethodField()
    invoice_id = serializers.SerializerMethodField()

    class Meta:
        model = Quotation
        fields = [
            "id", "client", "client_name", "currency",
            "commodities", "total_volume_kg",
            "buy_rate", "client_quote", "profit", "profit_percentage", "profit_percentage_display",
            "status", "approved_by", "approved_by_name", "approved_at", "rejection_reason",
            "quote_sent_by", "created_by", "created_by_name",
            "follow_up_date", "remarks", "destination", "door_delivery",
            "freight_mode", "cargo_description", "request_type", "country_of_origin",
            "invoice_id", "created_at", "updated_at",
        ]
        # derived or workflow-owned: never taken from the payload
        read_only_fields = (
            "buy_rate", "profit", "profit_percentage", "total_volume_kg",
            "status", "approved_by", "approved_at", "rejection_reason",
            "created_by", "created_at", "updated_at",
        )
        extra_kwargs = {"client_name": {"required": False, "allow_blank": True}}

    def validate(self, attrs):
        if self.instance is None and not attrs.get("client_name") and not attrs.get("client"):
            raise serializers.ValidationError({"client_name": "A client or client name is required."})
        return attrs

    def get_profit_percentage_display(self, obj):
        if obj.profit_percentage is None:
            return None
        return f"{obj.profit_percentage:.2f}%"

    def get_created_by_name(self, obj):
        return obj.created_by.display_name if obj.created_by_id else None

    def get_approved_by_name(self, obj):
        return obj.approved_by.display_name if obj.approved_by_id else None

    def get_invoice_id(self, obj):
        invoice = getattr(obj, 'invoice', None)
        return invoice.pk if invoice is not None else None

    def _auth(self) -> AuthContext:
        return AuthContext.from_user(self.context['request'].user)

    def create(self, validated_data):
        commodities = validated_data.pop("commodities", None)
        return services.create_quotation(self._auth(), validated_data, commodities)

    def update(self, instance, validated_data):
        commodities = validated_data.pop("commodities", None)
        return services.update_quotation(self._auth(), instance, validated_data, commodities)


class RejectSerializer(serializers.Serializer):
    reason = serializers.CharField(allow_blank=True, required=False, default='')


class GenerateInvoiceSerializer(serializers.Serializer):
    issue_date = serializers.DateField(required=False)
    deliver_date = serializers.DateField(required=False)
    validity_date = serializers.DateField(required=False)
    awb_number = serializers.CharField(required=False, allow_blank=True)
    payment_conditions = serializers.CharField(required=False, allow_blank=True)
