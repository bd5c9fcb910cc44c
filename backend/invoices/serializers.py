from rest_framework import serializers

from accounts.policy import AuthContext

from . import services
from .models import Invoice, InvoiceCharge, InvoiceItem


class InvoiceChargeSerializer(serializers.ModelSerializer):
    rate = serializers.DecimalField(max_digits=18, decimal_places=4, min_value=0, required=False)

    class Meta:
        model = InvoiceCharge
        fields = ["id", "description", "rate"]


class InvoiceItemSerializer(serializers.ModelSerializer):
    quantity_kg = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=0, required=False)
    charges = InvoiceChargeSerializer(many=True, required=False)

    class Meta:
        model = InvoiceItem
        fields = ["id", "commodity", "description", "quantity_kg", "charges", "total"]
        read_only_fields = ("total",)


class InvoiceSerializer(serializers.ModelSerializer):
    items = InvoiceItemSerializer(many=True, required=False)
    display_status = serializers.SerializerMethodField()
    issue_date = serializers.DateField(required=False)
    due_date = serializers.DateField(required=False)

    class Meta:
        model = Invoice
        fields = [
            "id", "invoice_number", "quotation",
            "client", "client_name", "client_address", "client_contact_person", "client_tin",
            "destination", "door_delivery", "salesperson", "deliver_date",
            "payment_conditions", "validity_date", "awb_number",
            "items", "sub_total", "tva", "total_amount", "vat_rate", "currency",
            "issue_date", "due_date", "status", "display_status", "paid_at",
            "created_by", "created_at", "updated_at",
        ]
        read_only_fields = (
            "invoice_number", "quotation", "sub_total", "tva", "total_amount", "vat_rate",
            "status", "paid_at", "created_by", "created_at", "updated_at",
        )
        extra_kwargs = {
            "client_name": {"required": False, "allow_blank": True},
            "payment_conditions": {"required": False},
        }

    def validate(self, attrs):
        if self.instance is None and not attrs.get("client_name") and not attrs.get("client"):
            raise serializers.ValidationError({"client_name": "A client or client name is required."})
        if self.instance is not None and attrs.get("issue_date", self.instance.issue_date) != self.instance.issue_date:
            # the invoice number period and default due date follow the issue date
            raise serializers.ValidationError(
                {"issue_date": "The issue date cannot be changed once the invoice is numbered."})
        return attrs

    def get_display_status(self, obj):
        return services.display_status(obj)

    def _auth(self) -> AuthContext:
        return AuthContext.from_user(self.context['request'].user)

    def create(self, validated_data):
        items = validated_data.pop("items", None)
        return services.create_invoice(self._auth(), validated_data, items)

    def update(self, instance, validated_data):
        items = validated_data.pop("items", None)
        return services.update_invoice(self._auth(), instance, validated_data, items)
