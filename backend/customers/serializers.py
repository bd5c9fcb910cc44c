from rest_framework import serializers

from .models import Client


class ClientSerializer(serializers.ModelSerializer):
    class Meta:
        model = Client
        fields = [
            "id", "company_name", "contact_person", "tin_number",
            "address", "city", "country", "phone", "email",
            "created_at", "updated_at",
        ]
        read_only_fields = ("created_at", "updated_at")

    def validate_company_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Company name cannot be blank.")
        return value
