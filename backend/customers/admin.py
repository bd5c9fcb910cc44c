from django.contrib import admin

from .models import Client


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ("company_name", "contact_person", "city", "country", "tin_number")
    search_fields = ("company_name", "contact_person", "tin_number", "email")
