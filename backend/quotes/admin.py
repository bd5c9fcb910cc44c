from django.contrib import admin

from .models import Quotation, QuotationCharge, QuotationCommodity


class QuotationChargeInline(admin.TabularInline):
    model = QuotationCharge
    extra = 0


@admin.register(Quotation)
class QuotationAdmin(admin.ModelAdmin):
    list_display = ("id", "client_name", "status", "freight_mode", "request_type",
                    "buy_rate", "client_quote", "profit", "profit_percentage", "created_by", "created_at")
    search_fields = ("client_name", "destination", "quote_sent_by")
    list_filter = ("status", "freight_mode", "request_type", "currency", "created_at")
    date_hierarchy = "created_at"
    readonly_fields = ("buy_rate", "profit", "profit_percentage", "total_volume_kg",
                       "approved_by", "approved_at", "created_by", "created_at", "updated_at")

    def get_readonly_fields(self, request, obj=None):
        ro = list(super().get_readonly_fields(request, obj))
        if obj and obj.is_locked:
            # lock the whole form
            for f in obj._meta.fields:
                if f.name not in ro:
                    ro.append(f.name)
        return ro


@admin.register(QuotationCommodity)
class QuotationCommodityAdmin(admin.ModelAdmin):
    list_display = ("quotation", "name", "quantity_kg", "position")
    search_fields = ("quotation__client_name", "name")
    inlines = [QuotationChargeInline]

    def get_readonly_fields(self, request, obj=None):
        # Prevent edits when parent is approved
        if obj and obj.quotation.is_locked:
            return [f.name for f in obj._meta.fields]
        return super().get_readonly_fields(request, obj)
