from django.contrib import admin

from .models import Invoice, InvoiceCharge, InvoiceItem, InvoiceSequence


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0
    readonly_fields = ("total",)


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ("invoice_number", "client_name", "status", "total_amount", "currency",
                    "issue_date", "due_date", "paid_at")
    search_fields = ("invoice_number", "client_name", "awb_number")
    list_filter = ("status", "currency", "issue_date")
    date_hierarchy = "issue_date"
    inlines = [InvoiceItemInline]
    readonly_fields = ("invoice_number", "sequence", "quotation", "sub_total", "tva",
                       "total_amount", "vat_rate", "paid_at", "created_by", "created_at", "updated_at")

    def get_readonly_fields(self, request, obj=None):
        ro = list(super().get_readonly_fields(request, obj))
        if obj and obj.is_locked:
            for f in obj._meta.fields:
                if f.name not in ro:
                    ro.append(f.name)
        return ro


@admin.register(InvoiceCharge)
class InvoiceChargeAdmin(admin.ModelAdmin):
    list_display = ("item", "description", "rate")
    search_fields = ("item__invoice__invoice_number", "description")

    def get_readonly_fields(self, request, obj=None):
        if obj and obj.item.invoice.is_locked:
            return [f.name for f in obj._meta.fields]
        return super().get_readonly_fields(request, obj)


@admin.register(InvoiceSequence)
class InvoiceSequenceAdmin(admin.ModelAdmin):
    list_display = ("period", "last_value")
