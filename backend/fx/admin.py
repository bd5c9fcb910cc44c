from django.contrib import admin

from .models import CurrencyRate


@admin.register(CurrencyRate)
class CurrencyRateAdmin(admin.ModelAdmin):
    list_display = ("base_ccy", "quote_ccy", "rate_type", "rate", "as_of_ts", "source")
    list_filter = ("base_ccy", "quote_ccy", "rate_type", "source")
    date_hierarchy = "as_of_ts"
