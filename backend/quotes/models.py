from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class Quotation(models.Model):
    STATUS_CHOICES = [('pending', 'Pending'), ('won', 'Won'), ('lost', 'Lost')]
    FREIGHT_MODE_CHOICES = [
        ('Air Freight', 'Air Freight'),
        ('Sea Freight', 'Sea Freight'),
        ('Road Freight', 'Road Freight'),
    ]
    REQUEST_TYPE_CHOICES = [
        ('Import', 'Import'),
        ('Export', 'Export'),
        ('Re-Import', 'Re-Import'),
        ('Project', 'Project'),
        ('Local', 'Local'),
    ]
    CURRENCY_CHOICES = [('USD', 'USD'), ('RWF', 'RWF'), ('EUR', 'EUR')]

    client = models.ForeignKey('customers.Client', null=True, blank=True,
                               on_delete=models.SET_NULL, related_name='quotations')
    client_name = models.CharField(max_length=255)
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default='USD')

    # buy_rate, profit, profit_percentage and total_volume_kg are recomputed on every save
    buy_rate = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    client_quote = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    profit = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    profit_percentage = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    total_volume_kg = models.DecimalField(max_digits=14, decimal_places=3, default=0)

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending')
    approved_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True,
                                    on_delete=models.SET_NULL, related_name='+')
    approved_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)

    quote_sent_by = models.CharField(max_length=255, blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True,
                                   on_delete=models.SET_NULL, related_name='quotations')
    follow_up_date = models.DateField(null=True, blank=True)
    remarks = models.TextField(blank=True)
    destination = models.CharField(max_length=255, blank=True)
    door_delivery = models.CharField(max_length=255, blank=True)
    freight_mode = models.CharField(max_length=20, choices=FREIGHT_MODE_CHOICES, blank=True)
    cargo_description = models.TextField(blank=True)
    request_type = models.CharField(max_length=20, choices=REQUEST_TYPE_CHOICES, blank=True)
    country_of_origin = models.CharField(max_length=128, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', '-created_at'], name='quotes_quot_status_8c1f2e_idx'),
            models.Index(fields=['created_by', '-created_at'], name='quotes_quot_created_5b7d1a_idx'),
        ]

    @property
    def is_locked(self) -> bool:
        return self.status == 'won'

    def __str__(self):
        return f"{self.client_name} ({self.get_status_display()})"


class QuotationCommodity(models.Model):
    quotation = models.ForeignKey(Quotation, on_delete=models.CASCADE, related_name='commodities')
    name = models.CharField(max_length=255, blank=True)
    quantity_kg = models.DecimalField(max_digits=14, decimal_places=3, default=0)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['position', 'id']
        verbose_name_plural = 'quotation commodities'

    def save(self, *args, **kwargs):
        if self.quotation.is_locked:
            raise ValidationError("This quotation is approved and its commodities cannot be modified.")
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.name} ({self.quantity_kg} kg)"


class QuotationCharge(models.Model):
    commodity = models.ForeignKey(QuotationCommodity, on_delete=models.CASCADE, related_name='charges')
    description = models.CharField(max_length=255, blank=True)
    rate = models.DecimalField(max_digits=18, decimal_places=4, default=0)

    class Meta:
        ordering = ['id']

    def save(self, *args, **kwargs):
        if self.commodity.quotation.is_locked:
            raise ValidationError("This quotation is approved and its charges cannot be modified.")
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.description} @ {self.rate}/kg"
