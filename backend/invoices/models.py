from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from quotes.models import Quotation


class InvoiceSequence(models.Model):
    """Monotonic invoice counter, one row per YYYYMM period."""
    period = models.CharField(max_length=6, unique=True)
    last_value = models.PositiveIntegerField(default=0)

    def __str__(self):
        return f"{self.period}: {self.last_value}"


class Invoice(models.Model):
    STATUS_CHOICES = [('pending', 'Pending'), ('paid', 'Paid')]

    invoice_number = models.CharField(max_length=32, unique=True)
    sequence = models.PositiveIntegerField()
    quotation = models.OneToOneField('quotes.Quotation', null=True, blank=True,
                                     on_delete=models.PROTECT, related_name='invoice')

    client = models.ForeignKey('customers.Client', null=True, blank=True,
                               on_delete=models.SET_NULL, related_name='invoices')
    client_name = models.CharField(max_length=255)
    client_address = models.TextField(blank=True)
    client_contact_person = models.CharField(max_length=255, blank=True)
    client_tin = models.CharField(max_length=64, blank=True)

    destination = models.CharField(max_length=255, blank=True)
    door_delivery = models.CharField(max_length=255, blank=True)
    salesperson = models.CharField(max_length=255, blank=True)
    deliver_date = models.DateField(null=True, blank=True)
    payment_conditions = models.CharField(max_length=255, default='Net 30 days')
    validity_date = models.DateField(null=True, blank=True)
    awb_number = models.CharField(max_length=64, blank=True)

    sub_total = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    tva = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    total_amount = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    vat_rate = models.DecimalField(max_digits=6, decimal_places=4)
    currency = models.CharField(max_length=3, choices=Quotation.CURRENCY_CHOICES, default='USD')

    issue_date = models.DateField()
    due_date = models.DateField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending')
    paid_at = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True,
                                   on_delete=models.SET_NULL, related_name='invoices')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-issue_date', '-sequence']
        indexes = [
            models.Index(fields=['status', 'due_date'], name='invoices_in_status_4a9e3c_idx'),
            models.Index(fields=['-issue_date'], name='invoices_in_issue_d_7f2b6d_idx'),
        ]

    @property
    def is_locked(self) -> bool:
        return self.status == 'paid'

    def _stored_status(self):
        if not self.pk:
            return None
        return Invoice.objects.filter(pk=self.pk).values_list('status', flat=True).first()

    def save(self, *args, **kwargs):
        if self._stored_status() == 'paid':
            raise ValidationError("This invoice is paid and cannot be modified.")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self._stored_status() == 'paid':
            raise ValidationError("This invoice is paid and cannot be deleted.")
        return super().delete(*args, **kwargs)

    def __str__(self):
        return self.invoice_number


class InvoiceItem(models.Model):
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name='items')
    commodity = models.CharField(max_length=255, blank=True)
    description = models.CharField(max_length=255, blank=True)
    quantity_kg = models.DecimalField(max_digits=14, decimal_places=3, default=0)
    total = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['position', 'id']

    def save(self, *args, **kwargs):
        if self.invoice.is_locked:
            raise ValidationError("This invoice is paid and its items cannot be modified.")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.invoice.is_locked:
            raise ValidationError("This invoice is paid and its items cannot be removed.")
        return super().delete(*args, **kwargs)

    def __str__(self):
        return f"{self.commodity} ({self.quantity_kg} kg)"


class InvoiceCharge(models.Model):
    item = models.ForeignKey(InvoiceItem, on_delete=models.CASCADE, related_name='charges')
    description = models.CharField(max_length=255, blank=True)
    rate = models.DecimalField(max_digits=18, decimal_places=4, default=0)

    class Meta:
        ordering = ['id']

    def save(self, *args, **kwargs):
        if self.item.invoice.is_locked:
            raise ValidationError("This invoice is paid and its charges cannot be modified.")
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.description} @ {self.rate}/kg"
