from django.db import models


class CurrencyRate(models.Model):
    RATE_TYPE_CHOICES = [('BUY', 'Buy'), ('SELL', 'Sell'), ('MID', 'Mid')]

    as_of_ts = models.DateTimeField()
    base_ccy = models.CharField(max_length=3)
    quote_ccy = models.CharField(max_length=3)
    # units of quote_ccy for one unit of base_ccy
    rate = models.DecimalField(max_digits=18, decimal_places=8)
    rate_type = models.CharField(max_length=4, choices=RATE_TYPE_CHOICES, default='MID')
    source = models.CharField(max_length=32, blank=True)

    class Meta:
        unique_together = (('as_of_ts', 'base_ccy', 'quote_ccy', 'rate_type'),)
        indexes = [
            models.Index(fields=['base_ccy', 'quote_ccy', '-as_of_ts'], name='fx_currency_pair_as_of_idx'),
        ]

    def __str__(self):
        return f"{self.base_ccy}->{self.quote_ccy} {self.rate_type} {self.rate} @ {self.as_of_ts:%Y-%m-%d %H:%M}"
