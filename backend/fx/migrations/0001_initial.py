from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='CurrencyRate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('as_of_ts', models.DateTimeField()),
                ('base_ccy', models.CharField(max_length=3)),
                ('quote_ccy', models.CharField(max_length=3)),
                ('rate', models.DecimalField(decimal_places=8, max_digits=18)),
                ('rate_type', models.CharField(choices=[('BUY', 'Buy'), ('SELL', 'Sell'), ('MID', 'Mid')], default='MID', max_length=4)),
                ('source', models.CharField(blank=True, max_length=32)),
            ],
            options={
                'unique_together': {('as_of_ts', 'base_ccy', 'quote_ccy', 'rate_type')},
                'indexes': [
                    models.Index(fields=['base_ccy', 'quote_ccy', '-as_of_ts'], name='fx_currency_pair_as_of_idx'),
                ],
            },
        ),
    ]
