import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('customers', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Quotation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('client_name', models.CharField(max_length=255)),
                ('currency', models.CharField(choices=[('USD', 'USD'), ('RWF', 'RWF'), ('EUR', 'EUR')], default='USD', max_length=3)),
                ('buy_rate', models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ('client_quote', models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ('profit', models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ('profit_percentage', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('total_volume_kg', models.DecimalField(decimal_places=3, default=0, max_digits=14)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('won', 'Won'), ('lost', 'Lost')], default='pending', max_length=10)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('rejection_reason', models.TextField(blank=True)),
                ('quote_sent_by', models.CharField(blank=True, max_length=255)),
                ('follow_up_date', models.DateField(blank=True, null=True)),
                ('remarks', models.TextField(blank=True)),
                ('destination', models.CharField(blank=True, max_length=255)),
                ('door_delivery', models.CharField(blank=True, max_length=255)),
                ('freight_mode', models.CharField(blank=True, choices=[('Air Freight', 'Air Freight'), ('Sea Freight', 'Sea Freight'), ('Road Freight', 'Road Freight')], max_length=20)),
                ('cargo_description', models.TextField(blank=True)),
                ('request_type', models.CharField(blank=True, choices=[('Import', 'Import'), ('Export', 'Export'), ('Re-Import', 'Re-Import'), ('Project', 'Project'), ('Local', 'Local')], max_length=20)),
                ('country_of_origin', models.CharField(blank=True, max_length=128)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('approved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('client', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='quotations', to='customers.client')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='quotations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', '-created_at'], name='quotes_quot_status_8c1f2e_idx'),
                    models.Index(fields=['created_by', '-created_at'], name='quotes_quot_created_5b7d1a_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='QuotationCommodity',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(blank=True, max_length=255)),
                ('quantity_kg', models.DecimalField(decimal_places=3, default=0, max_digits=14)),
                ('position', models.PositiveIntegerField(default=0)),
                ('quotation', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='commodities', to='quotes.quotation')),
            ],
            options={
                'ordering': ['position', 'id'],
                'verbose_name_plural': 'quotation commodities',
            },
        ),
        migrations.CreateModel(
            name='QuotationCharge',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('description', models.CharField(blank=True, max_length=255)),
                ('rate', models.DecimalField(decimal_places=4, default=0, max_digits=18)),
                ('commodity', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='charges', to='quotes.quotationcommodity')),
            ],
            options={
                'ordering': ['id'],
            },
        ),
    ]
