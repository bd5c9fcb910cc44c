import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('customers', '0001_initial'),
        ('quotes', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='InvoiceSequence',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('period', models.CharField(max_length=6, unique=True)),
                ('last_value', models.PositiveIntegerField(default=0)),
            ],
        ),
        migrations.CreateModel(
            name='Invoice',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('invoice_number', models.CharField(max_length=32, unique=True)),
                ('sequence', models.PositiveIntegerField()),
                ('client_name', models.CharField(max_length=255)),
                ('client_address', models.TextField(blank=True)),
                ('client_contact_person', models.CharField(blank=True, max_length=255)),
                ('client_tin', models.CharField(blank=True, max_length=64)),
                ('destination', models.CharField(blank=True, max_length=255)),
                ('door_delivery', models.CharField(blank=True, max_length=255)),
                ('salesperson', models.CharField(blank=True, max_length=255)),
                ('deliver_date', models.DateField(blank=True, null=True)),
                ('payment_conditions', models.CharField(default='Net 30 days', max_length=255)),
                ('validity_date', models.DateField(blank=True, null=True)),
                ('awb_number', models.CharField(blank=True, max_length=64)),
                ('sub_total', models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ('tva', models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ('total_amount', models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ('vat_rate', models.DecimalField(decimal_places=4, max_digits=6)),
                ('currency', models.CharField(choices=[('USD', 'USD'), ('RWF', 'RWF'), ('EUR', 'EUR')], default='USD', max_length=3)),
                ('issue_date', models.DateField()),
                ('due_date', models.DateField()),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('paid', 'Paid')], default='pending', max_length=10)),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('client', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='invoices', to='customers.client')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='invoices', to=settings.AUTH_USER_MODEL)),
                ('quotation', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='invoice', to='quotes.quotation')),
            ],
            options={
                'ordering': ['-issue_date', '-sequence'],
                'indexes': [
                    models.Index(fields=['status', 'due_date'], name='invoices_in_status_4a9e3c_idx'),
                    models.Index(fields=['-issue_date'], name='invoices_in_issue_d_7f2b6d_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='InvoiceItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('commodity', models.CharField(blank=True, max_length=255)),
                ('description', models.CharField(blank=True, max_length=255)),
                ('quantity_kg', models.DecimalField(decimal_places=3, default=0, max_digits=14)),
                ('total', models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ('position', models.PositiveIntegerField(default=0)),
                ('invoice', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='invoices.invoice')),
            ],
            options={
                'ordering': ['position', 'id'],
            },
        ),
        migrations.CreateModel(
            name='InvoiceCharge',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('description', models.CharField(blank=True, max_length=255)),
                ('rate', models.DecimalField(decimal_places=4, default=0, max_digits=18)),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='charges', to='invoices.invoiceitem')),
            ],
            options={
                'ordering': ['id'],
            },
        ),
    ]
