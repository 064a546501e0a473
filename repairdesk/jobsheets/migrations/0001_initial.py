# Generated manually
import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models

STATUS_CHOICES = [
    ('PENDING', 'Pending'),
    ('IN_PROGRESS', 'In Progress'),
    ('WAITING_PARTS', 'Waiting for Parts'),
    ('QUALITY_CHECK', 'Quality Check'),
    ('COMPLETED', 'Completed'),
    ('READY_DELIVERY', 'Ready for Delivery'),
    ('DELIVERED', 'Delivered'),
    ('ON_HOLD', 'On Hold'),
    ('CANCELLED', 'Cancelled'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('locations', '0001_initial'),
        ('parties', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='JobSheet',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('job_number', models.CharField(max_length=100, unique=True)),
                ('issue_description', models.TextField()),
                ('diagnosis_notes', models.TextField(blank=True)),
                ('repair_notes', models.TextField(blank=True)),
                ('accessories', models.TextField(blank=True, help_text='Accessories received with the device')),
                ('notes', models.TextField(blank=True)),
                ('status', models.CharField(choices=STATUS_CHOICES, db_index=True, default='PENDING', max_length=20)),
                ('priority', models.CharField(choices=[('LOW', 'Low'), ('MEDIUM', 'Medium'), ('HIGH', 'High'), ('URGENT', 'Urgent')], default='MEDIUM', max_length=10)),
                ('labour_cost', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('parts_cost', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('discount_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('total_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('paid_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('balance_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('received_date', models.DateField(default=django.utils.timezone.localdate)),
                ('expected_completion_date', models.DateField(blank=True, null=True)),
                ('completed_date', models.DateTimeField(blank=True, null=True)),
                ('delivered_date', models.DateTimeField(blank=True, null=True)),
                ('warranty_period', models.PositiveIntegerField(blank=True, help_text='Warranty in days', null=True)),
                ('warranty_expiry', models.DateField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('assigned_to', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='assigned_job_sheets', to=settings.AUTH_USER_MODEL)),
                ('created_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_job_sheets', to=settings.AUTH_USER_MODEL)),
                ('customer', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='job_sheets', to='parties.customer')),
                ('device', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='job_sheets', to='parties.device')),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='job_sheets', to='locations.location')),
            ],
            options={
                'db_table': 'job_sheets',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', 'expected_completion_date'], name='idx_jobsheet_status_due'),
                    models.Index(fields=['location', 'received_date'], name='idx_jobsheet_loc_received'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('payment_number', models.CharField(max_length=100, unique=True)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('payment_method', models.CharField(choices=[('CASH', 'Cash'), ('CARD', 'Card'), ('BANK_TRANSFER', 'Bank Transfer'), ('MOBILE_PAYMENT', 'Mobile Payment'), ('CHECK', 'Check'), ('OTHER', 'Other')], default='CASH', max_length=20)),
                ('reference', models.CharField(blank=True, max_length=200)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='job_sheet_payments', to=settings.AUTH_USER_MODEL)),
                ('customer', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='job_sheet_payments', to='parties.customer')),
                ('job_sheet', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payments', to='jobsheets.jobsheet')),
            ],
            options={
                'db_table': 'job_sheet_payments',
                'ordering': ['created_at', 'id'],
            },
        ),
        migrations.CreateModel(
            name='StatusHistory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('from_status', models.CharField(blank=True, choices=STATUS_CHOICES, max_length=20, null=True)),
                ('to_status', models.CharField(choices=STATUS_CHOICES, max_length=20)),
                ('remarks', models.TextField(blank=True)),
                ('changed_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('changed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='job_sheet_status_changes', to=settings.AUTH_USER_MODEL)),
                ('job_sheet', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='status_history', to='jobsheets.jobsheet')),
            ],
            options={
                'db_table': 'job_sheet_status_history',
                'ordering': ['changed_at', 'id'],
                'verbose_name_plural': 'status history',
            },
        ),
    ]
