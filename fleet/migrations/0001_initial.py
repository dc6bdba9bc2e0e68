from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Driver',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=150)),
                ('license_number', models.CharField(blank=True, help_text="Driver's license number.", max_length=50)),
                ('phone', models.CharField(blank=True, max_length=30)),
                ('category', models.CharField(blank=True, help_text='License category, e.g. B, D, E.', max_length=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Vehicle',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('model', models.CharField(max_length=100)),
                ('plate', models.CharField(help_text='License plate (not enforced unique).', max_length=20)),
                ('odometer_km', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='Current odometer reading; baseline for the next route or refuel.', max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('last_update', models.DateTimeField(blank=True, help_text='When the odometer was last moved.', null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['model', 'plate'],
            },
        ),
        migrations.CreateModel(
            name='UserProfile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(choices=[('user', 'User'), ('manager', 'Manager'), ('admin', 'Administrator')], default='user', max_length=20)),
                ('view_vehicles', models.BooleanField(default=True, help_text='View vehicles')),
                ('manage_vehicles', models.BooleanField(default=False, help_text='Manage vehicles')),
                ('view_routes', models.BooleanField(default=True, help_text='View routes')),
                ('edit_routes', models.BooleanField(default=False, help_text='Edit routes')),
                ('view_refuels', models.BooleanField(default=True, help_text='View refuels')),
                ('add_refuels', models.BooleanField(default=False, help_text='Register refuels')),
                ('generate_reports', models.BooleanField(default=False, help_text='Generate reports')),
                ('manage_users', models.BooleanField(default=False, help_text='Manage users')),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='fleet_profile', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='Route',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text='Route label, e.g. Cedral -> Mirinzal', max_length=200)),
                ('km_start', models.DecimalField(decimal_places=2, max_digits=12)),
                ('km_end', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('distance', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('status', models.CharField(choices=[('IN_PROGRESS', 'In Progress'), ('FINISHED', 'Finished')], default='IN_PROGRESS', max_length=20)),
                ('started_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('ended_at', models.DateTimeField(blank=True, null=True)),
                ('date', models.DateField(default=django.utils.timezone.localdate, help_text='Operational day used by reports and the dashboard.')),
                ('driver', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='routes', to='fleet.driver')),
                ('vehicle', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='routes', to='fleet.vehicle')),
            ],
            options={
                'ordering': ['-started_at'],
                'indexes': [
                    models.Index(fields=['status'], name='fleet_route_status_idx'),
                    models.Index(fields=['date'], name='fleet_route_date_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Refuel',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('km_current', models.DecimalField(decimal_places=2, help_text='Odometer at refuel time.', max_digits=12)),
                ('liters', models.DecimalField(decimal_places=2, max_digits=10)),
                ('price_per_liter', models.DecimalField(decimal_places=3, max_digits=8, validators=[django.core.validators.MinValueValidator(Decimal('0.001'))])),
                ('total_price', models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('store', models.CharField(help_text='Store paying for the fuel.', max_length=100)),
                ('station', models.CharField(help_text='Fuel station.', max_length=150)),
                ('date', models.DateField(default=django.utils.timezone.localdate)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('vehicle', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='refuels', to='fleet.vehicle')),
            ],
            options={
                'ordering': ['-date', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Maintenance',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(help_text='e.g. Oil change, Brake pads', max_length=150)),
                ('km', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('cost', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('notes', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('COMPLETED', 'Completed')], default='COMPLETED', max_length=20)),
                ('date', models.DateField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('vehicle', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='maintenances', to='fleet.vehicle')),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
    ]
