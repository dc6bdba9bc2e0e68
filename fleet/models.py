"""
Menu Order:
1. UserProfile Model     - Extends Django's User with a role and permission flags.
2. Vehicle Model         - Stores vehicle details and the running odometer reading.
3. Driver Model          - Contains driver name, license and contact details.
4. Route Model           - Records trips bounded by a start and end odometer reading.
5. Refuel Model          - Logs fuel purchases per vehicle and the paying store.
6. Maintenance Model     - Tracks maintenance work done on vehicles.
"""

from decimal import Decimal

from django.contrib.auth.models import User
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


# 1. UserProfile Model
class UserProfile(models.Model):
    """
    Extends Django's built-in User model with a role and the per-screen
    permission flags used by the navigation and the view checks.
    A profile is created automatically for every new User (see signals).
    """
    ROLE_USER = 'user'
    ROLE_MANAGER = 'manager'
    ROLE_ADMIN = 'admin'
    ROLE_CHOICES = [
        (ROLE_USER, 'User'),
        (ROLE_MANAGER, 'Manager'),
        (ROLE_ADMIN, 'Administrator'),
    ]

    PERMISSION_FIELDS = [
        'view_vehicles',
        'manage_vehicles',
        'view_routes',
        'edit_routes',
        'view_refuels',
        'add_refuels',
        'generate_reports',
        'manage_users',
    ]

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='fleet_profile')
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_USER)

    view_vehicles = models.BooleanField(default=True, help_text="View vehicles")
    manage_vehicles = models.BooleanField(default=False, help_text="Manage vehicles")
    view_routes = models.BooleanField(default=True, help_text="View routes")
    edit_routes = models.BooleanField(default=False, help_text="Edit routes")
    view_refuels = models.BooleanField(default=True, help_text="View refuels")
    add_refuels = models.BooleanField(default=False, help_text="Register refuels")
    generate_reports = models.BooleanField(default=False, help_text="Generate reports")
    manage_users = models.BooleanField(default=False, help_text="Manage users")

    def __str__(self):
        return f"{self.user.username} - {self.get_role_display()}"

    @property
    def is_admin(self):
        return self.role == self.ROLE_ADMIN or self.user.is_superuser

    def permissions(self):
        """Return the permission flags as a plain dict keyed by flag name."""
        return {name: getattr(self, name) for name in self.PERMISSION_FIELDS}


# 2. Vehicle Model
class Vehicle(models.Model):
    model = models.CharField(max_length=100)
    plate = models.CharField(max_length=20, help_text="License plate (not enforced unique).")
    odometer_km = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text="Current odometer reading; baseline for the next route or refuel.",
    )
    last_update = models.DateTimeField(null=True, blank=True, help_text="When the odometer was last moved.")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['model', 'plate']

    def __str__(self):
        return self.label

    @property
    def label(self):
        return f"{self.model} - {self.plate}"

    def has_active_route(self):
        return self.routes.filter(status=Route.STATUS_IN_PROGRESS).exists()

    @property
    def status_display(self):
        return "On route" if self.has_active_route() else "Available"

    def update_odometer(self, new_odometer):
        """
        Overwrite the running odometer with the latest reading and stamp
        last_update. Callers are expected to hold the row (select_for_update).
        """
        self.odometer_km = Decimal(str(new_odometer))
        self.last_update = timezone.now()
        self.save(update_fields=['odometer_km', 'last_update'])


# 3. Driver Model
class Driver(models.Model):
    name = models.CharField(max_length=150)
    license_number = models.CharField(max_length=50, blank=True, help_text="Driver's license number.")
    phone = models.CharField(max_length=30, blank=True)
    category = models.CharField(max_length=10, blank=True, help_text="License category, e.g. B, D, E.")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.name


# 4. Route Model
class Route(models.Model):
    STATUS_IN_PROGRESS = 'IN_PROGRESS'
    STATUS_FINISHED = 'FINISHED'
    STATUS_CHOICES = [
        (STATUS_IN_PROGRESS, 'In Progress'),
        (STATUS_FINISHED, 'Finished'),
    ]

    vehicle = models.ForeignKey('Vehicle', on_delete=models.PROTECT, related_name='routes')
    driver = models.ForeignKey('Driver', on_delete=models.PROTECT, related_name='routes')
    name = models.CharField(max_length=200, help_text="Route label, e.g. Cedral -> Mirinzal")
    km_start = models.DecimalField(max_digits=12, decimal_places=2)
    km_end = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    distance = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_IN_PROGRESS)
    started_at = models.DateTimeField(default=timezone.now)
    ended_at = models.DateTimeField(null=True, blank=True)
    date = models.DateField(default=timezone.localdate, help_text="Operational day used by reports and the dashboard.")

    class Meta:
        ordering = ['-started_at']
        indexes = [
            models.Index(fields=['status'], name='fleet_route_status_idx'),
            models.Index(fields=['date'], name='fleet_route_date_idx'),
        ]

    def __str__(self):
        return f"Route #{self.pk} | {self.vehicle} - {self.get_status_display()}"

    @property
    def is_finished(self):
        return self.status == self.STATUS_FINISHED

    def calculated_distance(self):
        if self.km_start is not None and self.km_end is not None:
            return self.km_end - self.km_start
        return self.distance


# 5. Refuel Model
class Refuel(models.Model):
    vehicle = models.ForeignKey('Vehicle', on_delete=models.PROTECT, related_name='refuels')
    km_current = models.DecimalField(max_digits=12, decimal_places=2, help_text="Odometer at refuel time.")
    liters = models.DecimalField(max_digits=10, decimal_places=2)
    price_per_liter = models.DecimalField(
        max_digits=8,
        decimal_places=3,
        validators=[MinValueValidator(Decimal('0.001'))],
    )
    total_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
    )
    store = models.CharField(max_length=100, help_text="Store paying for the fuel.")
    station = models.CharField(max_length=150, help_text="Fuel station.")
    date = models.DateField(default=timezone.localdate)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-date', '-created_at']

    def __str__(self):
        return f"{self.vehicle} refuel on {self.date} ({self.liters} L)"


# 6. Maintenance Model
class Maintenance(models.Model):
    STATUS_PENDING = 'PENDING'
    STATUS_COMPLETED = 'COMPLETED'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_COMPLETED, 'Completed'),
    ]

    vehicle = models.ForeignKey('Vehicle', on_delete=models.PROTECT, related_name='maintenances')
    type = models.CharField(max_length=150, help_text="e.g. Oil change, Brake pads")
    km = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    cost = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))],
    )
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_COMPLETED)
    date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.vehicle} {self.type} on {self.date} ({self.get_status_display()})"
