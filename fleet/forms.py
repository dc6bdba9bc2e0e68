from django import forms
from django.conf import settings
from django.contrib.auth import authenticate, get_user_model
from django.core.exceptions import ValidationError
from django.utils import timezone

from .models import Driver, Maintenance, Refuel, Route, UserProfile, Vehicle
from .permissions import PERMISSION_GROUPS, PERMISSION_LABELS
from .services.reports import current_month_range

User = get_user_model()


def store_choices():
    return [(store, store) for store in settings.FLEET_STORES]


class LoginForm(forms.Form):
    """
    Username + password login.
    The username is resolved to the account email, which the EmailBackend
    authenticates against.
    """
    username = forms.CharField(
        max_length=150,
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Username', 'autofocus': True}),
    )
    password = forms.CharField(
        widget=forms.PasswordInput(attrs={'class': 'form-control', 'placeholder': 'Password'}),
    )

    error_message = "Invalid username or password."

    def __init__(self, request=None, *args, **kwargs):
        self.request = request
        self.user_cache = None
        super().__init__(*args, **kwargs)

    def clean(self):
        cleaned_data = super().clean()
        username = (cleaned_data.get('username') or '').strip()
        password = cleaned_data.get('password')
        if not username or not password:
            return cleaned_data

        if '@' in username:
            email = username
        else:
            user = User.objects.filter(username__iexact=username).first()
            email = user.email if user and user.email else None
        if not email:
            raise ValidationError(self.error_message)

        self.user_cache = authenticate(self.request, email=email, password=password)
        if self.user_cache is None:
            raise ValidationError(self.error_message)
        return cleaned_data

    def get_user(self):
        return self.user_cache


class VehicleForm(forms.ModelForm):
    class Meta:
        model = Vehicle
        fields = ['model', 'plate', 'odometer_km']
        labels = {
            'odometer_km': 'Current odometer (km)',
        }
        widgets = {
            'model': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g. Fiorino'}),
            'plate': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g. ABC-1234'}),
            'odometer_km': forms.NumberInput(attrs={'class': 'form-control', 'min': 0, 'step': '0.01'}),
        }


class DriverForm(forms.ModelForm):
    class Meta:
        model = Driver
        fields = ['name', 'license_number', 'phone', 'category']
        labels = {
            'license_number': 'License (CNH)',
            'category': 'License category',
        }
        widgets = {
            'name': forms.TextInput(attrs={'class': 'form-control'}),
            'license_number': forms.TextInput(attrs={'class': 'form-control'}),
            'phone': forms.TextInput(attrs={'class': 'form-control', 'placeholder': '(98) 99999-0000'}),
            'category': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'B, D, E'}),
        }

    def clean_name(self):
        name = (self.cleaned_data.get('name') or '').strip()
        if not name:
            raise ValidationError("Driver name is required.")
        return name


class RouteStartForm(forms.Form):
    """Start a route; the starting odometer always comes from the vehicle."""
    vehicle = forms.ModelChoiceField(
        queryset=Vehicle.objects.all(),
        widget=forms.Select(attrs={'class': 'form-select'}),
    )
    driver = forms.ModelChoiceField(
        queryset=Driver.objects.order_by('name'),
        widget=forms.Select(attrs={'class': 'form-select'}),
    )
    name = forms.CharField(
        label='Route',
        max_length=200,
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g. Cedral -> Mirinzal'}),
    )


class RouteFinishForm(forms.Form):
    km_end = forms.DecimalField(
        label='Final odometer (km)',
        max_digits=12,
        decimal_places=2,
        min_value=0,
        widget=forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01'}),
    )


class RouteRegisterForm(forms.Form):
    """Manual entry of a completed route; the driver is matched by name or created."""
    vehicle = forms.ModelChoiceField(
        queryset=Vehicle.objects.all(),
        widget=forms.Select(attrs={'class': 'form-select'}),
    )
    driver_name = forms.CharField(
        label='Driver',
        max_length=150,
        widget=forms.TextInput(attrs={'class': 'form-control', 'list': 'driver-names'}),
    )
    name = forms.CharField(
        label='Route',
        max_length=200,
        widget=forms.TextInput(attrs={'class': 'form-control'}),
    )
    km_start = forms.DecimalField(
        label='Initial odometer (km)', max_digits=12, decimal_places=2, min_value=0,
        widget=forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01'}),
    )
    km_end = forms.DecimalField(
        label='Final odometer (km)', max_digits=12, decimal_places=2, min_value=0,
        widget=forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01'}),
    )
    date = forms.DateField(
        initial=timezone.localdate,
        widget=forms.DateInput(attrs={'type': 'date', 'class': 'form-control'}),
    )

    def clean(self):
        cleaned_data = super().clean()
        km_start = cleaned_data.get('km_start')
        km_end = cleaned_data.get('km_end')
        if km_start is not None and km_end is not None and km_end <= km_start:
            raise ValidationError("The final odometer must be greater than the initial odometer.")
        return cleaned_data


class RouteEditForm(forms.ModelForm):
    class Meta:
        model = Route
        fields = ['vehicle', 'driver', 'name', 'km_start', 'km_end', 'date']
        labels = {
            'name': 'Route',
            'km_start': 'Initial odometer (km)',
            'km_end': 'Final odometer (km)',
        }
        widgets = {
            'vehicle': forms.Select(attrs={'class': 'form-select'}),
            'driver': forms.Select(attrs={'class': 'form-select'}),
            'name': forms.TextInput(attrs={'class': 'form-control'}),
            'km_start': forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01'}),
            'km_end': forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01'}),
            'date': forms.DateInput(attrs={'type': 'date', 'class': 'form-control'}, format='%Y-%m-%d'),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if self.instance.pk and self.instance.status == Route.STATUS_IN_PROGRESS:
            # Readings of an open route come from start and finish only.
            for name in ('vehicle', 'km_start', 'km_end'):
                self.fields[name].disabled = True
            self.fields['km_end'].help_text = 'Set when the route is finished.'
        elif self.instance.pk:
            self.fields['km_end'].required = True

    def clean(self):
        cleaned_data = super().clean()
        km_start = cleaned_data.get('km_start')
        km_end = cleaned_data.get('km_end')
        if km_start is not None and km_end is not None and km_end <= km_start:
            raise ValidationError("The final odometer must be greater than the initial odometer.")
        return cleaned_data


class RefuelForm(forms.ModelForm):
    """
    Liters are not typed in; they are derived from total / price per liter
    by the refuel service.
    """
    store = forms.ChoiceField(choices=store_choices, widget=forms.Select(attrs={'class': 'form-select'}))

    class Meta:
        model = Refuel
        fields = ['vehicle', 'km_current', 'price_per_liter', 'total_price', 'station', 'store', 'date']
        labels = {
            'km_current': 'Current odometer (km)',
            'price_per_liter': 'Price per liter',
            'total_price': 'Total paid',
            'station': 'Fuel station',
            'store': 'Paying store',
        }
        widgets = {
            'vehicle': forms.Select(attrs={'class': 'form-select'}),
            'km_current': forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01', 'min': 0}),
            'price_per_liter': forms.NumberInput(attrs={'class': 'form-control', 'step': '0.001', 'min': '0.001'}),
            'total_price': forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01', 'min': 0}),
            'station': forms.TextInput(attrs={'class': 'form-control'}),
            'date': forms.DateInput(attrs={'type': 'date', 'class': 'form-control'}, format='%Y-%m-%d'),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if not self.is_bound:
            self.fields['date'].initial = timezone.localdate()
            vehicle = self.initial.get('vehicle')
            if isinstance(vehicle, Vehicle):
                self.fields['km_current'].initial = vehicle.odometer_km

    def clean_price_per_liter(self):
        price = self.cleaned_data.get('price_per_liter')
        if price is not None and price <= 0:
            raise ValidationError("Price per liter must be greater than zero.")
        return price


class MaintenanceForm(forms.ModelForm):
    class Meta:
        model = Maintenance
        fields = ['vehicle', 'type', 'km', 'cost', 'status', 'date', 'notes']
        labels = {
            'type': 'Maintenance type',
            'km': 'Odometer (km)',
        }
        widgets = {
            'vehicle': forms.Select(attrs={'class': 'form-select'}),
            'type': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g. Oil change'}),
            'km': forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01', 'min': 0}),
            'cost': forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01', 'min': 0}),
            'status': forms.Select(attrs={'class': 'form-select'}),
            'date': forms.DateInput(attrs={'type': 'date', 'class': 'form-control'}, format='%Y-%m-%d'),
            'notes': forms.Textarea(attrs={'class': 'form-control', 'rows': 3}),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['km'].required = False
        self.fields['cost'].required = False

    def clean_km(self):
        return self.cleaned_data.get('km') or 0

    def clean_cost(self):
        return self.cleaned_data.get('cost') or 0


class UserForm(forms.ModelForm):
    """
    Create or edit a login together with its fleet profile.
    The password is required on create and optional on edit.
    """
    email = forms.EmailField(
        required=True,
        widget=forms.EmailInput(attrs={'class': 'form-control'}),
    )
    password = forms.CharField(
        required=False,
        widget=forms.PasswordInput(attrs={'class': 'form-control'}, render_value=False),
        help_text='Leave blank to keep the current password.',
    )
    role = forms.ChoiceField(
        choices=UserProfile.ROLE_CHOICES,
        widget=forms.Select(attrs={'class': 'form-select'}),
    )

    class Meta:
        model = User
        fields = ['username', 'email']
        widgets = {
            'username': forms.TextInput(attrs={'class': 'form-control'}),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        profile = UserProfile.objects.filter(user=self.instance).first() if self.instance.pk else None
        for flag in UserProfile.PERMISSION_FIELDS:
            initial = getattr(profile, flag) if profile else UserProfile._meta.get_field(flag).default
            self.fields[flag] = forms.BooleanField(
                label=PERMISSION_LABELS[flag],
                required=False,
                initial=initial,
                widget=forms.CheckboxInput(attrs={'class': 'form-check-input'}),
            )
        if profile:
            self.fields['role'].initial = profile.role
        if not self.instance.pk:
            self.fields['password'].required = True
            self.fields['password'].help_text = ''

    def permission_groups(self):
        """(group label, [bound fields]) pairs for the template."""
        return [(label, [self[flag] for flag in flags]) for label, flags in PERMISSION_GROUPS]

    def clean_email(self):
        email = self.cleaned_data.get('email', '').strip()
        clash = User.objects.filter(email__iexact=email)
        if self.instance.pk:
            clash = clash.exclude(pk=self.instance.pk)
        if clash.exists():
            raise ValidationError("Another user already uses this email.")
        return email

    def save(self, commit=True):
        user = super().save(commit=False)
        password = self.cleaned_data.get('password')
        if password:
            user.set_password(password)
        if commit:
            user.save()
            profile, _ = UserProfile.objects.get_or_create(user=user)
            profile.role = self.cleaned_data['role']
            for flag in UserProfile.PERMISSION_FIELDS:
                setattr(profile, flag, self.cleaned_data.get(flag, False))
            profile.save()
        return user


class ReportFilterForm(forms.Form):
    start = forms.DateField(
        label='Start date',
        required=False,
        widget=forms.DateInput(attrs={'type': 'date', 'class': 'form-control'}),
    )
    end = forms.DateField(
        label='End date',
        required=False,
        widget=forms.DateInput(attrs={'type': 'date', 'class': 'form-control'}),
    )
    vehicle = forms.ModelChoiceField(
        queryset=Vehicle.objects.all(),
        required=False,
        empty_label='All vehicles',
        widget=forms.Select(attrs={'class': 'form-select'}),
    )

    def clean(self):
        cleaned_data = super().clean()
        if self.errors:
            return cleaned_data
        # A missing bound falls back to the current month.
        default_start, default_end = current_month_range()
        start = cleaned_data.get('start') or default_start
        end = cleaned_data.get('end') or default_end
        if start > end:
            raise ValidationError(
                f"Start date cannot be after the end date ({end.strftime('%d/%m/%Y')})."
            )
        cleaned_data['start'] = start
        cleaned_data['end'] = end
        return cleaned_data
