from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone
from ..managers import TenantManager, UserManager

SUBSCRIPTION_STATUS = [
    ("ACTIVE", "Active"),
    ("INACTIVE", "Inactive"),    # switched off by an administrator
    ("EXPIRED", "Expired"),      # subscription_end passed
]


# ---------- Tenant / Client ----------
class Client(models.Model):
    """One subscribing company. Nearly every table is scoped by it."""

    company_name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=80, unique=True)  # URL-friendly identifier

    # Public identifier shown to the client ("CLI-004217")
    client_code = models.CharField(max_length=16, unique=True)

    contact_person = models.CharField(max_length=200, blank=True)
    email = models.EmailField(null=True, blank=True)
    phone = models.CharField(max_length=32, blank=True)

    # Administrators can switch a client off without deleting data
    access_status = models.BooleanField(default=True)
    subscription_status = models.CharField(
        max_length=10, choices=SUBSCRIPTION_STATUS, default="ACTIVE"
    )
    subscription_start = models.DateField()
    subscription_end = models.DateField()
    # Day of month the subscription renews on (1-28)
    billing_day = models.PositiveSmallIntegerField(null=True, blank=True)

    last_login = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["subscription_status", "subscription_end"]),
        ]

    def __str__(self):
        return f"{self.company_name} ({self.client_code})"

    def clean(self):
        if self.subscription_start and self.subscription_end:
            if self.subscription_end < self.subscription_start:
                raise ValidationError(
                    "subscription_end cannot be before subscription_start")
        if self.billing_day is not None and not 1 <= self.billing_day <= 28:
            raise ValidationError("billing_day must be between 1 and 28")

    def save(self, *args, **kwargs):
        # lazy import to avoid circular import at module load time
        from ..services.subscriptions import (calculate_subscription_end_date,
                                              generate_client_code,
                                              unique_client_slug)

        if not self.client_code:
            self.client_code = generate_client_code()
        if not self.slug:
            self.slug = unique_client_slug(self.company_name)
        if not self.subscription_start:
            self.subscription_start = timezone.localdate()
        if not self.subscription_end:
            self.subscription_end = calculate_subscription_end_date(
                self.subscription_start, settings.ERP_SUBSCRIPTION_MONTHS
            )
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)


# ---------- Custom User ----------
class User(AbstractUser):
    # Client the user lands on after signing in
    default_client = models.ForeignKey(
        "Client",
        null=True,
        blank=True,
        # If the client is deleted keep the user, just clear the default
        on_delete=models.SET_NULL,
        related_name="default_users",
    )
    phone = models.CharField(max_length=32, blank=True)

    objects = UserManager()

    class Meta:
        indexes = [models.Index(fields=["default_client"])]

    def __str__(self):
        return self.get_full_name() or self.username


# ---------- Membership ----------
class Membership(models.Model):  # join model between User and Client

    ROLE_CHOICES = [
        ("owner", "Owner"),            # full control
        ("admin", "Admin"),            # can manage settings & users
        ("accountant", "Accountant"),  # can post ledgers, invoices, bills
        ("viewer", "Viewer"),          # read-only access
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="memberships",
    )
    client = models.ForeignKey(
        "Client", on_delete=models.CASCADE, related_name="memberships"
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default="viewer")

    # Suspend someone's access without deleting the record
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        # one membership per user per client
        constraints = [
            models.UniqueConstraint(
                fields=["user", "client"], name="uq_user_client_membership"
            ),
        ]
        indexes = [models.Index(fields=["client", "user"])]

    def __str__(self):
        return f"{self.user} @ {self.client} ({self.role})"

    def clean(self):
        """
        A user's default_client must be one of their memberships.
        The membership being validated counts, even when unsaved.
        """
        user = self.user if self.user_id else None
        if user and user.default_client_id:
            existing = user.memberships.all()
            if self.pk:
                existing = existing.exclude(pk=self.pk)
            client_ids = set(existing.values_list("client_id", flat=True))
            client_ids.add(self.client_id)
            if user.default_client_id not in client_ids:
                raise ValidationError(
                    f"Default client {user.default_client} must be a user's membership."
                )

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
